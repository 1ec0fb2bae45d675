"""Flatten theme inheritance chains into standalone themes."""

__version__ = "0.3.0"

"""Error codes and error handling utilities for themeflat."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for theme compilation."""

    # Theme resolution errors
    INVALID_THEME = auto()
    INVALID_SOURCE = auto()

    # Output staging errors
    TARGET_EXISTS = auto()
    DELETE_FAILED = auto()
    DIRECTORY_CREATE_FAILED = auto()

    # Overlay errors
    SOURCE_UNREADABLE = auto()
    COPY_FAILED = auto()

    # Configuration errors
    INVALID_CONFIG_SHAPE = auto()
    PERSIST_FAILED = auto()
    CONFIG_INVALID = auto()

    OPERATION_FAILED = auto()


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_THEME: "The theme could not be resolved.",
    ErrorCode.INVALID_SOURCE: "The source theme is invalid.",
    ErrorCode.TARGET_EXISTS: "The target theme already exists. Use --force to overwrite it.",
    ErrorCode.DELETE_FAILED: "A directory could not be deleted. Check permissions.",
    ErrorCode.DIRECTORY_CREATE_FAILED: "A directory could not be created. Check permissions.",
    ErrorCode.SOURCE_UNREADABLE: "A theme directory could not be listed.",
    ErrorCode.COPY_FAILED: "A theme file could not be copied.",
    ErrorCode.INVALID_CONFIG_SHAPE: "A theme configuration has an unexpected structure.",
    ErrorCode.PERSIST_FAILED: "The merged configuration could not be written.",
    ErrorCode.CONFIG_INVALID: "Configuration is invalid. Pass --themes-dir or save a themes directory.",
    ErrorCode.OPERATION_FAILED: "Operation failed. See details for more information.",
}


@dataclass
class ThemeFlatError(Exception):
    """Base exception for themeflat with error code and context."""

    code: ErrorCode
    message: str = ""
    path: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES.get(self.code, "An unexpected error occurred.")
        if not self.suggestion and self.code in ERROR_MESSAGES:
            self.suggestion = ERROR_MESSAGES[self.code]

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"\nPath: {self.path}")
        if self.details:
            details_str = " | ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"\nDetails: {details_str}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or JSON output."""
        return {
            "code": self.code.name,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "details": self.details,
            "suggestion": self.suggestion,
        }


def wrap_os_error(
    code: ErrorCode,
    message: str,
    exc: BaseException,
    path: Path | None = None,
) -> ThemeFlatError:
    """Attach operation context to a filesystem failure without reinterpreting it."""
    return ThemeFlatError(code, message=message, path=path, details={"original": str(exc)})


def classify_exception(exc: Exception, path: Path | None = None) -> ThemeFlatError:
    """Classify a generic exception into a ThemeFlatError with appropriate code."""
    if isinstance(exc, ThemeFlatError):
        return exc
    exc_name = type(exc).__name__
    exc_str = str(exc)

    if isinstance(exc, PermissionError):
        return ThemeFlatError(
            ErrorCode.OPERATION_FAILED,
            message=f"Permission denied: {exc_str}",
            path=path,
            details={"original": exc_str},
            suggestion="Check file permissions on the themes directory.",
        )
    if "no space left" in exc_str.lower():
        return ThemeFlatError(
            ErrorCode.OPERATION_FAILED,
            message=f"Disk full: {exc_str}",
            path=path,
            details={"original": exc_str},
            suggestion="Free up space and try again.",
        )

    return ThemeFlatError(
        ErrorCode.OPERATION_FAILED,
        message=f"{exc_name}: {exc}",
        path=path,
        details={"original": exc_str},
    )


def format_error_for_user(error: ThemeFlatError | Exception) -> str:
    """Format an error for display to the user with actionable suggestions."""
    if isinstance(error, ThemeFlatError):
        parts = [error.message]
        if error.suggestion and error.suggestion != error.message:
            parts.append(f"\n{error.suggestion}")
        if error.details.get("original"):
            parts.append(f"\n({error.details['original']})")
        return "".join(parts)

    return format_error_for_user(classify_exception(error))

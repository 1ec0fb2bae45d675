"""Theme chain resolution, merging and compilation."""

from themeflat.core.compiler import ThemeCompiler
from themeflat.core.merge import ConfigMerger, MergePolicy, merge_config
from themeflat.core.models import CompileResult, ThemeChain, ThemeLayer
from themeflat.core.resolver import ThemeResolver

__all__ = [
    "CompileResult",
    "ConfigMerger",
    "MergePolicy",
    "ThemeChain",
    "ThemeCompiler",
    "ThemeLayer",
    "ThemeResolver",
    "merge_config",
]

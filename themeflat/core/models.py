"""Theme chain and compile result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from themeflat.errors import ThemeFlatError


@dataclass(frozen=True, slots=True)
class ThemeLayer:
    """One theme's contribution to a chain: its directory and raw config."""

    name: str
    path: Path
    config: dict[str, Any]
    is_mixin: bool = False


@dataclass(frozen=True, slots=True)
class ThemeChain:
    """Resolved inheritance chain, ordered base first and most-derived last."""

    theme: str
    base_dir: Path
    layers: tuple[ThemeLayer, ...] = ()

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[ThemeLayer]:
        return iter(self.layers)

    @property
    def names(self) -> list[str]:
        return [layer.name for layer in self.layers]


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of a compiler operation."""

    ok: bool
    target_dir: Path | None = None
    error: ThemeFlatError | None = None
    layers: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.ok

    @property
    def message(self) -> str | None:
        if self.error is None:
            return None
        return self.error.message

    @classmethod
    def success(cls, target_dir: Path, layers: tuple[str, ...] = ()) -> CompileResult:
        return cls(ok=True, target_dir=target_dir, layers=layers)

    @classmethod
    def failure(cls, error: ThemeFlatError, target_dir: Path | None = None) -> CompileResult:
        return cls(ok=False, target_dir=target_dir, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "target_dir": str(self.target_dir) if self.target_dir else None,
            "layers": list(self.layers),
            "error": self.error.to_dict() if self.error else None,
        }

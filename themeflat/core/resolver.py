"""Theme inheritance chain resolution."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Protocol

from themeflat.core.config_io import CONFIG_FILENAME, MIXIN_FILENAME, load_config_file
from themeflat.core.models import ThemeChain, ThemeLayer
from themeflat.errors import ErrorCode, ThemeFlatError

logger = logging.getLogger(__name__)

_THEME_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
_MAX_THEME_NAME_LEN = 64
_MAX_CHAIN_DEPTH = 64


class ChainResolver(Protocol):
    """Produces the ordered layer chain for a theme name."""

    @property
    def base_dir(self) -> Path: ...

    def resolve_chain(self, theme: str) -> ThemeChain: ...


def is_valid_theme_name(name: str) -> bool:
    return (
        isinstance(name, str)
        and len(name) <= _MAX_THEME_NAME_LEN
        and name not in {".", ".."}
        and bool(_THEME_NAME_RE.match(name))
    )


class ThemeResolver:
    """Resolves themes and mixins stored as directories under one base directory.

    The chain is walked from the requested theme toward its ultimate parent.
    Each theme is followed by the mixins it lists, and then by its parent.
    The result is returned reversed, so the base theme comes first.
    """

    def __init__(
        self,
        base_dir: Path,
        config_filename: str = CONFIG_FILENAME,
        mixin_filename: str = MIXIN_FILENAME,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._config_filename = config_filename
        self._mixin_filename = mixin_filename

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def config_filename(self) -> str:
        return self._config_filename

    def resolve_chain(self, theme: str) -> ThemeChain:
        walk: list[ThemeLayer] = []
        seen: set[str] = set()
        visited_themes: list[str] = []
        current: str | None = theme

        while current is not None:
            if current in visited_themes:
                cycle = " -> ".join([*visited_themes, current])
                raise ThemeFlatError(
                    ErrorCode.INVALID_THEME,
                    message=f"Circular theme inheritance: {cycle}",
                )
            if len(visited_themes) >= _MAX_CHAIN_DEPTH:
                raise ThemeFlatError(
                    ErrorCode.INVALID_THEME,
                    message=f"Theme chain for {theme!r} exceeds {_MAX_CHAIN_DEPTH} levels",
                )
            visited_themes.append(current)

            layer = self._load_layer(current, is_mixin=False)
            if layer.name not in seen:
                seen.add(layer.name)
                walk.append(layer)

            for mixin in _mixin_names(layer):
                if mixin in seen:
                    continue
                seen.add(mixin)
                walk.append(self._load_layer(mixin, is_mixin=True))

            current = _parent_name(layer)

        chain = ThemeChain(theme=theme, base_dir=self._base_dir, layers=tuple(reversed(walk)))
        logger.debug("resolved %s: %s", theme, " -> ".join(chain.names))
        return chain

    def _load_layer(self, name: str, *, is_mixin: bool) -> ThemeLayer:
        kind = "mixin" if is_mixin else "theme"
        if not is_valid_theme_name(name):
            raise ThemeFlatError(
                ErrorCode.INVALID_THEME,
                message=f"Invalid {kind} name {name!r}; expected pattern [A-Za-z0-9_.-]",
            )
        layer_dir = self._base_dir / name
        if not layer_dir.is_dir():
            raise ThemeFlatError(
                ErrorCode.INVALID_THEME,
                message=f"Cannot load {kind}: {layer_dir}",
                path=layer_dir,
            )
        config_path = layer_dir / (self._mixin_filename if is_mixin else self._config_filename)
        if not config_path.is_file():
            raise ThemeFlatError(
                ErrorCode.INVALID_THEME,
                message=f"Missing {kind} configuration: {config_path}",
                path=config_path,
            )
        return ThemeLayer(
            name=name,
            path=layer_dir,
            config=load_config_file(config_path),
            is_mixin=is_mixin,
        )


def _parent_name(layer: ThemeLayer) -> str | None:
    if layer.is_mixin:
        return None
    parent: Any = layer.config.get("extends")
    if not parent:
        return None
    if not isinstance(parent, str):
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"{layer.name}: 'extends' must be a theme name or false, got {parent!r}",
            path=layer.path,
        )
    return parent


def _mixin_names(layer: ThemeLayer) -> list[str]:
    if layer.is_mixin:
        return []
    raw: Any = layer.config.get("mixins")
    if not raw:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"{layer.name}: 'mixins' must be a list of mixin names",
            path=layer.path,
        )
    return list(raw)

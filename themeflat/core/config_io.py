"""Theme configuration parsing and serialization."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from themeflat.errors import ErrorCode, ThemeFlatError

CONFIG_FILENAME = "theme.config.yaml"
MIXIN_FILENAME = "mixin.config.yaml"

_MAX_CONFIG_BYTES = 256 * 1024
_GENERATED_HEADER = "# Generated by themeflat. Flattened theme configuration; do not edit.\n"


def load_config_file(path: Path, *, max_bytes: int = _MAX_CONFIG_BYTES) -> dict[str, Any]:
    """Load a YAML theme config; an empty file is an empty mapping."""
    content = _read_text_limited(path, max_bytes=max_bytes)
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"Invalid YAML in {path}: {exc}",
            path=path,
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"Expected a mapping at the top level of {path}",
            path=path,
        )
    return dict(data)


def dump_config(config: Mapping[str, Any]) -> str:
    """Serialize a merged config so that yaml.safe_load returns the same mapping."""
    body = yaml.safe_dump(
        dict(config),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
    return _GENERATED_HEADER + body


def _read_text_limited(path: Path, *, max_bytes: int) -> str:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"Unable to stat {path}: {exc}",
            path=path,
        ) from exc
    if size > max_bytes:
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"{path}: file exceeds max size ({max_bytes} bytes)",
            path=path,
        )
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ThemeFlatError(
            ErrorCode.INVALID_THEME,
            message=f"Unable to read {path}: {exc}",
            path=path,
        ) from exc

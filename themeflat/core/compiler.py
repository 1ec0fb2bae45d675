"""Compile a theme inheritance chain into a single flat theme."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from themeflat.core.config_io import CONFIG_FILENAME, dump_config
from themeflat.core.filesystem import FileSystem, LocalFileSystem
from themeflat.core.merge import ConfigMerger
from themeflat.core.models import CompileResult, ThemeChain
from themeflat.core.resolver import ChainResolver, is_valid_theme_name
from themeflat.core.tree import delete_tree, ensure_dir, overlay_tree
from themeflat.errors import ErrorCode, ThemeFlatError, classify_exception, wrap_os_error

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class ThemeCompiler:
    """Flattens a theme and its ancestors and mixins into one standalone theme.

    Layers are processed in resolver order (base first). Both file overlay
    and config merging keep whatever an earlier layer already placed, so the
    base theme wins wherever layers collide.
    """

    def __init__(
        self,
        resolver: ChainResolver,
        fs: FileSystem | None = None,
        merger: ConfigMerger | None = None,
        config_filename: str = CONFIG_FILENAME,
    ) -> None:
        self._resolver = resolver
        self._fs = fs or LocalFileSystem()
        self._merger = merger or ConfigMerger()
        self._config_filename = config_filename
        self._last_error: str | None = None

    @property
    def last_error(self) -> str | None:
        """Message of the most recent failure on this instance."""
        return self._last_error

    def compile(
        self,
        source: str,
        target: str,
        force_overwrite: bool = False,
        progress_cb: ProgressCallback | None = None,
    ) -> CompileResult:
        """Compile theme `source` into a new theme directory named `target`."""
        target_dir: Path | None = None
        try:
            chain = self._resolve_source(source)
            target_dir = self._target_dir(target)
            self._reject_layer_target(chain, target_dir)
            self._prepare_target(target_dir, force_overwrite)
            config = self._compile_layers(chain, target_dir, progress_cb)
            self._persist(config, target_dir)
        except Exception as exc:
            return self._fail(exc, target_dir)

        logger.info("compiled %s into %s (%d layers)", source, target_dir, len(chain))
        return CompileResult.success(target_dir, tuple(chain.names))

    def remove_theme(self, theme: str) -> CompileResult:
        """Recursively delete a theme directory under the resolver's base dir."""
        theme_dir: Path | None = None
        try:
            theme_dir = self._target_dir(theme)
            if not (self._fs.is_dir(theme_dir) or self._fs.is_link(theme_dir)):
                raise ThemeFlatError(
                    ErrorCode.DELETE_FAILED,
                    message=f"Cannot delete {theme_dir}: no such theme directory",
                    path=theme_dir,
                )
            delete_tree(theme_dir, self._fs)
        except Exception as exc:
            return self._fail(exc, theme_dir)

        logger.info("removed theme directory %s", theme_dir)
        return CompileResult.success(theme_dir)

    def _resolve_source(self, source: str) -> ThemeChain:
        try:
            return self._resolver.resolve_chain(source)
        except ThemeFlatError as exc:
            raise ThemeFlatError(
                ErrorCode.INVALID_SOURCE,
                message=exc.message,
                path=exc.path,
                details=dict(exc.details),
            ) from exc

    def _target_dir(self, name: str) -> Path:
        if not is_valid_theme_name(name):
            raise ThemeFlatError(
                ErrorCode.INVALID_SOURCE,
                message=f"Invalid theme name {name!r}",
            )
        return self._resolver.base_dir / name

    def _reject_layer_target(self, chain: ThemeChain, target_dir: Path) -> None:
        for layer in chain:
            if layer.path == target_dir:
                raise ThemeFlatError(
                    ErrorCode.INVALID_SOURCE,
                    message=f"Target {target_dir.name!r} is a layer of {chain.theme!r}; "
                    "choose a new theme name",
                    path=target_dir,
                )

    def _prepare_target(self, target_dir: Path, force_overwrite: bool) -> None:
        if self._fs.exists(target_dir):
            if not force_overwrite:
                raise ThemeFlatError(
                    ErrorCode.TARGET_EXISTS,
                    message=f"Cannot overwrite {target_dir} without --force switch!",
                    path=target_dir,
                )
            logger.info("removing existing target %s", target_dir)
            if self._fs.is_dir(target_dir) or self._fs.is_link(target_dir):
                delete_tree(target_dir, self._fs)
            else:
                try:
                    self._fs.remove_file(target_dir)
                except OSError as exc:
                    raise wrap_os_error(
                        ErrorCode.DELETE_FAILED, f"Cannot delete {target_dir}", exc, target_dir
                    ) from exc
        ensure_dir(target_dir, self._fs)

    def _compile_layers(
        self,
        chain: ThemeChain,
        target_dir: Path,
        progress_cb: ProgressCallback | None,
    ) -> dict[str, Any]:
        config: dict[str, Any] = {}
        total = len(chain)
        for index, layer in enumerate(chain, start=1):
            if progress_cb:
                progress_cb(index, total, layer.name)
            config = self._merger.merge(layer.config, config)
            copied = overlay_tree(layer.path, target_dir, self._fs)
            logger.debug("layer %s: %d files copied", layer.name, copied)
        return config

    def _persist(self, config: dict[str, Any], target_dir: Path) -> None:
        config_path = target_dir / self._config_filename
        try:
            written = self._fs.write_text(config_path, dump_config(config))
        except OSError as exc:
            raise wrap_os_error(
                ErrorCode.PERSIST_FAILED, f"Problem exporting {config_path}.", exc, config_path
            ) from exc
        if not written:
            raise ThemeFlatError(
                ErrorCode.PERSIST_FAILED,
                message=f"Problem exporting {config_path}.",
                path=config_path,
            )

    def _fail(self, exc: Exception, target_dir: Path | None) -> CompileResult:
        error = classify_exception(exc)
        self._last_error = error.message
        logger.warning("%s: %s", error.code.name, error.message)
        return CompileResult.failure(error, target_dir)

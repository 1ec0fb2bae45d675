"""Workers for compiling and removing themes off the calling thread."""

from __future__ import annotations

from pathlib import Path

from themeflat.core.compiler import ThemeCompiler
from themeflat.core.config_io import CONFIG_FILENAME
from themeflat.core.resolver import ThemeResolver
from themeflat.workers.base_worker import BaseWorker


def _build_compiler(themes_dir: Path, config_filename: str) -> ThemeCompiler:
    resolver = ThemeResolver(themes_dir, config_filename=config_filename)
    return ThemeCompiler(resolver, config_filename=config_filename)


class CompileWorker(BaseWorker):
    """Compiles one theme chain into a flat theme in a background thread.

    Each worker owns its own compiler, so concurrent runs never share error
    state; callers must still give concurrent runs distinct targets.
    """

    def __init__(self, themes_dir: str | Path, source: str, target: str,
                 force_overwrite: bool = False,
                 config_filename: str = CONFIG_FILENAME) -> None:
        super().__init__()
        self._themes_dir = Path(themes_dir)
        self._source = source
        self._target = target
        self._force_overwrite = force_overwrite
        self._config_filename = config_filename

    def run(self) -> None:
        self.started.emit()
        compiler = _build_compiler(self._themes_dir, self._config_filename)
        result = compiler.compile(
            self._source,
            self._target,
            force_overwrite=self._force_overwrite,
            progress_cb=self._report_progress,
        )
        if result.ok:
            self.finished.emit(result)
        elif self._is_cancelled:
            self.cancelled.emit()
        else:
            self.error.emit(result.message or "Compile failed")


class RemoveThemeWorker(BaseWorker):
    """Deletes a compiled theme directory in a background thread."""

    def __init__(self, themes_dir: str | Path, theme: str,
                 config_filename: str = CONFIG_FILENAME) -> None:
        super().__init__()
        self._themes_dir = Path(themes_dir)
        self._theme = theme
        self._config_filename = config_filename

    def run(self) -> None:
        self.started.emit()
        if self._is_cancelled:
            self.cancelled.emit()
            return
        result = _build_compiler(self._themes_dir, self._config_filename).remove_theme(self._theme)
        if result.ok:
            self.finished.emit(result)
        else:
            self.error.emit(result.message or "Remove failed")

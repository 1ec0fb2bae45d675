"""Application settings via QSettings."""

from __future__ import annotations

import os
from pathlib import Path

from PySide6.QtCore import QSettings

from themeflat.core.config_io import CONFIG_FILENAME


class AppSettings:
    """Wraps QSettings for persistent CLI defaults."""

    def __init__(self) -> None:
        self._qs = QSettings("ThemeFlat", "ThemeFlat")

    # -- directories --

    @property
    def themes_dir(self) -> str:
        return self._qs.value("dirs/themes", "", type=str)

    @themes_dir.setter
    def themes_dir(self, value: str) -> None:
        self._qs.setValue("dirs/themes", (value or "").strip())

    # -- compile --

    @property
    def config_filename(self) -> str:
        raw = self._qs.value("compile/config_filename", CONFIG_FILENAME, type=str)
        value = (raw or "").strip()
        return value or CONFIG_FILENAME

    @config_filename.setter
    def config_filename(self, value: str) -> None:
        cleaned = (value or "").strip() or CONFIG_FILENAME
        self._qs.setValue("compile/config_filename", cleaned)

    @property
    def last_source(self) -> str:
        return self._qs.value("compile/last_source", "", type=str)

    @last_source.setter
    def last_source(self, value: str) -> None:
        self._qs.setValue("compile/last_source", value)

    @property
    def last_target(self) -> str:
        return self._qs.value("compile/last_target", "", type=str)

    @last_target.setter
    def last_target(self, value: str) -> None:
        self._qs.setValue("compile/last_target", value)

    # -- helpers --

    @property
    def app_data_dir(self) -> Path:
        path = self._app_data_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_dir(self) -> Path:
        path = self.app_data_dir / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def sync(self) -> None:
        self._qs.sync()

    @staticmethod
    def _app_data_dir() -> Path:
        base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
        return base / "themeflat"

"""Base worker class with standard signals for background operations."""

from __future__ import annotations

from threading import Event

from PySide6.QtCore import QObject, Signal


class WorkerCancelled(Exception):
    """Raised from a progress callback to stop a worker between steps."""


class BaseWorker(QObject):
    """Base class for background workers using moveToThread pattern.

    Usage:
        worker = CompileWorker(themes_dir, "child", "flat")
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        worker.cancelled.connect(thread.quit)
        thread.finished.connect(thread.deleteLater)
        thread.start()
    """

    started = Signal()
    progress = Signal(int, int, str)    # current, total, message
    finished = Signal(object)           # CompileResult
    error = Signal(str)                 # error message
    cancelled = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._cancel_event = Event()

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def _is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _report_progress(self, current: int, total: int, message: str) -> None:
        """Progress callback for core operations; aborts the run once cancelled."""
        if self._is_cancelled:
            raise WorkerCancelled(message)
        self.progress.emit(current, total, message)

    def run(self) -> None:
        """Override in subclass. Called when thread starts."""
        raise NotImplementedError

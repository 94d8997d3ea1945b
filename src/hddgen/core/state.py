"""Psygnal-powered task state shared between the allocation engine and a front end."""

from __future__ import annotations

from typing import ClassVar

from psygnal import EventedModel, Signal
from pydantic import ConfigDict

from hddgen.core.utils.logging import get_logger

logger = get_logger(__name__)


class TaskState(EventedModel):
    """Container for tracking a long-running task with progress.

    Provides signals for progress updates, cancellation, and completion.
    A front end connects to the signals (or to ``events.running`` for
    running-state changes); the engine only calls the setters.

    Attributes:
        running: Whether a task is currently running.
        progress: Progress value between 0.0 and 1.0.
        message: Status message describing current task state.
        cancellable: Whether the task can be cancelled.
        cancel_requested: Set by request_cancel() while running.

    Signals:
        progress_changed: Emitted when progress value changes (float).
        cancelled: Emitted when cancellation is requested.
        finished: Emitted when task completes.
    """

    model_config = ConfigDict(validate_assignment=True)

    running: bool = False
    progress: float = 0.0
    message: str = ""
    cancellable: bool = False
    cancel_requested: bool = False

    progress_changed: ClassVar[Signal] = Signal(float)
    cancelled: ClassVar[Signal] = Signal()
    finished: ClassVar[Signal] = Signal()

    def set_progress(self, value: float, message: str = "") -> None:
        """Update task progress and emit progress_changed signal.

        Args:
            value: Progress value between 0.0 and 1.0.
            message: Optional status message describing current progress.
        """
        self.progress = value
        self.message = message
        self.progress_changed.emit(value)

    def set_running(self, running: bool) -> None:
        """Set running state; a new run clears any earlier cancel request."""
        if running:
            self.cancel_requested = False
        self.running = running

    def request_cancel(self) -> None:
        """Request cancellation of the current task.

        Does nothing unless a cancellable task is running.
        """
        if not (self.running and self.cancellable):
            return
        self.cancel_requested = True
        logger.info("--> emit cancelled")
        self.cancelled.emit()

    def mark_finished(self) -> None:
        self.set_running(False)
        self.cancellable = False
        self.finished.emit()

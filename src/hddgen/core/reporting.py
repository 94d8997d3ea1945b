"""Progress-reporting collaborators driven by the monitor loop.

The allocation engine holds no UI dependency; it talks to whatever object
implements ``ProgressReporter``. All methods are called on the owner thread.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Protocol

from hddgen.core.state import TaskState
from hddgen.core.utils.logging import get_logger
from hddgen.core.utils.progress import ProgressCallback, ProgressMessage, format_mib_progress

logger = get_logger(__name__)

FAILURE_MESSAGE = "Failed to create HDD file"


class ProgressReporter(Protocol):
    def report_total(self, total_units: int) -> None:
        """Open the reporting session with the total size in whole MiB."""

    def report_progress(self, current: int, total: int) -> None:
        ...

    def should_cancel(self) -> bool:
        ...

    def report_finished(self, success: bool) -> None:
        """Close the reporting session."""


ReporterFactory = Callable[[], ProgressReporter]


class NullReporter:
    """Reporter that ignores everything and never cancels."""

    def report_total(self, total_units: int) -> None:
        pass

    def report_progress(self, current: int, total: int) -> None:
        pass

    def should_cancel(self) -> bool:
        return False

    def report_finished(self, success: bool) -> None:
        pass


class LoggingReporter:
    """Log progress changes at INFO, and a failure notice at ERROR."""

    def __init__(self, label: str = "Creating HDD file") -> None:
        self._label = label
        self._last: Optional[int] = None

    def report_total(self, total_units: int) -> None:
        logger.info(f"{self._label}: {total_units} MiB")

    def report_progress(self, current: int, total: int) -> None:
        if current == self._last:
            return
        self._last = current
        logger.info(f"{self._label}: {format_mib_progress(current, total)}")

    def should_cancel(self) -> bool:
        return False

    def report_finished(self, success: bool) -> None:
        if not success:
            logger.error(FAILURE_MESSAGE)


class CallbackReporter:
    """Forward updates as ProgressMessage objects to a ProgressCallback.

    Args:
        progress_cb: Receives every update ("start", "write", "done"/"failed").
        is_cancelled: Polled by the monitor loop; True requests cancellation.
        path: Optional image path attached to each message.
    """

    def __init__(
        self,
        progress_cb: ProgressCallback,
        is_cancelled: Optional[Callable[[], bool]] = None,
        path: Optional[Path] = None,
    ) -> None:
        self._progress_cb = progress_cb
        self._is_cancelled = is_cancelled
        self._path = path
        self._total: Optional[int] = None
        self._done = 0

    def report_total(self, total_units: int) -> None:
        self._total = total_units
        self._progress_cb(ProgressMessage(phase="start", done=0, total=total_units, path=self._path))

    def report_progress(self, current: int, total: int) -> None:
        self._done = current
        self._progress_cb(
            ProgressMessage(
                phase="write",
                done=current,
                total=total,
                detail=format_mib_progress(current, total),
                path=self._path,
            )
        )

    def should_cancel(self) -> bool:
        return bool(self._is_cancelled and self._is_cancelled())

    def report_finished(self, success: bool) -> None:
        self._progress_cb(
            ProgressMessage(
                phase="done" if success else "failed",
                done=self._done,
                total=self._total,
                detail="" if success else FAILURE_MESSAGE,
                path=self._path,
            )
        )


class TaskStateReporter:
    """Adapt a TaskState to the reporter protocol.

    ``task_state.request_cancel()`` (from any front end) makes should_cancel()
    return True on the next monitor tick.
    """

    def __init__(self, task_state: TaskState) -> None:
        self._task_state = task_state

    def report_total(self, total_units: int) -> None:
        self._task_state.set_running(True)
        self._task_state.cancellable = True
        self._task_state.set_progress(0.0, format_mib_progress(0, total_units))

    def report_progress(self, current: int, total: int) -> None:
        pct = max(0.0, min(1.0, current / total)) if total else 0.0
        self._task_state.set_progress(pct, format_mib_progress(current, total))

    def should_cancel(self) -> bool:
        return self._task_state.cancel_requested

    def report_finished(self, success: bool) -> None:
        self._task_state.message = "Done" if success else FAILURE_MESSAGE
        self._task_state.mark_finished()

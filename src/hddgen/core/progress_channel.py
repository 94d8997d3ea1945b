"""Progress counter and one-way latches shared by the writer and the monitor.

The writer is the only thread that moves the counter; the monitor only
samples it. Latches are ``threading.Event`` objects and are never cleared.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from hddgen.core.allocation import ErrorKind
from hddgen.core.utils.logging import get_logger

logger = get_logger(__name__)


class ProgressChannel:
    """Completed MiB units plus error/canceled/completed latches for one request.

    Args:
        total_units: Upper bound for the counter (``units_for_size``).
        clock: Monotonic time source used for emission timestamps.
    """

    def __init__(self, total_units: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.total_units: int = int(total_units)
        self._clock = clock
        self._units: int = 0
        self._last_emit: float = clock()

        self._errored = threading.Event()
        self._canceled = threading.Event()
        self._completed = threading.Event()

        # first error kind wins
        self._latch_lock = threading.Lock()
        self._error_kind: Optional[ErrorKind] = None

    # -----------------------------
    # Writer side
    # -----------------------------
    def publish_progress(self, units: int) -> None:
        """Publish ``units`` completed MiB. Never moves the counter backward."""
        units = min(int(units), self.total_units)
        if units > self._units:
            self._units = units
        self._last_emit = self._clock()

    def mark_last_emit(self) -> None:
        self._last_emit = self._clock()

    def seconds_since_emit(self) -> float:
        return self._clock() - self._last_emit

    def set_error(self, kind: ErrorKind) -> None:
        with self._latch_lock:
            if self._error_kind is None:
                self._error_kind = kind
        self._errored.set()

    def set_completed(self) -> None:
        self._completed.set()

    def set_canceled(self) -> bool:
        """Set the cancel latch. Returns True if this call set it."""
        with self._latch_lock:
            if self._canceled.is_set():
                return False
            self._canceled.set()
            return True

    # -----------------------------
    # Reader side
    # -----------------------------
    @property
    def units(self) -> int:
        return self._units

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self._error_kind

    def is_errored(self) -> bool:
        return self._errored.is_set()

    def is_canceled(self) -> bool:
        return self._canceled.is_set()

    def is_completed(self) -> bool:
        return self._completed.is_set()

    def is_terminal(self) -> bool:
        return self._errored.is_set() or self._completed.is_set()

    def __str__(self) -> str:
        return (
            f"ProgressChannel(units: {self._units}/{self.total_units}, errored: {self.is_errored()}, "
            f"canceled: {self.is_canceled()}, completed: {self.is_completed()})"
        )


class Canceler:
    """Sets the cancel latch of a ProgressChannel.

    Cancellation is advisory: the writer only checks it at MiB-unit
    boundaries, and once seen it cannot be undone.
    """

    def __init__(self, channel: ProgressChannel) -> None:
        self._channel = channel

    def request_cancel(self) -> None:
        if self._channel.set_canceled():
            logger.info("cancel requested")

    @property
    def requested(self) -> bool:
        return self._channel.is_canceled()

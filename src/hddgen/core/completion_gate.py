from __future__ import annotations

import threading
import time
from typing import Optional


class CompletionGate:
    """One-shot cross-thread wake signal.

    ``signal()`` releases every current and future ``wait()``; only the first
    call actually fires. A waiter that arrives after the fact returns at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._fired_at: float = 0.0

    def signal(self) -> bool:
        """Fire the gate. Returns True only for the call that fired it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._fired_at = time.monotonic()
            self._event.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until signaled (or ``timeout`` seconds). Returns the signaled state."""
        return self._event.wait(timeout)

    def is_signaled(self) -> bool:
        return self._event.is_set()

    def status(self) -> tuple[bool, float]:
        """Return (signaled, seconds_since_signal)."""
        with self._lock:
            if not self._event.is_set():
                return False, 0.0
            return True, max(0.0, time.monotonic() - self._fired_at)

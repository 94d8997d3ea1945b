"""Single-consumer task queue bound to the thread that owns progress reporting."""

from __future__ import annotations

import queue
import threading
from typing import Callable, Optional

from hddgen.core.utils.logging import get_logger

logger = get_logger(__name__)

Task = Callable[[], None]


class OwnerContext:
    """Task queue drained only by its owner thread.

    Any thread may ``post()`` a zero-argument task; the owner runs them in
    order from ``run_pending()`` or ``run_until()``.

    Args:
        thread_id: ``threading.get_ident()`` of the owner. Defaults to the
            constructing thread.
    """

    def __init__(self, thread_id: Optional[int] = None) -> None:
        self._thread_id: int = thread_id if thread_id is not None else threading.get_ident()
        self._q: "queue.Queue[Task]" = queue.Queue()

    @property
    def thread_id(self) -> int:
        return self._thread_id

    def bind_current_thread(self) -> None:
        """Make the calling thread the owner (e.g. a dedicated UI thread)."""
        self._thread_id = threading.get_ident()

    def is_current(self) -> bool:
        return threading.get_ident() == self._thread_id

    def post(self, task: Task) -> None:
        self._q.put(task)

    def pending(self) -> int:
        return self._q.qsize()

    def run_pending(self, timeout: Optional[float] = None, max_tasks: int = 200) -> int:
        """Run queued tasks on the owner thread; returns how many ran.

        With ``timeout`` set, waits up to that long for the first task.
        A task that raises is logged and does not stop the others.
        """
        if not self.is_current():
            raise RuntimeError("OwnerContext.run_pending() called off the owner thread")

        n = 0
        block = timeout is not None
        while n < max_tasks:
            try:
                task = self._q.get(block=block and n == 0, timeout=timeout if n == 0 else None)
            except queue.Empty:
                break
            n += 1
            try:
                task()
            except Exception:
                logger.exception(f"Exception in owner task {getattr(task, '__qualname__', repr(task))}")
        return n

    def run_until(self, stop: threading.Event, poll_interval_s: float = 0.05) -> None:
        """Serve posted tasks until ``stop`` is set."""
        while not stop.is_set():
            self.run_pending(timeout=poll_interval_s)
        self.run_pending()

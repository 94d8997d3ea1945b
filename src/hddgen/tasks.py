"""Threaded helper for creating an image without blocking the owner thread.

The helper calls ``Dispatcher.begin()`` from a daemon thread, so the request
is always marshalled to the owner thread; progress and cancellation flow
through the TaskState object.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from hddgen.core.allocation import AllocationOutcome, AllocationRequest
from hddgen.core.reporting import TaskStateReporter
from hddgen.core.state import TaskState
from hddgen.core.utils.logging import get_logger
from hddgen.runner.dispatcher import Dispatcher

logger = get_logger(__name__)


def run_create_hdd(
    dispatcher: Dispatcher,
    request: AllocationRequest,
    task_state: TaskState,
    *,
    on_result: Optional[Callable[[AllocationOutcome], None]] = None,
) -> threading.Thread:
    """Create a disk image in a background thread.

    The owner thread must keep serving its OwnerContext (``run_pending`` /
    ``run_until``) for the request to make progress.

    Args:
        dispatcher: Dispatcher bound to the owner thread.
        request: Image to create.
        task_state: Receives progress; ``task_state.request_cancel()`` cancels.
        on_result: Called with the outcome, from the background thread.

    Returns:
        The started daemon thread.
    """

    def _worker() -> None:
        try:
            outcome = dispatcher.begin(request, reporter_factory=lambda: TaskStateReporter(task_state))
        except Exception as exc:  # pragma: no cover - surfaced to caller via task_state
            logger.exception(f"create failed for {request.path}")
            task_state.message = f"Error: {exc}"
            task_state.mark_finished()
            return
        if on_result:
            on_result(outcome)

    # Mark running immediately so a front end can react before the owner picks it up
    task_state.set_running(True)
    task_state.cancellable = True
    t = threading.Thread(target=_worker, name=f"run_create_hdd-{request.path.name}", daemon=True)
    t.start()
    return t

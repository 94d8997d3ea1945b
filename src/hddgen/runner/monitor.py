"""Owner-side polling loop between the writer and the progress reporter.

Polling at a fixed cadence (instead of blocking on the writer) lets the owner
thread refresh the reporter and sample user cancellation in the same loop.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from hddgen.core.progress_channel import Canceler, ProgressChannel
from hddgen.core.reporting import ProgressReporter

DEFAULT_POLL_INTERVAL_S: float = 0.05


def monitor_until_terminal(
    channel: ProgressChannel,
    canceler: Canceler,
    reporter: ProgressReporter,
    *,
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    is_worker_alive: Optional[Callable[[], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Forward progress and cancel requests until the writer is done.

    Returns when every unit has been published, the error latch is set, or
    (if given) ``is_worker_alive()`` turns False. Returns the last unit count.
    """
    total = channel.total_units
    while True:
        current = channel.units
        if current == total or channel.is_errored():
            break
        if is_worker_alive is not None and not is_worker_alive():
            break

        reporter.report_progress(current, total)
        if reporter.should_cancel():
            canceler.request_cancel()

        sleep(poll_interval_s)
    return channel.units

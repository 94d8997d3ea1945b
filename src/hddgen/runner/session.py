"""Per-request allocation context: progress channel, canceler, gate and status."""

from __future__ import annotations

import threading
from typing import Optional

from hddgen.core.allocation import (
    AllocationOutcome,
    AllocationRequest,
    ChunkLayout,
    ErrorKind,
    RequestStatus,
)
from hddgen.core.completion_gate import CompletionGate
from hddgen.core.progress_channel import Canceler, ProgressChannel
from hddgen.core.reporting import NullReporter, ProgressReporter, ReporterFactory
from hddgen.core.utils.logging import get_logger
from hddgen.core.write_worker import DEFAULT_PROGRESS_INTERVAL_S, WriteWorker
from hddgen.runner.monitor import DEFAULT_POLL_INTERVAL_S, monitor_until_terminal

logger = get_logger(__name__)


class AllocationSession:
    """Everything that belongs to one AllocationRequest.

    ``run()`` must be called on the owner thread, at most once. It opens the
    reporter session, starts exactly one WriteWorker thread, monitors it,
    closes the reporter session and finally fires ``gate``.

    Attributes:
        request: The accepted request (immutable).
        channel: Progress counter and latches shared with the writer.
        canceler: Sets the cancel latch; safe to call at any time.
        gate: Fires once when the request reaches a terminal state.
        status: Current RequestStatus.
        outcome: Set when ``run()`` finishes normally.
        error: Exception raised on the owner thread, if any.
    """

    def __init__(
        self,
        request: AllocationRequest,
        *,
        reporter_factory: ReporterFactory = NullReporter,
        layout: Optional[ChunkLayout] = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        progress_interval_s: float = DEFAULT_PROGRESS_INTERVAL_S,
    ) -> None:
        self.request = request
        self.channel = ProgressChannel(request.total_units)
        self.canceler = Canceler(self.channel)
        self.gate = CompletionGate()
        self.status: RequestStatus = RequestStatus.PENDING
        self.outcome: Optional[AllocationOutcome] = None
        self.error: Optional[BaseException] = None

        self._reporter_factory = reporter_factory
        self._layout = layout or ChunkLayout()
        self._poll_interval_s = poll_interval_s
        self._progress_interval_s = progress_interval_s

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def mark_dispatching(self) -> None:
        with self._lock:
            if self.status is RequestStatus.PENDING:
                self.status = RequestStatus.DISPATCHING

    def is_running(self) -> bool:
        t = self._thread
        return bool(t and t.is_alive())

    def run(self) -> AllocationOutcome:
        with self._lock:
            if self.status not in (RequestStatus.PENDING, RequestStatus.DISPATCHING):
                raise RuntimeError(f"allocation for {self.request.path} already started ({self.status.value})")
            self.status = RequestStatus.RUNNING

        logger.info(f"starting {self.request}")
        try:
            self.outcome = self._run_with_reporter()
            return self.outcome
        except BaseException as exc:
            self.error = exc
            raise
        finally:
            self.status = RequestStatus.COMPLETED if self.channel.is_completed() else RequestStatus.ERRORED
            self.gate.signal()

    def _run_with_reporter(self) -> AllocationOutcome:
        reporter: ProgressReporter = self._reporter_factory()
        total = self.request.total_units
        reporter.report_total(total)

        worker = WriteWorker(
            self.channel,
            layout=self._layout,
            progress_interval_s=self._progress_interval_s,
        )
        t = threading.Thread(
            target=worker.run,
            name=f"WriteWorker-{self.request.path.name}",
            daemon=True,
            args=(self.request.path, self.request.size_bytes),
        )
        self._thread = t
        t.start()

        try:
            monitor_until_terminal(
                self.channel,
                self.canceler,
                reporter,
                poll_interval_s=self._poll_interval_s,
                is_worker_alive=t.is_alive,
            )
        except BaseException:
            # the writer cleans up after itself once it sees the latch
            self.canceler.request_cancel()
            t.join()
            raise
        t.join()

        outcome = self._make_outcome()
        reporter.report_progress(outcome.units_written, total)
        reporter.report_finished(outcome.success)
        if not outcome.success:
            logger.error(f"failed to create {self.request.path}: {outcome.error_kind}")
        return outcome

    def _make_outcome(self) -> AllocationOutcome:
        success = self.channel.is_completed() and not self.channel.is_errored()
        kind = self.channel.error_kind
        if not success and kind is None:
            kind = ErrorKind.SEEK_OR_WRITE_FAILURE
        return AllocationOutcome(
            path=self.request.path,
            success=success,
            total_units=self.request.total_units,
            units_written=self.channel.units,
            error_kind=None if success else kind,
        )

"""Start allocations on the owner thread, from whichever thread asks.

On the owner thread ``begin()`` runs the session inline. From any other
thread it posts a re-entry task to the OwnerContext and blocks on the
session's CompletionGate, so callers see the same contract either way.
"""

from __future__ import annotations

from typing import Optional

from hddgen.core.alloc_config import AllocConfigData
from hddgen.core.allocation import AllocationOutcome, AllocationRequest, ChunkLayout
from hddgen.core.reporting import NullReporter, ReporterFactory
from hddgen.core.utils.logging import get_logger
from hddgen.runner.owner_context import OwnerContext
from hddgen.runner.session import AllocationSession

logger = get_logger(__name__)


class Dispatcher:
    """Thread-affinity front door for allocation requests.

    Args:
        owner: Task queue of the thread that owns progress reporting.
        reporter_factory: Builds one reporter per request, on the owner thread.
        config: Poll and progress intervals. Defaults to AllocConfigData().
        layout: Chunk geometry handed to the writer.
    """

    def __init__(
        self,
        owner: OwnerContext,
        *,
        reporter_factory: ReporterFactory = NullReporter,
        config: Optional[AllocConfigData] = None,
        layout: Optional[ChunkLayout] = None,
    ) -> None:
        self._owner = owner
        self._reporter_factory = reporter_factory
        self._config = config or AllocConfigData()
        self._layout = layout or ChunkLayout()

    @property
    def owner(self) -> OwnerContext:
        return self._owner

    def create_session(
        self,
        request: AllocationRequest,
        reporter_factory: Optional[ReporterFactory] = None,
    ) -> AllocationSession:
        return AllocationSession(
            request,
            reporter_factory=reporter_factory or self._reporter_factory,
            layout=self._layout,
            poll_interval_s=self._config.poll_interval_s,
            progress_interval_s=self._config.progress_interval_s,
        )

    def begin(
        self,
        request: AllocationRequest,
        reporter_factory: Optional[ReporterFactory] = None,
    ) -> AllocationOutcome:
        """Create ``request`` and return its outcome once it is terminal."""
        return self.begin_session(self.create_session(request, reporter_factory))

    def begin_session(self, session: AllocationSession) -> AllocationOutcome:
        if self._owner.is_current():
            return session.run()

        session.mark_dispatching()
        logger.debug(f"marshalling {session.request.path} to owner thread {self._owner.thread_id}")

        def _reenter() -> None:
            try:
                session.run()
            except Exception as exc:
                # re-raised in the calling thread from session.error
                logger.debug("owner task failed; handing error back to caller", exc_info=True)
                if not session.gate.is_signaled():
                    session.error = exc
                    session.gate.signal()

        self._owner.post(_reenter)
        session.gate.wait()

        if session.error is not None:
            raise session.error
        if session.outcome is None:
            raise RuntimeError(f"{session.request} finished without an outcome")
        return session.outcome

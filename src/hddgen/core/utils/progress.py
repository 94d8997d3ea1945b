"""Core progress and cancellation primitives (UI-agnostic)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


@dataclass(frozen=True)
class ProgressMessage:
    """Progress update forwarded to callback-style observers.

    Args:
        phase: Logical phase name ("start", "write", "done", "failed").
        done: Completed MiB units.
        total: Total MiB units; None when not yet known.
        detail: Short display string, e.g. "12 / 40 MiB".
        path: Image being written.
    """

    phase: str
    done: int = 0
    total: Optional[int] = None
    detail: str = ""
    path: Optional[Path] = None

    @property
    def fraction(self) -> float:
        if not self.total:
            return 0.0
        return max(0.0, min(1.0, self.done / self.total))


ProgressCallback = Callable[[ProgressMessage], None]


class CancelledError(Exception):
    """Raised when a core operation is cancelled."""


def format_mib_progress(current: int, total: int) -> str:
    return f"{current} / {total} MiB"

"""Request, outcome and sizing types for disk image allocation.

The image is written in MiB *units*; each unit is a fixed number of
zero-filled chunks. The chunk geometry is a locked pair (see ChunkLayout):
the partial-unit detection in the writer depends on
``chunk_size * chunks_per_unit == MIB``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from hddgen.core.utils.progress import CancelledError

KIB: int = 1024
MIB: int = 1024 * 1024

DEFAULT_CHUNK_SIZE: int = 4 * KIB
DEFAULT_CHUNKS_PER_UNIT: int = 256


def units_for_size(size_bytes: int) -> int:
    """Return the number of MiB units needed for ``size_bytes`` (rounded up).

    Shared by the reporter-facing total and the writer loop bound so that the
    reported fraction always matches the work actually done.
    """
    return (size_bytes + (MIB - 1)) // MIB


@dataclass(frozen=True)
class ChunkLayout:
    """Chunk geometry used by the writer.

    Attributes:
        chunk_size: Bytes per zero-filled write (whole KiB).
        chunks_per_unit: Chunks per MiB unit.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunks_per_unit: int = DEFAULT_CHUNKS_PER_UNIT

    def __post_init__(self) -> None:
        if self.chunk_size <= 0 or self.chunk_size % KIB != 0:
            raise ValueError(f"chunk_size must be a positive multiple of {KIB}, got {self.chunk_size}")
        if self.chunk_size * self.chunks_per_unit != MIB:
            raise ValueError(
                f"chunk_size * chunks_per_unit must equal {MIB} "
                f"(got {self.chunk_size} * {self.chunks_per_unit})"
            )

    @property
    def chunk_kib(self) -> int:
        return self.chunk_size // KIB

    def full_chunks(self, size_bytes: int, unit: int) -> int:
        """Number of whole chunks to write for ``unit`` (rounded down)."""
        remaining_kib = size_bytes // KIB - unit * (MIB // KIB)
        return max(0, min(self.chunks_per_unit, remaining_kib // self.chunk_kib))

    def tail_bytes(self, size_bytes: int, unit: int, full_chunks: int) -> int:
        """Bytes left after ``full_chunks`` in a partial unit."""
        return size_bytes - (unit * MIB + full_chunks * self.chunk_size)


class AllocationError(Exception):
    """Raised by AllocationOutcome.raise_for_error() for a failed allocation."""

    def __init__(self, kind: "ErrorKind", path: Path) -> None:
        super().__init__(f"failed to create {path}: {kind.value}")
        self.kind = kind
        self.path = path


class ErrorKind(str, Enum):
    """Why an allocation ended in the errored state."""

    PATH_ALREADY_EXISTS = "path_already_exists"
    OPEN_FAILURE = "open_failure"
    SEEK_OR_WRITE_FAILURE = "seek_or_write_failure"
    USER_CANCELED = "user_canceled"


class RequestStatus(str, Enum):
    """Lifecycle of one allocation request. COMPLETED and ERRORED are terminal."""

    PENDING = "pending"
    DISPATCHING = "dispatching"
    RUNNING = "running"
    COMPLETED = "completed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestStatus.COMPLETED, RequestStatus.ERRORED)


@dataclass(frozen=True)
class AllocationRequest:
    """Destination path and requested size of a new disk image.

    Attributes:
        path: File to create. Must not exist when the write begins.
        size_bytes: Final file length in bytes (> 0).
    """

    path: Path
    size_bytes: int

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "path", Path(self.path))
        if int(self.size_bytes) <= 0:
            raise ValueError(f"size_bytes must be > 0, got {self.size_bytes}")
        object.__setattr__(self, "size_bytes", int(self.size_bytes))

    @classmethod
    def from_gib(cls, path: Union[str, Path], gib: Union[int, float]) -> "AllocationRequest":
        return cls(path=Path(path), size_bytes=int(gib * 1024 * MIB))

    @property
    def total_units(self) -> int:
        return units_for_size(self.size_bytes)

    def __str__(self) -> str:
        return f"AllocationRequest(path: {self.path}, size_bytes: {self.size_bytes}, units: {self.total_units})"


@dataclass(frozen=True)
class AllocationOutcome:
    """Result handed back to the caller of Dispatcher.begin()."""

    path: Path
    success: bool
    total_units: int
    units_written: int = 0
    error_kind: Optional[ErrorKind] = None

    @property
    def status(self) -> RequestStatus:
        return RequestStatus.COMPLETED if self.success else RequestStatus.ERRORED

    def raise_for_error(self) -> None:
        """Raise CancelledError or AllocationError unless the allocation succeeded."""
        if self.success:
            return
        kind = self.error_kind or ErrorKind.SEEK_OR_WRITE_FAILURE
        if kind is ErrorKind.USER_CANCELED:
            raise CancelledError(f"creation of {self.path} was canceled")
        raise AllocationError(kind, self.path)

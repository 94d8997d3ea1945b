"""Background writer that grows and zero-fills a new disk image.

The writer never raises: every failure is latched on the ProgressChannel
and any file it created is removed before ``run`` returns.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO, Callable, Optional

from hddgen.core.allocation import ChunkLayout, ErrorKind, units_for_size
from hddgen.core.progress_channel import ProgressChannel
from hddgen.core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROGRESS_INTERVAL_S: float = 0.1

Opener = Callable[[Path], IO[bytes]]


def _open_exclusive(path: Path) -> IO[bytes]:
    return open(path, "xb")


class _Abort(Exception):
    """Internal: unwind the unit loop after the error latch has been set."""


class WriteWorker:
    """Allocate and zero-fill one image file, publishing progress per MiB unit.

    Args:
        channel: Shared progress/cancel state for this request.
        layout: Chunk geometry (locked ``chunk_size * chunks_per_unit == MiB``).
        progress_interval_s: Minimum spacing between progress emissions; the
            final unit is always emitted.
        opener: Opens ``path`` for exclusive binary writing. Injected by tests.
    """

    def __init__(
        self,
        channel: ProgressChannel,
        *,
        layout: Optional[ChunkLayout] = None,
        progress_interval_s: float = DEFAULT_PROGRESS_INTERVAL_S,
        opener: Opener = _open_exclusive,
    ) -> None:
        self._channel = channel
        self._layout = layout or ChunkLayout()
        self._progress_interval_s = float(progress_interval_s)
        self._opener = opener
        self._zeros = bytes(self._layout.chunk_size)
        self._fh: Optional[IO[bytes]] = None

    def run(self, path: Path, size_bytes: int) -> None:
        """Create ``path`` as ``size_bytes`` zero bytes. Safe to use as a thread target."""
        path = Path(path)
        self._fh = None
        try:
            self._run(path, int(size_bytes))
        except Exception:
            # nothing may escape the writer thread
            logger.exception(f"unexpected error writing {path}")
            if self._fh is not None:
                self._fail(self._fh, path, ErrorKind.SEEK_OR_WRITE_FAILURE)
            else:
                self._channel.set_error(ErrorKind.OPEN_FAILURE)

    def _run(self, path: Path, size_bytes: int) -> None:
        if path.exists():
            logger.error(f"refusing to overwrite existing file: {path}")
            self._channel.set_error(ErrorKind.PATH_ALREADY_EXISTS)
            return

        try:
            fh = self._opener(path)
        except FileExistsError:
            logger.error(f"file appeared before it could be created: {path}")
            self._channel.set_error(ErrorKind.PATH_ALREADY_EXISTS)
            return
        except OSError as e:
            logger.error(f"failed to open {path} for writing: {e}")
            self._channel.set_error(ErrorKind.OPEN_FAILURE)
            return

        self._fh = fh

        try:
            self._preallocate(fh, path, size_bytes)
            self._fill(fh, path, size_bytes)
        except _Abort:
            return

        try:
            fh.flush()
            fh.close()
        except OSError as e:
            logger.error(f"failed to flush {path}: {e}")
            self._fail(fh, path, ErrorKind.SEEK_OR_WRITE_FAILURE)
            return

        logger.info(f"created {path} ({size_bytes} bytes)")
        self._channel.set_completed()

    def _preallocate(self, fh: IO[bytes], path: Path, size_bytes: int) -> None:
        try:
            fh.seek(size_bytes - 1, os.SEEK_SET)
            fh.write(b"\x00")
        except OSError as e:
            logger.error(f"failed to size {path} to {size_bytes} bytes: {e}")
            self._fail(fh, path, ErrorKind.SEEK_OR_WRITE_FAILURE)
            raise _Abort from e

        self._channel.mark_last_emit()

        try:
            fh.seek(0, os.SEEK_SET)
        except OSError as e:
            logger.error(f"failed to rewind {path}: {e}")
            self._fail(fh, path, ErrorKind.SEEK_OR_WRITE_FAILURE)
            raise _Abort from e

    def _fill(self, fh: IO[bytes], path: Path, size_bytes: int) -> None:
        layout = self._layout
        total_units = units_for_size(size_bytes)

        for unit in range(total_units):
            full_chunks = layout.full_chunks(size_bytes, unit)
            try:
                for _ in range(full_chunks):
                    fh.write(self._zeros)

                if full_chunks != layout.chunks_per_unit:
                    tail = layout.tail_bytes(size_bytes, unit, full_chunks)
                    fh.write(self._zeros[:tail])
            except OSError as e:
                logger.error(f"write failed at unit {unit}/{total_units} of {path}: {e}")
                self._fail(fh, path, ErrorKind.SEEK_OR_WRITE_FAILURE)
                raise _Abort from e

            is_last = (unit + 1) == total_units
            if is_last or self._channel.seconds_since_emit() >= self._progress_interval_s:
                self._channel.publish_progress(unit + 1)

            if self._channel.is_canceled():
                logger.info(f"canceled at unit {unit + 1}/{total_units}, removing {path}")
                self._fail(fh, path, ErrorKind.USER_CANCELED)
                raise _Abort

    def _fail(self, fh: Optional[IO[bytes]], path: Path, kind: ErrorKind) -> None:
        """Close the handle, remove the partial file, then latch ``kind``."""
        if fh is not None:
            try:
                fh.close()
            except OSError as e:
                logger.warning(f"error closing {path}: {e}")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"failed to remove partial file {path}: {e}")
        self._channel.set_error(kind)


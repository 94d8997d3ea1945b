"""Pytest configuration and shared fixtures for hddgen tests."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest


class RecordingReporter:
    """Reporter that records every call with the calling thread id."""

    def __init__(self, cancel: bool = False) -> None:
        self.calls: List[Tuple[str, tuple, int]] = []
        self.cancel = cancel

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args, threading.get_ident()))

    def report_total(self, total_units: int) -> None:
        self._record("report_total", total_units)

    def report_progress(self, current: int, total: int) -> None:
        self._record("report_progress", current, total)

    def should_cancel(self) -> bool:
        self._record("should_cancel")
        return self.cancel

    def report_finished(self, success: bool) -> None:
        self._record("report_finished", success)

    def names(self) -> List[str]:
        return [name for name, _, _ in self.calls]

    def progress(self) -> List[Tuple[int, int]]:
        return [args for name, args, _ in self.calls if name == "report_progress"]

    def threads(self) -> set:
        return {tid for _, _, tid in self.calls}


@pytest.fixture
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def image_path(tmp_path: Path) -> Path:
    """Destination path for a new image (does not exist yet)."""
    return tmp_path / "DEV9hdd.raw"


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    """Undo setup_logging() so handlers do not leak between tests."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


def _assert_zero_filled(path: Path, size: int) -> None:
    assert path.stat().st_size == size
    with open(path, "rb") as f:
        while True:
            block = f.read(1024 * 1024)
            if not block:
                break
            assert block.count(0) == len(block)


@pytest.fixture
def assert_zero_filled():
    """Check that a file has exactly `size` bytes, all zero."""
    return _assert_zero_filled


@pytest.fixture
def make_reporter():
    """Factory for RecordingReporter instances (e.g. one that always cancels)."""
    return RecordingReporter

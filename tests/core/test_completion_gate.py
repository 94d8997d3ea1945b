"""Tests for CompletionGate."""

from __future__ import annotations

import threading
import time

from hddgen.core.completion_gate import CompletionGate


def test_signal_fires_once() -> None:
    gate = CompletionGate()
    assert gate.signal() is True
    assert gate.signal() is False
    assert gate.is_signaled()


def test_wait_after_signal_returns_immediately() -> None:
    gate = CompletionGate()
    gate.signal()
    start = time.monotonic()
    assert gate.wait() is True
    assert time.monotonic() - start < 0.5


def test_wait_times_out_when_never_signaled() -> None:
    gate = CompletionGate()
    assert gate.wait(timeout=0.01) is False
    assert gate.status() == (False, 0.0)


def test_wait_released_from_other_thread() -> None:
    gate = CompletionGate()
    released = []

    def _waiter() -> None:
        released.append(gate.wait(timeout=5.0))

    t = threading.Thread(target=_waiter)
    t.start()
    time.sleep(0.02)
    gate.signal()
    t.join(timeout=5.0)
    assert released == [True]


def test_concurrent_signal_only_one_winner() -> None:
    gate = CompletionGate()
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def _signal() -> None:
        barrier.wait()
        fired = gate.signal()
        with lock:
            results.append(fired)

    threads = [threading.Thread(target=_signal) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results.count(True) == 1
    signaled, since = gate.status()
    assert signaled and since >= 0.0

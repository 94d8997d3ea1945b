"""Tests for the owner-side monitor loop (no real writer thread)."""

from __future__ import annotations

from hddgen.core.allocation import ErrorKind
from hddgen.core.progress_channel import Canceler, ProgressChannel
from hddgen.runner.monitor import monitor_until_terminal


def test_forwards_progress_until_all_units_published(recording_reporter) -> None:
    channel = ProgressChannel(3)

    def _sleep(_: float) -> None:
        channel.publish_progress(channel.units + 1)

    last = monitor_until_terminal(channel, Canceler(channel), recording_reporter, sleep=_sleep)

    assert last == 3
    assert recording_reporter.progress() == [(0, 3), (1, 3), (2, 3)]


def test_forwards_cancel_request(make_reporter) -> None:
    channel = ProgressChannel(10)
    canceler = Canceler(channel)
    reporter = make_reporter(cancel=True)

    def _sleep(_: float) -> None:
        # a writer reacting to the latch at its next unit boundary
        if channel.is_canceled():
            channel.set_error(ErrorKind.USER_CANCELED)

    monitor_until_terminal(channel, canceler, reporter, sleep=_sleep)

    assert channel.is_canceled()
    assert channel.error_kind is ErrorKind.USER_CANCELED
    assert reporter.names().count("should_cancel") == 1


def test_stops_when_errored_before_first_poll(recording_reporter) -> None:
    channel = ProgressChannel(4)
    channel.set_error(ErrorKind.OPEN_FAILURE)

    monitor_until_terminal(channel, Canceler(channel), recording_reporter, sleep=lambda s: None)

    assert recording_reporter.calls == []


def test_stops_when_worker_is_gone(recording_reporter) -> None:
    channel = ProgressChannel(4)

    last = monitor_until_terminal(
        channel,
        Canceler(channel),
        recording_reporter,
        is_worker_alive=lambda: False,
        sleep=lambda s: None,
    )

    assert last == 0
    assert recording_reporter.calls == []


def test_uses_poll_interval(recording_reporter) -> None:
    channel = ProgressChannel(1)
    slept = []

    def _sleep(s: float) -> None:
        slept.append(s)
        channel.publish_progress(1)

    monitor_until_terminal(channel, Canceler(channel), recording_reporter, poll_interval_s=0.25, sleep=_sleep)
    assert slept == [0.25]

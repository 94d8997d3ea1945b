"""Command line entry point.

Examples:
    hddgen create ~/images/DEV9hdd.raw --size 40G
    hddgen create disk.raw --size 3145738 --log-level DEBUG
    hddgen about

The main thread is the owner context: it runs the monitor loop and prints a
progress line. Ctrl-C requests cancellation; the partial file is removed.
"""

from __future__ import annotations

import argparse
import re
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional, TextIO

from hddgen import __version__
from hddgen.core.alloc_config import AllocConfig
from hddgen.core.allocation import MIB, AllocationRequest
from hddgen.core.reporting import FAILURE_MESSAGE
from hddgen.core.utils.about import getVersionInfo
from hddgen.core.utils.logging import get_logger, setup_logging
from hddgen.core.utils.progress import format_mib_progress
from hddgen.runner.dispatcher import Dispatcher
from hddgen.runner.owner_context import OwnerContext

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?)(?:i?b)?\s*$", re.IGNORECASE)
_SIZE_SHIFT = {"": 0, "k": 10, "m": 20, "g": 30, "t": 40}


def parse_size(text: str) -> int:
    """Parse a byte count such as ``"40G"``, ``"512MiB"`` or ``"1048576"`` (binary units)."""
    m = _SIZE_RE.match(text)
    if m is None:
        raise ValueError(f"invalid size: {text!r}")
    number, suffix = m.groups()
    size = int(float(number) * (1 << _SIZE_SHIFT[suffix.lower()]))
    if size <= 0:
        raise ValueError(f"size must be > 0: {text!r}")
    return size


class ConsoleReporter:
    """Single-line console progress; cancellation comes from ``cancel_event``."""

    def __init__(self, cancel_event: threading.Event, stream: Optional[TextIO] = None) -> None:
        self._cancel_event = cancel_event
        self._stream = stream if stream is not None else sys.stderr
        self._last = ""

    def report_total(self, total_units: int) -> None:
        self._write(f"Creating HDD file: {format_mib_progress(0, total_units)}")

    def report_progress(self, current: int, total: int) -> None:
        self._write(f"Creating HDD file: {format_mib_progress(current, total)}")

    def should_cancel(self) -> bool:
        return self._cancel_event.is_set()

    def report_finished(self, success: bool) -> None:
        self._stream.write("\n")
        if not success:
            self._stream.write(f"{FAILURE_MESSAGE}\n")
        self._stream.flush()

    def _write(self, line: str) -> None:
        if line == self._last:
            return
        self._last = line
        self._stream.write(f"\r{line}")
        self._stream.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hddgen", description="Create zero-filled virtual HDD image files.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default="WARNING", help="console log level (default: WARNING)")
    parser.add_argument("--log-file", type=Path, default=None, help="log file (default: per-user config dir)")
    parser.add_argument("--config", type=Path, default=None, help="alloc_config.json to use")

    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="create a new image file")
    create.add_argument("path", type=Path, help="destination file (must not exist)")
    create.add_argument("--size", default=None, help="image size, e.g. 40G or 512M (default from config)")

    sub.add_parser("about", help="print version and environment info")
    return parser


def _cmd_about() -> int:
    for key, value in getVersionInfo().items():
        print(f"{key}: {value}")
    return EXIT_OK


def _cmd_create(args: argparse.Namespace, cfg: AllocConfig) -> int:
    try:
        size = parse_size(args.size) if args.size else cfg.data.default_size_gib * 1024 * MIB
        request = AllocationRequest(path=args.path.expanduser(), size_bytes=size)
    except ValueError as e:
        print(f"hddgen: {e}", file=sys.stderr)
        return EXIT_USAGE

    cancel_event = threading.Event()

    def _on_sigint(signum, frame) -> None:
        logger.info("SIGINT received, cancelling")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        dispatcher = Dispatcher(
            OwnerContext(),
            reporter_factory=lambda: ConsoleReporter(cancel_event),
            config=cfg.data,
        )
        outcome = dispatcher.begin(request)
    finally:
        signal.signal(signal.SIGINT, previous)

    if not outcome.success:
        print(f"hddgen: {request.path}: {outcome.error_kind.value if outcome.error_kind else 'failed'}", file=sys.stderr)
        return EXIT_FAILED

    cfg.remember_directory(request.path)
    try:
        cfg.save()
    except OSError as e:
        logger.warning(f"could not save config: {e}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.command == "about":
        return _cmd_about()

    cfg = AllocConfig.load(config_path=args.config)
    return _cmd_create(args, cfg)


if __name__ == "__main__":
    sys.exit(main())

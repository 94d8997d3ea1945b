"""
Logging utilities for hddgen.

- Configure logging via `setup_logging(...)` once, from the application
  entry point (the CLI). Library modules never configure handlers.
- Get module-specific loggers via `get_logger(__name__)`.
- Reconfigure anytime by calling `setup_logging(...)` again.

Uses the *root logger*. By default the log file lives in the per-user
config directory (platformdirs, app name "hddgen"), in a "logs" subfolder.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_config_dir

# Must match the app name used by alloc_config.py.
_APP_NAME = "hddgen"
_LOG_FILENAME = "hddgen.log"

_LOG_FILE_PATH: Optional[Path] = None


def default_log_dir() -> Path:
    return Path(user_config_dir(_APP_NAME)) / "logs"


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 5,
) -> None:
    """
    Configure root logging with a console handler and a rotating file handler.

    Console uses the given level; the file captures everything at DEBUG.
    Calling this multiple times removes the old handlers first.

    Parameters
    ----------
    level:
        Logging level for console (e.g. "DEBUG", "INFO").
    log_file:
        Explicit log file path. Defaults to ``<user_config_dir>/logs/hddgen.log``.
    max_bytes:
        Max size in bytes for rotating log file.
    backup_count:
        Number of rotated log files to keep.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()

    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)

    root.setLevel(logging.DEBUG)

    console_fmt = "[%(levelname)s] %(name)s:%(funcName)s:%(lineno)d: %(message)s"
    file_fmt = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s:%(funcName)s:%(lineno)d: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt=console_fmt))
    root.addHandler(console)

    global _LOG_FILE_PATH
    log_path = Path(log_file) if log_file is not None else default_log_dir() / _LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    _LOG_FILE_PATH = log_path

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt=file_fmt, datefmt=datefmt))
    root.addHandler(file_handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger by name; None returns the 'hddgen' logger.

    Use like:
        logger = get_logger(__name__)
        logger.info("Hello")
    """
    if name is None:
        name = _APP_NAME
    return logging.getLogger(name)


def get_log_file_path() -> Optional[Path]:
    """Path of the active log file, or None before `setup_logging` has run."""
    return _LOG_FILE_PATH

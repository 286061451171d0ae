# src/btcperf/shared/logging_conf.py
"""
Logging Configuration - Root Logger Setup for Command-line Runs

Installs one formatter on the root logger with a console handler and, when a
log file or directory is configured, a size-rotated file handler. Modules
then just use ``logging.getLogger(__name__)``.

Console output goes to stdout; it can be switched off with
``BTCPERF_LOG_STDOUT=false`` when a supervisor already captures the
process output.

Files that USE this module:
- btcperf.app (called once before the processing pass)
- tests.test_logging_conf (unit tests)
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_NAME = "btcperf.log"


def _resolve_log_path(
    log_file: Optional[Union[str, Path]], log_dir: Optional[Union[str, Path]]
) -> Optional[Path]:
    """A directory wins over a file name; parent directories are created."""
    if log_dir:
        path = Path(log_dir) / DEFAULT_LOG_NAME
    elif log_file:
        path = Path(log_file)
    else:
        return None
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _stdout_enabled(stdout: Optional[bool]) -> bool:
    if stdout is not None:
        return stdout
    return os.environ.get("BTCPERF_LOG_STDOUT", "true").strip().lower() in ("1", "true", "yes")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    stdout: Optional[bool] = None,
) -> Optional[Path]:
    """
    Reconfigure the root logger, replacing any handlers installed earlier.

    Args:
        level: Level number or name such as "DEBUG"
        log_file: Rotating log file path
        log_dir: Directory for ``btcperf.log``; takes precedence over log_file
        max_bytes: Rotation size per file
        backup_count: Rotated files to keep
        stdout: Console logging on/off; None reads BTCPERF_LOG_STDOUT

    Returns:
        Path of the log file, or None when logging to the console only
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: List[logging.Handler] = []

    log_path = _resolve_log_path(log_file, log_dir)
    if log_path is not None:
        handlers.append(
            RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )

    # Never leave the process silent
    if _stdout_enabled(stdout) or not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    logging.getLogger(__name__).info(
        "Logging to %s at %s",
        log_path or "stdout",
        logging.getLevelName(level),
    )
    return log_path

"""
Logging Configuration for Peak Availability

Root logger setup shared by every entry point:
- Rotating log file (5MB max, 3 backups) under the config directory,
  or wherever --log-file points
- Optional stdout handler for interactive runs
- Debug toggle that swaps level and format on the live handlers

Copyright (C) 2025 Peter Hirst (WU2C)

Usage:
    from logging_config import setup_logging, set_debug_mode

    setup_logging(log_file=args.log_file)
    set_debug_mode(args.debug)
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

from config_manager import get_config_dir

_debug_mode = False
_log_file_path: Optional[Path] = None
_handlers: List[logging.Handler] = []

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-25s | %(message)s'
LOG_FORMAT_DEBUG = '%(asctime)s | %(levelname)-8s | %(name)-25s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3

LOG_FILE_NAME = 'peak_availability.log'


def get_log_directory() -> Path:
    """Logs live in a subfolder of the settings directory."""
    log_dir = get_config_dir() / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_file_path() -> Path:
    global _log_file_path
    if _log_file_path is None:
        _log_file_path = get_log_directory() / LOG_FILE_NAME
    return _log_file_path


def _configure(handler: logging.Handler):
    """Apply the level and format for the current debug setting."""
    if _debug_mode:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG, datefmt=DATE_FORMAT))
    else:
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))


def setup_logging(console: bool = True, file: bool = True, log_file: Optional[Path] = None) -> None:
    """
    Replace the root logger's handlers.

    Safe to call again; handlers installed by an earlier call are
    closed first.

    Args:
        console: Also log to stdout
        file: Log to a rotating file
        log_file: Log file location instead of the config directory
    """
    global _log_file_path

    if log_file is not None:
        _log_file_path = Path(log_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers do the filtering

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if handler in _handlers:
            handler.close()
    _handlers.clear()

    if file:
        log_path = get_log_file_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _handlers.append(logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding='utf-8'
        ))
    if console:
        _handlers.append(logging.StreamHandler(sys.stdout))

    for handler in _handlers:
        _configure(handler)
        root_logger.addHandler(handler)

    logging.getLogger('urllib3').setLevel(logging.WARNING)

    logger = logging.getLogger('logging_config')
    logger.info("Peak Availability logging initialized")
    if file:
        logger.info(f"Log file: {get_log_file_path()}")


def set_debug_mode(enabled: bool) -> None:
    """Switch the installed handlers between INFO and DEBUG output."""
    global _debug_mode

    _debug_mode = bool(enabled)
    for handler in _handlers:
        _configure(handler)

    logging.getLogger('logging_config').info(
        "Debug logging ENABLED" if _debug_mode else "Debug logging DISABLED")

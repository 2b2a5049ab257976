"""
Logging setup for the daemon.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False


def configure(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure loguru sinks once per process.

    Parameters
    ----------
    level
        Minimum level for the stderr sink.
    log_file
        Optional persistent file sink (DEBUG, rotated).
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level=level.upper(), enqueue=True)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_file,
            level="DEBUG",
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    return _logger

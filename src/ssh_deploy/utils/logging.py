"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional

_LOGGING_CONFIGURED = False
_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)
        _LOGGING_CONFIGURED = True
    return logging.getLogger(name)


def set_verbose(enabled: bool) -> None:
    """Switch the package loggers between INFO and DEBUG."""
    get_logger("ssh_deploy").setLevel(logging.DEBUG if enabled else logging.INFO)

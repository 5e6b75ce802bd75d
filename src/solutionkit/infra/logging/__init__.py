from __future__ import annotations

from .config import LOG_LEVELS, LoggingConfig
from .core import configure_logging, get_logger

__all__ = [
    "LOG_LEVELS",
    "LoggingConfig",
    "configure_logging",
    "get_logger",
]

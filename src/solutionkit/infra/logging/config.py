from __future__ import annotations

"""
Logging Settings.

Severity names accepted by the CLI and the settings the logging bootstrap
needs: level, console output and an optional rotating log file.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

LOG_LEVELS: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

CONSOLE_FORMAT = "%(levelname)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging settings resolved from the CLI configuration.

    Attributes:
        level: Severity name, one of LOG_LEVELS.
        console: Write records to stderr.
        log_file: Optional log file, rotated by size.
        max_bytes: Size of a log file segment before rotation.
        backup_count: Rotated segments kept next to the log file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None
    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    @property
    def level_value(self) -> int:
        return LOG_LEVELS.get(str(self.level or "").strip().upper(), logging.INFO)

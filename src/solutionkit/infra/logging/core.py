from __future__ import annotations

"""
Logging Bootstrap.

Installs the CLI log sinks on the root logger. Records go through a queue
and are written by a listener thread; every handler installed here is
marked so a later forced call replaces only those handlers.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import List, Optional, Tuple

from solutionkit.infra.logging.config import CONSOLE_FORMAT, FILE_FORMAT, LoggingConfig

_CONFIGURED_FLAG_ATTR: str = "_solutionkit_configured"
_QUEUE_LISTENER_ATTR: str = "_solutionkit_queue_listener"
_MANAGED_HANDLER_ATTR: str = "_solutionkit_handler"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Configure the root logger once.

    Repeated calls are no-ops unless force is set. A log file that cannot be
    opened is reported as a warning and the console sink is kept.

    Args:
        cfg: Level and sinks to install.
        force: Replace a previous configuration.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    level = cfg.level_value
    root.setLevel(level)
    _detach_managed(root)

    sinks, problems = _build_sinks(cfg, level)
    if sinks:
        log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        queue_handler = QueueHandler(log_queue)
        setattr(queue_handler, _MANAGED_HANDLER_ATTR, True)

        listener = QueueListener(log_queue, *sinks, respect_handler_level=True)
        listener.start()
        root.addHandler(queue_handler)
        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        atexit.register(_stop_listener, listener)

    setattr(root, _CONFIGURED_FLAG_ATTR, True)
    for problem in problems:
        root.warning(problem)
    return root


def get_logger(name: str) -> logging.Logger:
    """Acquire a named logger instance (usually __name__)."""
    return logging.getLogger(name)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _build_sinks(cfg: LoggingConfig, level: int) -> Tuple[List[logging.Handler], List[str]]:
    sinks: List[logging.Handler] = []
    problems: List[str] = []

    if cfg.console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        sinks.append(console)

    if cfg.log_file:
        try:
            parent = os.path.dirname(os.path.abspath(cfg.log_file))
            os.makedirs(parent, exist_ok=True)
            log_file = RotatingFileHandler(
                cfg.log_file,
                maxBytes=cfg.max_bytes,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            problems.append(f"Cannot open log file {cfg.log_file!r}: {e}")
        else:
            log_file.setFormatter(logging.Formatter(FILE_FORMAT))
            sinks.append(log_file)

    for handler in sinks:
        handler.setLevel(level)
        setattr(handler, _MANAGED_HANDLER_ATTR, True)
    return sinks, problems


def _detach_managed(root: logging.Logger) -> None:
    """Remove the handlers and listener of a previous configuration."""
    for handler in list(root.handlers):
        if getattr(handler, _MANAGED_HANDLER_ATTR, False):
            root.removeHandler(handler)
            handler.close()

    _stop_listener(getattr(root, _QUEUE_LISTENER_ATTR, None))
    setattr(root, _QUEUE_LISTENER_ATTR, None)


def _stop_listener(listener: Optional[QueueListener]) -> None:
    # atexit and a forced reconfiguration may both reach the same listener
    if listener is not None and getattr(listener, "_thread", None) is not None:
        listener.stop()

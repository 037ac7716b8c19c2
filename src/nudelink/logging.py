"""Structured logging: JSON lines to a rotating file, console events on stderr.

stdout is reserved for cleaned URLs so the CLI can be used in pipes.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

LOGGER_NAME = "nudelink"
LOG_FILE_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _rendered(handler: logging.Handler, level: int, renderer) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer))
    return handler


def setup_logging(log_dir: str, *, verbose: bool = False) -> structlog.stdlib.BoundLogger:
    """Route structlog through stdlib logging and return the CLI logger.

    The file always records DEBUG; the console shows warnings unless *verbose*.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    handlers = [
        _rendered(
            RotatingFileHandler(log_path / f"{LOGGER_NAME}.log", maxBytes=LOG_FILE_BYTES, backupCount=LOG_FILE_BACKUPS),
            logging.DEBUG,
            structlog.processors.JSONRenderer(),
        ),
        _rendered(
            logging.StreamHandler(sys.stderr),
            logging.DEBUG if verbose else logging.WARNING,
            structlog.dev.ConsoleRenderer(colors=False),
        ),
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Repeated CLI invocations in one process must not stack handlers
    root_logger.handlers[:] = handlers

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(LOGGER_NAME)

"""Centralized logging configuration using Loguru for the VideoTube backend.

Loguru is configured once on import and an intercept handler routes records
emitted through the standard library ``logging`` module (uvicorn, SQLAlchemy,
httpx) into the same sink. The level is read from ``LOG_LEVEL``.
"""

import logging
import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger.remove()

logger.add(
    sys.stdout,
    level=LOG_LEVEL,
    format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{line} | {message}",
    backtrace=True,
    diagnose=False,
)


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to Loguru, keeping the caller's frame."""

    def emit(
        self, record: logging.LogRecord
    ) -> None:  # pragma: no cover - simple routing
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


logging.basicConfig(handlers=[InterceptHandler()], level=LOG_LEVEL)

# NOTE: library loggers install their own handlers; replace them so every
# record goes through the Loguru sink exactly once.
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "httpx"):
    logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger(name).propagate = False

# Usage: from core.logging import logger

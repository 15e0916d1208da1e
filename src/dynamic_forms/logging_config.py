"""Logging setup for the Dynamic Forms API

Records below WARNING go to stdout and the rest to stderr. Development gets
DEBUG output with source locations, other environments a compact INFO format.
Uvicorn's loggers are routed through the same handlers so server and
application lines share one format.
"""

import logging
import sys
from typing import Optional

from dynamic_forms.config import config, is_development

DEVELOPMENT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d %(message)s"
PRODUCTION_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class BelowWarningFilter(logging.Filter):
    """Pass DEBUG and INFO records only"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def resolve_log_level(log_level: Optional[str] = None) -> int:
    """Level named by LOG_LEVEL, else DEBUG in development and INFO elsewhere"""
    name = log_level or config.get("log_level")
    if name:
        level = logging.getLevelName(name.strip().upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if is_development() else logging.INFO


def _stream_handler(stream, level: int, formatter: logging.Formatter):
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> int:
    """Configure the root logger and align uvicorn's loggers with it.

    Returns:
        The level the root logger was set to
    """
    level = resolve_log_level()
    formatter = logging.Formatter(
        DEVELOPMENT_FORMAT if is_development() else PRODUCTION_FORMAT
    )

    stdout_handler = _stream_handler(sys.stdout, logging.DEBUG, formatter)
    stdout_handler.addFilter(BelowWarningFilter())
    stderr_handler = _stream_handler(sys.stderr, logging.WARNING, formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(level)

    # Statements are logged by the engine itself when DB_ECHO is on
    if not config.get("db_echo"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return level

"""Database connection management"""

import logging
import threading
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from dynamic_forms.config import config
from dynamic_forms.exceptions import StorageConnectionError

logger = logging.getLogger(__name__)

_engine_lock = threading.Lock()
_engine: Optional[Engine] = None


def _build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request handlers may run on different threads than the one that
        # opened the connection
        connect_args["check_same_thread"] = False

    engine = create_engine(
        database_url,
        echo=config["db_echo"],
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    if config["create_tables"]:
        # Import registers the table on SQLModel.metadata
        from dynamic_forms.models.form_submission import FormSubmission  # noqa: F401

        SQLModel.metadata.create_all(engine)
    return engine


def get_engine() -> Engine:
    """Get the process-wide engine, creating it on first use.

    Concurrent first callers wait on the same lock and all receive the engine
    built by whichever of them got there first.
    """
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                database_url = config["database_url"]
                if not database_url:
                    raise StorageConnectionError(
                        "DATABASE_URL environment variable is not set"
                    )
                try:
                    _engine = _build_engine(database_url)
                except OperationalError as e:
                    logger.error(f"Failed to connect to database: {e}")
                    raise StorageConnectionError() from e
                logger.info("Initialized database engine")

    return _engine


def dispose_engine() -> None:
    """Close pooled connections; the next get_engine() call reconnects"""
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("Database connections closed")


def check_connection() -> bool:
    """Return True if a trivial query succeeds against the database"""
    try:
        with Session(get_engine()) as session:
            return session.exec(text("SELECT 1")).first() is not None
    except Exception as e:
        logger.warning(f"Database connectivity check failed: {e}")
        return False


def get_db():
    """Get database session"""
    with Session(get_engine()) as session:
        yield session

"""Tests for the lazily created, process-wide database engine"""

import asyncio
import threading
import time

import pytest
from sqlalchemy.exc import OperationalError

from dynamic_forms.config import config
from dynamic_forms.exceptions import StorageConnectionError
from dynamic_forms.models import database


@pytest.fixture
def fresh_engine_slot(monkeypatch):
    """Start each test with no engine and restore the real one afterwards"""
    monkeypatch.setattr(database, "_engine", None)
    return monkeypatch


def test_engine_is_memoized(fresh_engine_slot):
    first = database.get_engine()
    second = database.get_engine()

    assert first is second


@pytest.mark.asyncio
async def test_concurrent_first_callers_share_one_engine(fresh_engine_slot):
    """Concurrent first callers must not build duplicate engines"""
    builds = []
    builds_lock = threading.Lock()

    def slow_build(database_url):
        time.sleep(0.05)
        engine = object()
        with builds_lock:
            builds.append(engine)
        return engine

    fresh_engine_slot.setattr(database, "_build_engine", slow_build)

    engines = await asyncio.gather(
        *(asyncio.to_thread(database.get_engine) for _ in range(8))
    )

    assert len(builds) == 1
    assert all(engine is builds[0] for engine in engines)


def test_missing_database_url(fresh_engine_slot):
    fresh_engine_slot.setitem(config, "database_url", None)

    with pytest.raises(StorageConnectionError):
        database.get_engine()


def test_connection_failure_is_distinguished(fresh_engine_slot):
    def refuse(database_url):
        raise OperationalError("connect", {}, Exception("connection refused"))

    fresh_engine_slot.setattr(database, "_build_engine", refuse)

    with pytest.raises(StorageConnectionError) as exc_info:
        database.get_engine()

    assert exc_info.value.message == "Database connection error"
    assert database._engine is None


def test_dispose_engine_allows_reconnect(fresh_engine_slot):
    first = database.get_engine()

    database.dispose_engine()
    assert database._engine is None

    second = database.get_engine()
    assert second is not first


def test_check_connection(fresh_engine_slot):
    assert database.check_connection() is True

    def unreachable():
        raise StorageConnectionError()

    fresh_engine_slot.setattr(database, "get_engine", unreachable)

    assert database.check_connection() is False

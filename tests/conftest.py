"""
Pytest configuration and shared fixtures for SpryDB tests.
"""

import io
from typing import Any, Dict, List, Optional, Tuple

import pytest

from sprydb.adapters.base import AdapterResult, BaseAdapter, PreparedStatement
from sprydb.adapters.sqlite_adapter import SQLiteAdapter
from sprydb.core.config import Settings
from sprydb.driver import DatabaseDriver
from sprydb.errors import ConnectionError


class FakeAdapter(BaseAdapter):
    """
    Adapter that records what the driver asks of it.

    ``responses`` maps SQL text to the AdapterResult (or exception) the
    next execution of that text produces.
    """

    ENGINE = "fake"

    def __init__(self, config: Optional[Dict[str, Any]] = None, fail_connect: bool = False):
        super().__init__(config or {})
        self.fail_connect = fail_connect
        self.prepared: List[str] = []
        self.executed: List[Tuple[str, Dict[str, Any]]] = []
        self.responses: Dict[str, Any] = {}
        self.connect_calls = 0

    def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectionError("Connect Error (2002) connection refused", engine=self.ENGINE)
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False

    def prepare(self, sql: str) -> PreparedStatement:
        self.prepared.append(sql)
        return PreparedStatement(sql=sql, compiled_sql=sql)

    def execute(self, statement, params=None) -> AdapterResult:
        self.executed.append((statement.sql, dict(params or {})))
        response = self.responses.get(statement.sql)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return AdapterResult(columns=[], rows=[], row_count=1)
        return response


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def fake_driver(fake_adapter, settings):
    """Driver over the recording adapter."""
    return DatabaseDriver(fake_adapter, settings=settings, error_stream=io.StringIO())


@pytest.fixture
def error_stream():
    return io.StringIO()


@pytest.fixture
def sqlite_driver(settings, error_stream):
    """Driver over an in-memory SQLite database with a seeded users table."""
    driver = DatabaseDriver(SQLiteAdapter({"database": ":memory:"}), settings=settings, error_stream=error_stream)
    driver.query(
        "CREATE TABLE users (ID INTEGER PRIMARY KEY, username TEXT NOT NULL, status TEXT, score REAL)"
    )
    driver.insert("users", {"username": "alice", "status": "active", "score": 9.5})
    driver.insert("users", {"username": "bob", "status": "inactive", "score": None})
    driver.insert("users", {"username": "carol", "status": "active", "score": 7.0})
    yield driver
    driver.close()


@pytest.fixture
def make_adapter():
    """Factory for extra recording adapters."""
    return FakeAdapter

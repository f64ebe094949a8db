from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from dbexplorer.main import create_app
from dbexplorer.repositories.connection_registry import ConnectionRegistry
from dbexplorer.repositories.session_store import SessionStore


class FakeResult:
    """Enough of a SQLAlchemy CursorResult for the explorers."""

    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def scalar(self):
        if not self._rows:
            return None
        return next(iter(self._rows[0].values()))


class FakeSqlConnection:
    """Answers statements by the first matching SQL fragment.

    A rule's response is a list of row dicts, an exception instance to raise,
    or a callable ``(sql, params)`` returning either of those.
    """

    def __init__(self, rules: list[tuple[str, Any]]):
        self.rules = rules
        self.executed: list[tuple[str, dict]] = []
        self.execution_options = AsyncMock(return_value=self)
        self.close = AsyncMock()

    async def execute(self, statement, params=None):
        sql = str(statement)
        params = params or {}
        self.executed.append((sql, params))
        for fragment, response in self.rules:
            if fragment in sql:
                if callable(response):
                    response = response(sql, params)
                if isinstance(response, Exception):
                    raise response
                return FakeResult(response)
        raise AssertionError(f"Unexpected SQL: {sql}")


class FakeEngine:
    def __init__(self, conn: FakeSqlConnection | None = None, connect_error: Exception | None = None):
        self.conn = conn
        self.connect = AsyncMock(return_value=conn, side_effect=connect_error)
        self.dispose = AsyncMock()


class EngineFactory:
    """Records the URL an explorer builds and hands back a fake engine."""

    def __init__(self, engine: FakeEngine):
        self.engine = engine
        self.urls = []

    def __call__(self, url):
        self.urls.append(url)
        return self.engine


def mock_http_client_factory(handler):
    """Client factory for HTTP explorers that routes every request to ``handler``."""

    def factory(**kwargs):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    return factory


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def registry(tmp_path):
    return ConnectionRegistry(tmp_path / "connections.json")


@pytest.fixture
def client(session_store, registry):
    app = create_app(session_store=session_store, connection_registry=registry)
    with TestClient(app) as test_client:
        yield test_client

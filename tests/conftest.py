"""
Pytest configuration for pgwrite-bench tests

Unit and contract tests run against an in-memory stand-in for the psycopg
connection pool that keeps real transaction semantics (staged rows are only
visible after commit, an exception inside a transaction discards them).
Integration tests need a real PostgreSQL reachable through DATABASE_URL and
are skipped otherwise.
"""

import os
from contextlib import contextmanager
from typing import Any, List, Optional

import psycopg
import pytest
import structlog


class FakeDatabase:
    """Shared state behind every FakeConnection handed out by FakePool"""

    def __init__(self):
        self.rows: List[tuple] = []
        self.transactions: List[int] = []
        self.pipelines = 0
        self.rollbacks = 0
        self.truncates = 0
        self.fail_on_payload: Optional[str] = None
        self.fail_on_truncate = False
        self.executed: List[str] = []
        self.fail_on_statement: Optional[str] = None


class FakeResult:
    def __init__(self, row):
        self._row = row

    def fetchone(self):
        return self._row


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def executemany(self, query: Any, params_seq):
        for params in params_seq:
            if params[0] == self.conn.db.fail_on_payload:
                raise psycopg.errors.UniqueViolation(
                    f"duplicate key value violates unique constraint (payload={params[0]})"
                )
            self.conn.stage(tuple(params))


class FakeConnection:
    def __init__(self, db: FakeDatabase):
        self.db = db
        self._staged: Optional[List[tuple]] = None

    @contextmanager
    def pipeline(self):
        self.db.pipelines += 1
        yield

    @contextmanager
    def transaction(self):
        self._staged = []
        try:
            yield
        except Exception:
            self.db.rollbacks += 1
            self._staged = None
            raise
        self.db.rows.extend(self._staged)
        self.db.transactions.append(len(self._staged))
        self._staged = None

    def stage(self, row: tuple):
        if self._staged is None:
            # Outside an explicit transaction the pool commits on release
            self.db.rows.append(row)
        else:
            self._staged.append(row)

    def cursor(self):
        return FakeCursor(self)

    def execute(self, query: Any, params=None):
        text = repr(query)
        self.db.executed.append(text)
        if self.db.fail_on_statement and self.db.fail_on_statement in text:
            raise psycopg.errors.SyntaxError(f"syntax error in {text}")
        if "TRUNCATE" in text:
            if self.db.fail_on_truncate:
                raise psycopg.OperationalError("server closed the connection unexpectedly")
            self.db.truncates += 1
            self.db.rows.clear()
            return FakeResult(None)
        if "count(*)" in text:
            return FakeResult((len(self.db.rows),))
        return FakeResult((1,))


class FakePool:
    """Duck-typed psycopg_pool.ConnectionPool"""

    def __init__(self):
        self.db = FakeDatabase()
        self.connections_handed_out = 0

    @contextmanager
    def connection(self):
        self.connections_handed_out += 1
        yield FakeConnection(self.db)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration applied by CLI tests"""
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_pool() -> FakePool:
    """Function-scoped in-memory pool"""
    return FakePool()


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not set; skipping PostgreSQL integration tests")
    return url


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests (no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "contract: Interface contract tests against in-memory fakes"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests with PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "requires_postgres: Tests requiring DATABASE_URL"
    )

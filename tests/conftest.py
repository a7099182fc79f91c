"""Shared test fixtures for the database handle test suite."""

from unittest.mock import MagicMock

import pytest


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_cursor():
    """Mock RealDictCursor that tracks executed SQL."""
    cursor = MagicMock()
    cursor.fetchone.return_value = {"id": 1}
    cursor.fetchall.return_value = []
    cursor.rowcount = 1
    cursor.description = None
    return cursor


@pytest.fixture
def mock_conn(mock_cursor):
    """Mock psycopg2 connection whose cursor() context yields mock_cursor."""
    conn = MagicMock()
    conn.closed = 0
    conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    return conn


@pytest.fixture
def handle(mock_conn):
    """DatabaseHandle wrapping the mock connection."""
    from dbhandle.handle import DatabaseHandle
    return DatabaseHandle(mock_conn)


@pytest.fixture(autouse=True)
def reset_shared_handle():
    """Forget the process-wide handle between tests."""
    from dbhandle import registry
    registry._instance = None
    yield
    registry._instance = None


@pytest.fixture
def clean_db_env(monkeypatch):
    """Remove every database variable from the environment."""
    for name in ("DATABASE_URL", "DB_NAME", "DB_HOST", "DB_USER",
                 "DB_PASSWORD", "DB_PORT", "DB_CONNECT_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_env(clean_db_env, monkeypatch):
    """Set discrete database environment variables."""
    monkeypatch.setenv("DB_NAME", "app")
    monkeypatch.setenv("DB_HOST", "localhost")
    monkeypatch.setenv("DB_USER", "app_user")
    monkeypatch.setenv("DB_PASSWORD", "secret")


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------

def make_user_row(**kwargs):
    """Create a users row with sensible defaults."""
    defaults = {
        "id": 1,
        "name": "alice",
        "email": "alice@example.com",
    }
    defaults.update(kwargs)
    return defaults

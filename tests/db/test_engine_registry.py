"""Tests for balance_kernel.db.engine: named engines and read-only scopes."""

import pytest
from sqlalchemy import text

from balance_kernel.db.engine import (
    BALANCES_DB,
    EXPLORER_DB,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)


@pytest.fixture(autouse=True)
def _reset_engines():
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def sqlite_url(tmp_path):
    def _url(name: str) -> str:
        return f"sqlite:///{tmp_path / name}.db"

    return _url


class TestEngineRegistry:

    def test_uninitialized_name_raises(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine(EXPLORER_DB)
        with pytest.raises(RuntimeError):
            get_session(BALANCES_DB)

    def test_two_named_engines(self, sqlite_url):
        explorer = init_engine_from_url(sqlite_url("explorer"), name=EXPLORER_DB, pool_size=2)
        balances = init_engine_from_url(sqlite_url("balances"), name=BALANCES_DB, pool_size=2)

        assert get_engine(EXPLORER_DB) is explorer
        assert get_engine(BALANCES_DB) is balances
        assert explorer is not balances

    def test_reinitialize_replaces_engine(self, sqlite_url):
        first = init_engine_from_url(sqlite_url("a"), pool_size=1)
        second = init_engine_from_url(sqlite_url("b"), pool_size=1)
        assert get_engine() is second
        assert first is not second

    def test_initialization_logged(self, sqlite_url, captured_logs):
        init_engine_from_url(sqlite_url("logged"), name=BALANCES_DB, pool_size=3)
        records = [r for r in captured_logs() if r["message"] == "engine_initialized"]
        assert records[0]["database"] == BALANCES_DB
        assert records[0]["dialect"] == "sqlite"
        assert records[0]["pool_size"] == 3

    def test_reset_forgets_engines(self, sqlite_url):
        init_engine_from_url(sqlite_url("gone"), pool_size=1)
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()


class TestSessionScope:

    def test_scope_never_commits(self, sqlite_url):
        engine = init_engine_from_url(sqlite_url("scoped"), pool_size=1)
        with engine.begin() as connection:
            connection.execute(text("CREATE TABLE t (x INTEGER)"))
        with session_scope() as session:
            session.execute(text("INSERT INTO t VALUES (1)"))
        with session_scope() as session:
            assert session.execute(text("SELECT COUNT(*) FROM t")).scalar() == 0

    def test_exceptions_propagate(self, sqlite_url):
        init_engine_from_url(sqlite_url("raising"), pool_size=1)
        with pytest.raises(ZeroDivisionError):
            with session_scope():
                1 / 0

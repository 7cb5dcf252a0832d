"""
Pytest configuration for the contract registry.

Provides fixtures for:
- An in-memory SQLite store with the schema applied
- A deterministic clock for timestamp assertions
- PostgreSQL connection settings and store for integration tests
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from typing import Callable, Generator

import psycopg
import pytest

from contract_registry.config import Settings, get_settings
from contract_registry.infrastructure.postgres_store import PostgresRecordStore
from contract_registry.infrastructure.sqlite_store import SqliteRecordStore


class FakeClock:
    """Monotonic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Generator[SqliteRecordStore, None, None]:
    """
    Fresh in-memory SQLite store per test.
    """
    sqlite_store = SqliteRecordStore(":memory:")
    sqlite_store.create_schema()
    try:
        yield sqlite_store
    finally:
        sqlite_store.close()


@pytest.fixture
def fresh_settings(monkeypatch) -> Generator[Callable[..., Settings], None, None]:
    """
    Set environment overrides and return freshly parsed settings.

    Clears the cached settings before and after the test.
    """
    get_settings.cache_clear()

    def _apply(**env: str) -> Settings:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "contract_registry"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            conn.execute("SELECT 1;").fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def pg_store(test_dsn: str, db_connection_available: bool) -> Generator[PostgresRecordStore, None, None]:
    """
    PostgreSQL store on empty tables.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    pg = PostgresRecordStore(dsn_override=test_dsn, statement_timeout_ms=5_000)
    pg.create_schema()
    _truncate(test_dsn)
    try:
        yield pg
    finally:
        _truncate(test_dsn)


def _truncate(dsn: str) -> None:
    with psycopg.connect(dsn) as conn:
        conn.execute(
            "TRUNCATE TABLE fungible_extensions, collection_extensions, records "
            "RESTART IDENTITY CASCADE;"
        )

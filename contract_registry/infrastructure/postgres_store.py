"""
PostgreSQL record store backed by psycopg 3.

Connections come from the shared psycopg_pool ``ConnectionPool`` by default,
or from a dedicated (retried) connection when a DSN override is given, which
is what the integration tests use.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from contract_registry.config import get_settings
from contract_registry.infrastructure.db_factory import (
    apply_statement_timeout,
    get_sync_connection,
    get_sync_pool,
)
from contract_registry.infrastructure.store import RecordSession, SqlRecordStore

POSTGRES_SCHEMA: Sequence[str] = (
    """
    CREATE TABLE IF NOT EXISTS records (
        id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL CHECK (char_length(name) >= 1),
        symbol TEXT NOT NULL CHECK (char_length(symbol) BETWEEN 1 AND 10),
        type_tag TEXT NOT NULL CHECK (type_tag IN ('FUNGIBLE', 'COLLECTION')),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS fungible_extensions (
        id BIGSERIAL PRIMARY KEY,
        record_id BIGINT NOT NULL UNIQUE REFERENCES records (id),
        total_supply TEXT NOT NULL CHECK (total_supply ~ '^[0-9]+$'),
        decimals INTEGER NOT NULL CHECK (decimals BETWEEN 0 AND 18),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS collection_extensions (
        id BIGSERIAL PRIMARY KEY,
        record_id BIGINT NOT NULL UNIQUE REFERENCES records (id),
        base_uri TEXT NOT NULL CHECK (char_length(base_uri) >= 1),
        maximum_supply TEXT CHECK (maximum_supply ~ '^[0-9]+$'),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
)


class PostgresSession(RecordSession):
    # Lock only the base row; the extension side of the outer join may be NULL.
    lock_clause = " FOR UPDATE OF r"


class PostgresRecordStore(SqlRecordStore):
    """
    Record store on PostgreSQL.

    Parameters
    ----------
    pool : ConnectionPool, optional
        Pool to borrow connections from. Defaults to the shared pool built
        from settings.
    dsn_override : str, optional
        Open a dedicated connection per transaction instead of using a pool.
    statement_timeout_ms : int, optional
        ``SET LOCAL statement_timeout`` applied to every transaction;
        defaults to ``DB_STATEMENT_TIMEOUT_MS``.
    """

    name = "postgres"
    session_class = PostgresSession
    driver_errors = (psycopg.Error,)

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        dsn_override: Optional[str] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        self._pool = pool
        self._dsn_override = dsn_override
        if statement_timeout_ms is None:
            statement_timeout_ms = get_settings().db_statement_timeout_ms
        self._statement_timeout_ms = statement_timeout_ms

    def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = get_sync_pool()
        return self._pool

    @contextmanager
    def _connection(self, write: bool) -> Iterator[Any]:
        del write  # row locks are taken explicitly with FOR UPDATE
        if self._dsn_override:
            conn_ctx = get_sync_connection(self._dsn_override)
        else:
            conn_ctx = self._get_pool().connection()
        with conn_ctx as conn:
            conn.row_factory = dict_row
            with conn.transaction():
                apply_statement_timeout(conn, self._statement_timeout_ms)
                yield conn

    def _schema_statements(self) -> Sequence[str]:
        return POSTGRES_SCHEMA

    def close(self) -> None:
        # The shared pool is closed by PoolManager at exit.
        return None


__all__ = ["PostgresRecordStore", "PostgresSession", "POSTGRES_SCHEMA"]

"""
SQLite record store on the standard library ``sqlite3`` module.

Used for local development and the unit tests. The store keeps a single
connection (so ``:memory:`` databases survive between transactions) and
serializes transactions on it with a lock. Writes open with
``BEGIN IMMEDIATE`` so concurrent writers queue on the database lock; reads
open deferred and take no write lock.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Sequence

from contract_registry.errors import PersistenceError
from contract_registry.infrastructure.store import RecordSession, SqlRecordStore

SQLITE_SCHEMA: Sequence[str] = (
    """
    CREATE TABLE IF NOT EXISTS records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL CHECK (length(name) >= 1),
        symbol TEXT NOT NULL CHECK (length(symbol) BETWEEN 1 AND 10),
        type_tag TEXT NOT NULL CHECK (type_tag IN ('FUNGIBLE', 'COLLECTION')),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS fungible_extensions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        record_id INTEGER NOT NULL UNIQUE REFERENCES records (id),
        total_supply TEXT NOT NULL
            CHECK (total_supply GLOB '[0-9]*' AND total_supply NOT GLOB '*[^0-9]*'),
        decimals INTEGER NOT NULL CHECK (decimals BETWEEN 0 AND 18),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS collection_extensions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        record_id INTEGER NOT NULL UNIQUE REFERENCES records (id),
        base_uri TEXT NOT NULL CHECK (length(base_uri) >= 1),
        maximum_supply TEXT
            CHECK (maximum_supply GLOB '[0-9]*' AND maximum_supply NOT GLOB '*[^0-9]*'),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)


class SqliteSession(RecordSession):
    placeholder = "?"

    def _adapt(self, value: Any) -> Any:
        # Timestamps are stored as ISO-8601 text; the default adapter is deprecated.
        if isinstance(value, datetime):
            return value.isoformat()
        return value


class SqliteRecordStore(SqlRecordStore):
    """
    Record store on a SQLite file (or ``":memory:"``).
    """

    name = "sqlite"
    session_class = SqliteSession
    driver_errors = (sqlite3.Error,)

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._lock = threading.Lock()
        try:
            # Autocommit mode; transactions are opened explicitly below.
            self._conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open SQLite database {path!r}: {exc}") from exc

    @contextmanager
    def _connection(self, write: bool) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._conn
            # Readers open deferred so they never hold the database write lock.
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseException:
                # A failed COMMIT leaves the transaction open on the shared connection.
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

    def _schema_statements(self) -> Sequence[str]:
        return SQLITE_SCHEMA

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["SqliteRecordStore", "SqliteSession", "SQLITE_SCHEMA"]

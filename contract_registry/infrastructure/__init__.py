"""
Infrastructure package for the contract registry.

Centralizes storage concerns: the store contract shared by all backends,
the PostgreSQL and SQLite stores, and connection factories. Keep this layer
focused on I/O and resource management, decoupled from the record operations.
"""

from typing import Optional

from contract_registry.config import Settings, get_settings
from contract_registry.infrastructure.postgres_store import PostgresRecordStore
from contract_registry.infrastructure.sqlite_store import SqliteRecordStore
from contract_registry.infrastructure.store import RecordSession, RecordStore, SqlRecordStore


def create_store(settings: Optional[Settings] = None) -> SqlRecordStore:
    """Build the store selected by ``DB_BACKEND``."""
    settings = settings or get_settings()
    if settings.db_backend == "postgres":
        return PostgresRecordStore(statement_timeout_ms=settings.db_statement_timeout_ms)
    return SqliteRecordStore(settings.sqlite_path)


__all__ = [
    "PostgresRecordStore",
    "RecordSession",
    "RecordStore",
    "SqlRecordStore",
    "SqliteRecordStore",
    "create_store",
]

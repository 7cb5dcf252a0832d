"""
Storage contract and shared SQL for the contract registry.

A store hands out sessions through ``transaction()``. Every statement issued
through one session commits or rolls back together, which is what keeps a
record and its extension consistent on create and update.

Concrete stores (``PostgresRecordStore``, ``SqliteRecordStore``) only differ
in how they open a transactional connection, their DDL, and small dialect
details carried by their session class (placeholder style, row locking).
"""

from __future__ import annotations

import abc
from contextlib import contextmanager
from datetime import datetime
from typing import (
    Any,
    ContextManager,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    runtime_checkable,
)

from contract_registry.domain.models import (
    RECORD_COLUMNS,
    CollectionExtension,
    Extension,
    FungibleExtension,
    Record,
    RecordView,
    TypeTag,
)
from contract_registry.errors import PersistenceError
from contract_registry.utils.logging import get_logger

log = get_logger(__name__)

# Identifiers are signed 64-bit integers in every backend.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1

# type tag -> (table, mutable columns)
EXTENSION_TABLES: Dict[TypeTag, Tuple[str, Tuple[str, ...]]] = {
    TypeTag.FUNGIBLE: ("fungible_extensions", ("total_supply", "decimals")),
    TypeTag.COLLECTION: ("collection_extensions", ("base_uri", "maximum_supply")),
}

_VIEW_SELECT = """
SELECT r.id, r.name, r.symbol, r.type_tag, r.created_at, r.updated_at,
       f.id AS f_id, f.record_id AS f_record_id, f.total_supply AS f_total_supply,
       f.decimals AS f_decimals, f.created_at AS f_created_at, f.updated_at AS f_updated_at,
       c.id AS c_id, c.record_id AS c_record_id, c.base_uri AS c_base_uri,
       c.maximum_supply AS c_maximum_supply, c.created_at AS c_created_at,
       c.updated_at AS c_updated_at
FROM records r
LEFT JOIN fungible_extensions f ON f.record_id = r.id AND r.type_tag = 'FUNGIBLE'
LEFT JOIN collection_extensions c ON c.record_id = r.id AND r.type_tag = 'COLLECTION'
"""


def _prefixed(row: Mapping[str, Any], prefix: str) -> Optional[Dict[str, Any]]:
    fields = {k[len(prefix):]: v for k, v in row.items() if k.startswith(prefix)}
    if fields.get("id") is None:
        return None
    return fields


def view_from_row(row: Mapping[str, Any]) -> RecordView:
    """Build a ``RecordView`` from one row of the joined view query."""
    record = Record(**{k: v for k, v in row.items() if not k.startswith(("f_", "c_"))})
    extension: Optional[Extension] = None
    fungible = _prefixed(row, "f_")
    collection = _prefixed(row, "c_")
    if fungible is not None:
        extension = FungibleExtension(**fungible)
    elif collection is not None:
        extension = CollectionExtension(**collection)
    return RecordView.compose(record, extension)


class RecordSession:
    """
    Statements against one open transaction.

    Parameters
    ----------
    conn : DB-API style connection
        Must support ``conn.execute(sql, params)`` returning a cursor whose
        rows can be turned into dicts.
    """

    placeholder: str = "%s"
    lock_clause: str = ""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    # -- low level -----------------------------------------------------

    def _adapt(self, value: Any) -> Any:
        return value

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        if self.placeholder != "%s":
            sql = sql.replace("%s", self.placeholder)
        return self._conn.execute(sql, tuple(self._adapt(p) for p in params))

    def _fetchone(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        row = self.execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.execute(sql, params).fetchall()]

    def ping(self) -> None:
        self.execute("SELECT 1").fetchone()

    # -- inserts -------------------------------------------------------

    def insert_record(self, name: str, symbol: str, type_tag: TypeTag, now: datetime) -> Record:
        row = self._fetchone(
            "INSERT INTO records (name, symbol, type_tag, created_at, updated_at) "
            "VALUES (%s, %s, %s, %s, %s) "
            "RETURNING id, name, symbol, type_tag, created_at, updated_at",
            (name, symbol, type_tag.value, now, now),
        )
        return Record(**row)

    def insert_fungible_extension(
        self, record_id: int, total_supply: str, decimals: int, now: datetime
    ) -> FungibleExtension:
        row = self._fetchone(
            "INSERT INTO fungible_extensions "
            "(record_id, total_supply, decimals, created_at, updated_at) "
            "VALUES (%s, %s, %s, %s, %s) "
            "RETURNING id, record_id, total_supply, decimals, created_at, updated_at",
            (record_id, total_supply, decimals, now, now),
        )
        return FungibleExtension(**row)

    def insert_collection_extension(
        self, record_id: int, base_uri: str, maximum_supply: Optional[str], now: datetime
    ) -> CollectionExtension:
        row = self._fetchone(
            "INSERT INTO collection_extensions "
            "(record_id, base_uri, maximum_supply, created_at, updated_at) "
            "VALUES (%s, %s, %s, %s, %s) "
            "RETURNING id, record_id, base_uri, maximum_supply, created_at, updated_at",
            (record_id, base_uri, maximum_supply, now, now),
        )
        return CollectionExtension(**row)

    # -- reads ---------------------------------------------------------

    def fetch_view(self, record_id: int, lock: bool = False) -> Optional[RecordView]:
        if not ID_MIN <= record_id <= ID_MAX:
            return None
        sql = _VIEW_SELECT + "WHERE r.id = %s"
        if lock:
            sql += self.lock_clause
        row = self._fetchone(sql, (record_id,))
        return view_from_row(row) if row is not None else None

    def fetch_all_views(self) -> List[RecordView]:
        return [view_from_row(row) for row in self._fetchall(_VIEW_SELECT + "ORDER BY r.id")]

    # -- updates -------------------------------------------------------

    def update_record(self, record_id: int, changes: Mapping[str, Any], now: datetime) -> None:
        self._update("records", "id", RECORD_COLUMNS, record_id, changes, now)

    def update_extension(
        self, type_tag: TypeTag, record_id: int, changes: Mapping[str, Any], now: datetime
    ) -> None:
        table, columns = EXTENSION_TABLES[type_tag]
        self._update(table, "record_id", columns, record_id, changes, now)

    def _update(
        self,
        table: str,
        key: str,
        allowed: Tuple[str, ...],
        key_value: int,
        changes: Mapping[str, Any],
        now: datetime,
    ) -> None:
        unknown = set(changes) - set(allowed)
        if unknown:
            raise ValueError(f"Cannot update {table} columns: {', '.join(sorted(unknown))}")
        columns = [c for c in allowed if c in changes]
        assignments = ", ".join(f"{c} = %s" for c in columns + ["updated_at"])
        params = [changes[c] for c in columns] + [now, key_value]
        cursor = self.execute(f"UPDATE {table} SET {assignments} WHERE {key} = %s", params)
        if cursor.rowcount == 0:
            raise PersistenceError(
                f"No {table} row with {key} {key_value} to update", operation="update"
            )


@runtime_checkable
class RecordStore(Protocol):
    """
    Interface the record operations depend on.

    Attributes
    ----------
    name : str
        Short backend identifier used in logs.
    """

    name: str

    def transaction(self, write: bool = True) -> ContextManager[RecordSession]:
        """
        Open a transaction; commit on normal exit, roll back on error.

        Pass ``write=False`` for read-only work so backends that distinguish
        the two do not take a write lock.
        """
        ...

    def create_schema(self) -> None:
        """Create the three relations if they do not exist."""
        ...

    def ping(self) -> None:
        """Round-trip a trivial statement, raising ``PersistenceError`` on failure."""
        ...

    def close(self) -> None:
        """Release connections held by the store."""
        ...


class SqlRecordStore(abc.ABC):
    """
    Base class for DB-API backed stores.

    Subclasses set ``name``, ``session_class`` and ``driver_errors``, and
    implement ``_connection`` and ``_schema_statements``. Any driver error
    raised inside a transaction is logged once and re-raised as
    ``PersistenceError``.
    """

    name: str
    session_class: Type[RecordSession] = RecordSession
    driver_errors: Tuple[Type[BaseException], ...] = ()

    @abc.abstractmethod
    def _connection(self, write: bool) -> ContextManager[Any]:  # pragma: no cover - interface only
        """Yield a connection inside an open transaction."""
        raise NotImplementedError

    @abc.abstractmethod
    def _schema_statements(self) -> Sequence[str]:  # pragma: no cover - interface only
        """DDL statements creating the three relations."""
        raise NotImplementedError

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator[RecordSession]:
        try:
            with self._connection(write) as conn:
                yield self.session_class(conn)
        except self.driver_errors as exc:
            log.error(
                f"[STORE FAILED] {self.name}: {exc}",
                extra={"backend": self.name, "error_type": type(exc).__name__},
            )
            raise PersistenceError(f"{self.name} store operation failed: {exc}") from exc

    def create_schema(self) -> None:
        with self.transaction() as session:
            for statement in self._schema_statements():
                session.execute(statement)
        log.info(f"[SCHEMA READY] {self.name}", extra={"backend": self.name})

    def ping(self) -> None:
        with self.transaction(write=False) as session:
            session.ping()

    def close(self) -> None:
        return None

    def __enter__(self) -> "SqlRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "EXTENSION_TABLES",
    "ID_MAX",
    "ID_MIN",
    "RECORD_COLUMNS",
    "RecordSession",
    "RecordStore",
    "SqlRecordStore",
    "view_from_row",
]

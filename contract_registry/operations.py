"""
Record operations: the create, update and read surface of the registry.

Every operation takes the store explicitly as its first argument and a raw
input mapping (or an already validated input model). Validation always runs
before the store is touched; existence and type checks run before any write;
multi-statement writes share one transaction.

Usage:
    from contract_registry.infrastructure import SqliteRecordStore
    from contract_registry import operations

    store = SqliteRecordStore(":memory:")
    store.create_schema()
    view = operations.create_fungible(
        store, {"name": "Token", "symbol": "TKN", "total_supply": "1000000", "decimals": 18}
    )
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from contract_registry.domain.inputs import (
    CreateCollectionInput,
    CreateFungibleInput,
    GetRecordInput,
    UpdateCollectionInput,
    UpdateFungibleInput,
    parse_input,
)
from contract_registry.domain.models import RecordView, TypeTag
from contract_registry.errors import NotFoundError, PersistenceError, TypeMismatchError
from contract_registry.infrastructure.store import RecordSession, RecordStore
from contract_registry.utils.logging import get_logger

log = get_logger(__name__)

Clock = Callable[[], datetime]
Payload = Mapping[str, Any]


def utcnow() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(UTC)


# -- create ------------------------------------------------------------------


def create_fungible(
    store: RecordStore,
    payload: Union[CreateFungibleInput, Payload],
    *,
    clock: Clock = utcnow,
) -> RecordView:
    """
    Create a FUNGIBLE record together with its fungible extension.

    Raises
    ------
    ValidationError
        Input rejected; nothing was written.
    PersistenceError
        Either insert failed; the transaction was rolled back.
    """
    data = parse_input(CreateFungibleInput, payload)
    with store.transaction() as session:
        now = clock()
        record = session.insert_record(data.name, data.symbol, TypeTag.FUNGIBLE, now)
        extension = session.insert_fungible_extension(
            record.id, data.total_supply, data.decimals, now
        )
    log.info(
        f"[RECORD CREATED] {record.id}",
        extra={"record_id": record.id, "type_tag": TypeTag.FUNGIBLE.value},
    )
    return RecordView.compose(record, extension)


def create_collection(
    store: RecordStore,
    payload: Union[CreateCollectionInput, Payload],
    *,
    clock: Clock = utcnow,
) -> RecordView:
    """
    Create a COLLECTION record together with its collection extension.

    A ``maximum_supply`` of ``None`` is stored as NULL (unlimited).
    """
    data = parse_input(CreateCollectionInput, payload)
    with store.transaction() as session:
        now = clock()
        record = session.insert_record(data.name, data.symbol, TypeTag.COLLECTION, now)
        extension = session.insert_collection_extension(
            record.id, data.base_uri, data.maximum_supply, now
        )
    log.info(
        f"[RECORD CREATED] {record.id}",
        extra={"record_id": record.id, "type_tag": TypeTag.COLLECTION.value},
    )
    return RecordView.compose(record, extension)


# -- update ------------------------------------------------------------------


def _changed(current: Any, changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the supplied values that differ from ``current``."""
    if current is None:
        return dict(changes)
    return {k: v for k, v in changes.items() if getattr(current, k) != v}


def _apply_patch(
    session: RecordSession,
    patch: Union[UpdateFungibleInput, UpdateCollectionInput],
    expected: TypeTag,
    clock: Clock,
) -> RecordView:
    current = session.fetch_view(patch.id, lock=True)
    if current is None:
        raise NotFoundError(patch.id)
    if current.type_tag is not expected:
        raise TypeMismatchError(patch.id, expected=expected, actual=current.type_tag)

    record_changes = _changed(current, patch.record_changes())
    extension_changes = patch.extension_changes()
    if extension_changes and current.extension is None:
        raise PersistenceError(
            f"Record with id {patch.id} has no {expected.value.lower()} extension row",
            operation="update",
        )
    extension_changes = _changed(current.extension, extension_changes)

    if not record_changes and not extension_changes:
        return current

    now = clock()
    if record_changes:
        session.update_record(patch.id, record_changes, now)
    if extension_changes:
        session.update_extension(expected, patch.id, extension_changes, now)

    updated = session.fetch_view(patch.id)
    if updated is None:  # pragma: no cover - row is locked for the transaction
        raise NotFoundError(patch.id)
    log.info(
        f"[RECORD UPDATED] {patch.id}",
        extra={
            "record_id": patch.id,
            "type_tag": expected.value,
            "fields": sorted(record_changes) + sorted(extension_changes),
        },
    )
    return updated


def update_fungible(
    store: RecordStore,
    payload: Union[UpdateFungibleInput, Payload],
    *,
    clock: Clock = utcnow,
) -> RecordView:
    """
    Apply a partial update to a FUNGIBLE record.

    ``name``/``symbol`` land on the base record, ``total_supply``/``decimals``
    on the extension. Each row's ``updated_at`` moves only when one of its own
    values actually changes; a patch carrying only ``id`` is a no-op.

    Raises
    ------
    ValidationError
        Input rejected; nothing was read or written.
    NotFoundError
        No record has ``id``.
    TypeMismatchError
        The record is a COLLECTION.
    PersistenceError
        The store failed; the transaction was rolled back.
    """
    patch = parse_input(UpdateFungibleInput, payload)
    with store.transaction() as session:
        return _apply_patch(session, patch, TypeTag.FUNGIBLE, clock)


def update_collection(
    store: RecordStore,
    payload: Union[UpdateCollectionInput, Payload],
    *,
    clock: Clock = utcnow,
) -> RecordView:
    """
    Apply a partial update to a COLLECTION record.

    Symmetric to ``update_fungible`` over ``base_uri``/``maximum_supply``.
    An explicit ``maximum_supply: None`` clears the cap (unlimited).
    """
    patch = parse_input(UpdateCollectionInput, payload)
    with store.transaction() as session:
        return _apply_patch(session, patch, TypeTag.COLLECTION, clock)


# -- read --------------------------------------------------------------------


def get_by_id(
    store: RecordStore,
    payload: Union[GetRecordInput, Payload, int],
) -> Optional[RecordView]:
    """Fetch one record with its extension, or ``None`` if the id is unknown."""
    if isinstance(payload, int) and not isinstance(payload, bool):
        payload = {"id": payload}
    data = parse_input(GetRecordInput, payload)
    with store.transaction(write=False) as session:
        return session.fetch_view(data.id)


def get_all(store: RecordStore) -> List[RecordView]:
    """Fetch every record with its extension, in insertion order."""
    with store.transaction(write=False) as session:
        return session.fetch_all_views()


def healthcheck(store: RecordStore, *, clock: Clock = utcnow) -> Dict[str, str]:
    """Round-trip the store and report status with a UTC timestamp."""
    store.ping()
    return {"status": "ok", "timestamp": clock().isoformat()}


__all__ = [
    "create_collection",
    "create_fungible",
    "get_all",
    "get_by_id",
    "healthcheck",
    "update_collection",
    "update_fungible",
    "utcnow",
]

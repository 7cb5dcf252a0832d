"""
Integration tests for the PostgreSQL record store.

These tests run against a real PostgreSQL instance and verify that the record
operations behave the same on PostgreSQL as on SQLite: atomic creates,
partial updates, left-join reads, and error mapping.

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os

import pytest

from contract_registry import operations
from contract_registry.domain.models import TypeTag
from contract_registry.errors import NotFoundError, PersistenceError, TypeMismatchError
from contract_registry.infrastructure.postgres_store import PostgresSession

BASE_URI = "https://example.com/metadata/"
HUGE_SUPPLY = "999999999999999999999999999999999999999999"

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)


class TestCreate:
    def test_create_fungible_round_trip(self, pg_store, clock):
        created = operations.create_fungible(
            pg_store,
            {"name": "T", "symbol": "TT", "total_supply": HUGE_SUPPLY, "decimals": 18},
            clock=clock,
        )
        fetched = operations.get_by_id(pg_store, created.id)

        assert fetched == created
        assert fetched.fungible_extension.total_supply == HUGE_SUPPLY
        assert fetched.created_at == clock.current

    def test_create_collection_unlimited(self, pg_store):
        created = operations.create_collection(
            pg_store, {"name": "Art", "symbol": "ART", "base_uri": BASE_URI, "maximum_supply": None}
        )
        assert created.collection_extension.maximum_supply is None

    def test_failed_extension_insert_rolls_back_record(self, pg_store, monkeypatch):
        import psycopg

        def boom(self, *args, **kwargs):
            raise psycopg.errors.CheckViolation("forced")

        monkeypatch.setattr(PostgresSession, "insert_collection_extension", boom)

        with pytest.raises(PersistenceError):
            operations.create_collection(
                pg_store, {"name": "Art", "symbol": "ART", "base_uri": BASE_URI}
            )
        assert operations.get_all(pg_store) == []


class TestUpdate:
    def test_partial_updates_and_clearing(self, pg_store, clock):
        created = operations.create_collection(
            pg_store,
            {"name": "Art", "symbol": "ART", "base_uri": BASE_URI, "maximum_supply": "5000"},
            clock=clock,
        )
        cleared = operations.update_collection(
            pg_store, {"id": created.id, "maximum_supply": None}, clock=clock
        )

        assert cleared.collection_extension.maximum_supply is None
        assert cleared.updated_at == created.updated_at
        assert cleared.collection_extension.updated_at == clock.current

    def test_noop_update(self, pg_store):
        created = operations.create_fungible(
            pg_store, {"name": "C", "symbol": "C", "total_supply": "1", "decimals": 0}
        )
        assert operations.update_fungible(pg_store, {"id": created.id}) == created

    def test_errors(self, pg_store):
        created = operations.create_collection(
            pg_store, {"name": "Art", "symbol": "ART", "base_uri": BASE_URI}
        )
        with pytest.raises(TypeMismatchError):
            operations.update_fungible(pg_store, {"id": created.id, "decimals": 1})
        with pytest.raises(NotFoundError):
            operations.update_collection(pg_store, {"id": created.id + 1000})


class TestRead:
    def test_get_all_mixed_in_insertion_order(self, pg_store):
        operations.create_fungible(
            pg_store, {"name": "Coin", "symbol": "COIN", "total_supply": "1000000", "decimals": 18}
        )
        operations.create_collection(
            pg_store, {"name": "Art", "symbol": "ART", "base_uri": BASE_URI, "maximum_supply": None}
        )

        views = operations.get_all(pg_store)

        assert [v.type_tag for v in views] == [TypeTag.FUNGIBLE, TypeTag.COLLECTION]
        assert views[1].collection_extension.maximum_supply is None

    def test_unknown_id_and_healthcheck(self, pg_store):
        assert operations.get_by_id(pg_store, 424242) is None
        assert operations.healthcheck(pg_store)["status"] == "ok"

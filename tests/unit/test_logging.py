from __future__ import annotations

import json
import logging

from contract_registry import operations
from contract_registry.utils.logging import _json_formatter, configure_logging

EXPECTED_RECORD_ID = 10


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.record_id = EXPECTED_RECORD_ID
    record.type_tag = "FUNGIBLE"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["record_id"] == EXPECTED_RECORD_ID
    assert payload["type_tag"] == "FUNGIBLE"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"record_id": EXPECTED_RECORD_ID}

    payload = json.loads(_json_formatter(record))

    assert payload["record_id"] == EXPECTED_RECORD_ID


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="WARNING", json_logs=True)
    root = logging.getLogger()

    assert root.level == logging.WARNING
    assert type(root.handlers[0].formatter).__name__ == "JsonFormatter"


def test_record_events_carry_structured_fields(store, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="contract_registry.operations"):
        view = operations.create_fungible(
            store, {"name": "Coin", "symbol": "COIN", "total_supply": "1", "decimals": 0}
        )
        operations.update_fungible(store, {"id": view.id, "decimals": 2})

    created, updated = [r for r in caplog.records if r.name == "contract_registry.operations"]
    assert created.getMessage() == f"[RECORD CREATED] {view.id}"
    assert json.loads(_json_formatter(created))["type_tag"] == "FUNGIBLE"
    assert updated.getMessage() == f"[RECORD UPDATED] {view.id}"
    assert json.loads(_json_formatter(updated))["fields"] == ["decimals"]

from __future__ import annotations

import pytest

from contract_registry.domain.inputs import (
    CreateCollectionInput,
    CreateFungibleInput,
    GetRecordInput,
    UpdateCollectionInput,
    UpdateFungibleInput,
    parse_input,
)
from contract_registry.errors import ValidationError

BASE_URI = "https://example.com/metadata/"


def _fields(exc: ValidationError) -> set[str]:
    return {entry["field"] for entry in exc.errors}


def test_create_fungible_accepts_valid_input() -> None:
    data = parse_input(
        CreateFungibleInput,
        {"name": "Token", "symbol": "TKN", "total_supply": "1000000", "decimals": 18},
    )
    assert data.total_supply == "1000000"
    assert data.decimals == 18


def test_create_fungible_reports_every_violation() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            CreateFungibleInput,
            {"name": "", "symbol": "WAYTOOLONGSYM", "total_supply": "-1", "decimals": 19},
        )

    assert _fields(excinfo.value) == {"name", "symbol", "total_supply", "decimals"}
    assert str(excinfo.value).startswith("4 validation errors")


def test_missing_fields_are_reported() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(CreateFungibleInput, {"name": "Token"})
    assert _fields(excinfo.value) == {"symbol", "total_supply", "decimals"}


@pytest.mark.parametrize("supply", ["", "1.5", "+1", "1e6", " 1", "１２"])
def test_total_supply_must_be_ascii_digits(supply: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            CreateFungibleInput,
            {"name": "T", "symbol": "T", "total_supply": supply, "decimals": 0},
        )
    assert _fields(excinfo.value) == {"total_supply"}


def test_total_supply_keeps_leading_zeros() -> None:
    data = parse_input(
        CreateFungibleInput,
        {"name": "T", "symbol": "T", "total_supply": "000123", "decimals": 0},
    )
    assert data.total_supply == "000123"


@pytest.mark.parametrize("decimals", [-1, 19, True, "18", 1.0])
def test_decimals_must_be_integer_in_range(decimals) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            CreateFungibleInput,
            {"name": "T", "symbol": "T", "total_supply": "1", "decimals": decimals},
        )
    assert _fields(excinfo.value) == {"decimals"}


def test_symbol_length_bounds() -> None:
    data = parse_input(
        CreateFungibleInput,
        {"name": "T", "symbol": "ABCDEFGHIJ", "total_supply": "1", "decimals": 0},
    )
    assert data.symbol == "ABCDEFGHIJ"


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            CreateFungibleInput,
            {"name": "T", "symbol": "T", "total_supply": "1", "decimals": 0, "owner": "x"},
        )
    assert _fields(excinfo.value) == {"owner"}


def test_create_collection_preserves_uri_text_and_defaults_to_unlimited() -> None:
    data = parse_input(CreateCollectionInput, {"name": "C", "symbol": "C", "base_uri": BASE_URI})
    assert data.base_uri == BASE_URI
    assert data.maximum_supply is None


@pytest.mark.parametrize("uri", ["", "not-a-url", "https://exa mple.com/"])
def test_create_collection_rejects_bad_uri(uri: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            CreateCollectionInput,
            {"name": "C", "symbol": "C", "base_uri": uri, "maximum_supply": None},
        )
    assert _fields(excinfo.value) == {"base_uri"}


def test_update_with_only_id_is_empty_patch() -> None:
    patch = parse_input(UpdateFungibleInput, {"id": 3})
    assert patch.is_empty
    assert patch.record_changes() == {}
    assert patch.extension_changes() == {}


def test_update_splits_record_and_extension_changes() -> None:
    patch = parse_input(
        UpdateFungibleInput, {"id": 3, "symbol": "NEW", "decimals": 6}
    )
    assert patch.record_changes() == {"symbol": "NEW"}
    assert patch.extension_changes() == {"decimals": 6}


def test_update_collection_distinguishes_null_from_absent() -> None:
    cleared = parse_input(UpdateCollectionInput, {"id": 1, "maximum_supply": None})
    untouched = parse_input(UpdateCollectionInput, {"id": 1})

    assert cleared.extension_changes() == {"maximum_supply": None}
    assert untouched.extension_changes() == {}


@pytest.mark.parametrize("field", ["name", "symbol", "total_supply", "decimals"])
def test_update_fungible_rejects_explicit_null(field: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(UpdateFungibleInput, {"id": 1, field: None})
    assert _fields(excinfo.value) == {field}


def test_update_collection_rejects_null_base_uri() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(UpdateCollectionInput, {"id": 1, "base_uri": None})
    assert _fields(excinfo.value) == {"base_uri"}


def test_update_applies_create_constraints_to_present_fields() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(
            UpdateCollectionInput,
            {"id": 1, "symbol": "", "base_uri": "nope", "maximum_supply": "ten"},
        )
    assert _fields(excinfo.value) == {"symbol", "base_uri", "maximum_supply"}


def test_update_requires_id() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_input(UpdateFungibleInput, {"name": "x"})
    assert _fields(excinfo.value) == {"id"}


def test_get_requires_id() -> None:
    with pytest.raises(ValidationError):
        parse_input(GetRecordInput, {})


def test_parse_input_passes_through_built_models() -> None:
    built = GetRecordInput(id=5)
    assert parse_input(GetRecordInput, built) is built

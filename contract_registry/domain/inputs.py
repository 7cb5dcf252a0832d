"""
Input models for every record operation.

Each operation accepts a raw mapping and turns it into one of these frozen
pydantic models through ``parse_input``. Validation collects every violated
constraint rather than stopping at the first one.

Update inputs are patches: a field missing from the raw mapping is left
untouched, a field that is present replaces the stored value. Presence is
read from ``model_fields_set``, so ``{"maximum_supply": None}`` (clear to
unlimited) is distinguishable from omitting the key.
"""
from __future__ import annotations

from typing import Annotated, Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    Field,
    StrictInt,
    StringConstraints,
    TypeAdapter,
    ValidationInfo,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from contract_registry.domain.models import RECORD_COLUMNS
from contract_registry.errors import ValidationError

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_uri(value: str) -> str:
    # Validate with AnyUrl but keep the caller's text; AnyUrl normalises.
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValueError("Must be a valid URL") from None
    if any(ch.isspace() for ch in value):
        raise ValueError("Must be a valid URL")
    return value


Name = Annotated[str, StringConstraints(min_length=1)]
Symbol = Annotated[str, StringConstraints(min_length=1, max_length=10)]
DigitString = Annotated[str, StringConstraints(pattern=r"^[0-9]+$")]
Decimals = Annotated[StrictInt, Field(ge=0, le=18)]
BaseUri = Annotated[str, StringConstraints(min_length=1), AfterValidator(_check_uri)]


class _InputModel(BaseModel):
    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


class CreateFungibleInput(_InputModel):
    name: Name
    symbol: Symbol
    total_supply: DigitString
    decimals: Decimals


class CreateCollectionInput(_InputModel):
    name: Name
    symbol: Symbol
    base_uri: BaseUri
    maximum_supply: Optional[DigitString] = None


class GetRecordInput(_InputModel):
    id: int


class _RecordPatch(_InputModel):
    """
    Shared part of the update inputs.

    Subclasses list their extension columns in ``extension_fields``; those
    named in ``nullable_fields`` may be explicitly set to ``None``.
    """

    extension_fields: ClassVar[Tuple[str, ...]] = ()
    nullable_fields: ClassVar[Tuple[str, ...]] = ()

    id: int
    name: Optional[Name] = None
    symbol: Optional[Symbol] = None

    @field_validator("*")
    @classmethod
    def _reject_explicit_null(cls, value: Any, info: ValidationInfo) -> Any:
        # Only runs for keys that were actually supplied.
        if value is None and info.field_name not in cls.nullable_fields:
            raise ValueError("may be omitted but not set to null")
        return value

    def record_changes(self) -> Dict[str, Any]:
        """Base-record columns supplied in this patch."""
        return {f: getattr(self, f) for f in RECORD_COLUMNS if f in self.model_fields_set}

    def extension_changes(self) -> Dict[str, Any]:
        """Extension columns supplied in this patch."""
        return {
            f: getattr(self, f) for f in self.extension_fields if f in self.model_fields_set
        }

    @property
    def is_empty(self) -> bool:
        return not (self.model_fields_set - {"id"})


class UpdateFungibleInput(_RecordPatch):
    extension_fields: ClassVar[Tuple[str, ...]] = ("total_supply", "decimals")

    total_supply: Optional[DigitString] = None
    decimals: Optional[Decimals] = None


class UpdateCollectionInput(_RecordPatch):
    extension_fields: ClassVar[Tuple[str, ...]] = ("base_uri", "maximum_supply")
    nullable_fields: ClassVar[Tuple[str, ...]] = ("maximum_supply",)

    base_uri: Optional[BaseUri] = None
    maximum_supply: Optional[DigitString] = None


InputT = TypeVar("InputT", bound=BaseModel)


def parse_input(model: Type[InputT], raw: Union[InputT, Mapping[str, Any]]) -> InputT:
    """
    Validate ``raw`` against ``model``.

    Raises
    ------
    ValidationError
        With one entry per violated constraint.
    """
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


__all__ = [
    "CreateFungibleInput",
    "CreateCollectionInput",
    "UpdateFungibleInput",
    "UpdateCollectionInput",
    "GetRecordInput",
    "parse_input",
]

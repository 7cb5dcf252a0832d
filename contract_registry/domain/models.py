"""
Domain models for the contract registry.

A record is stored as a shared base row (``records``) plus exactly one
type-specific extension row. At the application boundary this is exposed as a
tagged union: ``RecordView`` carries the base fields, the ``type_tag``
discriminator, and at most one extension whose kind matches the tag.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator

# Mutable columns of the base `records` table.
RECORD_COLUMNS: Tuple[str, ...] = ("name", "symbol")


class TypeTag(str, Enum):
    """Discriminator fixed at creation time."""

    FUNGIBLE = "FUNGIBLE"
    COLLECTION = "COLLECTION"


class Record(BaseModel):
    """
    Representation of a single row in the `records` table.
    """

    id: int = Field(..., description="Primary key assigned by the store.")
    name: str = Field(..., description="Display name.")
    symbol: str = Field(..., description="Ticker-style symbol, at most 10 characters.")
    type_tag: TypeTag = Field(..., description="FUNGIBLE or COLLECTION.")
    created_at: datetime = Field(..., description="Row creation timestamp.")
    updated_at: datetime = Field(..., description="Last modification of this row.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


class FungibleExtension(BaseModel):
    """Row of `fungible_extensions`, attached 1:1 to a FUNGIBLE record."""

    id: int
    record_id: int
    total_supply: str = Field(..., description="Decimal digits; kept as text to avoid overflow.")
    decimals: int = Field(..., ge=0, le=18)
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}


class CollectionExtension(BaseModel):
    """Row of `collection_extensions`, attached 1:1 to a COLLECTION record."""

    id: int
    record_id: int
    base_uri: str
    maximum_supply: Optional[str] = Field(None, description="None means unlimited.")
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}


Extension = Union[FungibleExtension, CollectionExtension]


class RecordView(Record):
    """
    Combined view returned by every record operation.

    At most one extension is present, and it always matches ``type_tag``.
    Both being ``None`` only happens for a record whose extension row is
    missing from the store (left-join miss).
    """

    fungible_extension: Optional[FungibleExtension] = None
    collection_extension: Optional[CollectionExtension] = None

    @model_validator(mode="after")
    def _check_variant(self) -> "RecordView":
        if self.fungible_extension is not None and self.collection_extension is not None:
            raise ValueError("a record cannot carry both extensions")
        if self.type_tag is TypeTag.FUNGIBLE and self.collection_extension is not None:
            raise ValueError("FUNGIBLE record cannot carry a collection extension")
        if self.type_tag is TypeTag.COLLECTION and self.fungible_extension is not None:
            raise ValueError("COLLECTION record cannot carry a fungible extension")
        return self

    @property
    def extension(self) -> Optional[Extension]:
        """The single extension attached to this record, if any."""
        if self.type_tag is TypeTag.FUNGIBLE:
            return self.fungible_extension
        return self.collection_extension

    @classmethod
    def compose(cls, record: Record, extension: Optional[Extension]) -> "RecordView":
        """Attach ``extension`` to ``record`` under the field matching its kind."""
        fields = record.model_dump()
        if isinstance(extension, FungibleExtension):
            fields["fungible_extension"] = extension
        elif isinstance(extension, CollectionExtension):
            fields["collection_extension"] = extension
        return cls(**fields)


__all__ = [
    "RECORD_COLUMNS",
    "TypeTag",
    "Record",
    "FungibleExtension",
    "CollectionExtension",
    "Extension",
    "RecordView",
]

"""
Domain package for the contract registry.

Exports the record models and the operation input models. Keep this package
focused on data definitions and validation concerns; storage lives in
`contract_registry.infrastructure`.
"""

from contract_registry.domain.inputs import (
    CreateCollectionInput,
    CreateFungibleInput,
    GetRecordInput,
    UpdateCollectionInput,
    UpdateFungibleInput,
    parse_input,
)
from contract_registry.domain.models import (
    CollectionExtension,
    FungibleExtension,
    Record,
    RecordView,
    TypeTag,
)

__all__ = [
    # Models
    "TypeTag",
    "Record",
    "FungibleExtension",
    "CollectionExtension",
    "RecordView",
    # Inputs
    "CreateFungibleInput",
    "CreateCollectionInput",
    "UpdateFungibleInput",
    "UpdateCollectionInput",
    "GetRecordInput",
    "parse_input",
]

"""
Contract registry - metadata records for fungible tokens and collections.

Records are kept as a shared base row plus one type-specific extension row
(fungible: total supply and decimals; collection: base URI and optional
maximum supply). The package provides:

- Validated input models and a tagged-union read model
- Create, partial-update and read operations with explicit store injection
- PostgreSQL (psycopg) and SQLite stores sharing one SQL contract
- A typer CLI with rich table output
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from contract_registry.config import Settings, get_settings
from contract_registry.domain.models import (
    CollectionExtension,
    FungibleExtension,
    Record,
    RecordView,
    TypeTag,
)
from contract_registry.errors import (
    NotFoundError,
    PersistenceError,
    RegistryError,
    TypeMismatchError,
    ValidationError,
)
from contract_registry.operations import (
    create_collection,
    create_fungible,
    get_all,
    get_by_id,
    healthcheck,
    update_collection,
    update_fungible,
)
from contract_registry.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Models
    "TypeTag",
    "Record",
    "FungibleExtension",
    "CollectionExtension",
    "RecordView",
    # Errors
    "RegistryError",
    "ValidationError",
    "NotFoundError",
    "TypeMismatchError",
    "PersistenceError",
    # Operations
    "create_fungible",
    "create_collection",
    "update_fungible",
    "update_collection",
    "get_by_id",
    "get_all",
    "healthcheck",
    # Logging
    "configure_logging",
    "get_logger",
]

"""
Error taxonomy for the contract registry.

Every failure surfaced by the record operations is a subclass of
``RegistryError`` so callers (the CLI, tests, any transport built on top) can
tell domain failures apart from programming errors.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class RegistryError(Exception):
    """Base class for all contract registry failures."""


class ValidationError(RegistryError):
    """
    Input rejected before any storage access.

    Attributes
    ----------
    errors : list of dict
        One ``{"field": ..., "message": ...}`` entry per violated constraint.
    """

    def __init__(self, errors: List[Dict[str, str]]) -> None:
        self.errors = list(errors)
        count = len(self.errors)
        noun = "error" if count == 1 else "errors"
        details = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors)
        super().__init__(f"{count} validation {noun}: {details}")

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Build from a ``pydantic.ValidationError``, keeping every entry."""
        errors = []
        for entry in exc.errors():
            loc = ".".join(str(part) for part in entry.get("loc", ())) or "__root__"
            errors.append({"field": loc, "message": entry.get("msg", "invalid value")})
        return cls(errors)


class NotFoundError(RegistryError):
    """Referenced record identifier does not exist."""

    def __init__(self, record_id: int) -> None:
        self.record_id = record_id
        super().__init__(f"Record with id {record_id} not found")


class TypeMismatchError(RegistryError):
    """Update targeted a record carrying the other type tag."""

    def __init__(self, record_id: int, expected: Any, actual: Any) -> None:
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Record with id {record_id} is {_tag_name(actual)}, not {_tag_name(expected)}"
        )


class PersistenceError(RegistryError):
    """The underlying store failed (connectivity, constraint violation, ...)."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        self.operation = operation
        super().__init__(message)


def _tag_name(tag: Any) -> str:
    return getattr(tag, "value", str(tag))


__all__ = [
    "RegistryError",
    "ValidationError",
    "NotFoundError",
    "TypeMismatchError",
    "PersistenceError",
]

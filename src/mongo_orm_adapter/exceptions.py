"""Adapter exception hierarchy.

All exceptions inherit from ``MongoAdapterError`` and provide ``to_dict()``
for API-friendly error responses.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class AdapterError(Exception):
    """Root exception for the adapter."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class PersistenceError(AdapterError):
    """Base class for all persistence-related errors."""


class MongoAdapterError(PersistenceError):
    """Base for MongoDB adapter errors."""


class MongoConnectionError(MongoAdapterError):
    """Raised when connection to MongoDB fails."""


class ConfigurationError(MongoAdapterError):
    """Raised when adapter configuration contains unknown or invalid keys."""


class SchemaDefinitionError(MongoAdapterError):
    """Raised when a collection definition cannot be turned into a schema."""


class UnregisteredCollectionError(MongoAdapterError):
    """A query referenced a collection with no registered schema."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(
            f"No `{identity}` collection has been registered with this adapter"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNREGISTERED_COLLECTION",
            "message": str(self),
            "identity": self.identity,
        }


class FilterBuildError(MongoAdapterError):
    """Raised when a filter, sort or projection cannot be constructed."""


class UnsupportedOperatorError(FilterBuildError):
    """
    Filter operator without a native mapping.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(
        self,
        field: str,
        operator: str,
        valid_operators: list[str] | None = None,
    ) -> None:
        self.field = field
        self.operator = operator
        self.valid_operators = valid_operators or []
        self.suggestions = get_close_matches(
            operator, self.valid_operators, n=3, cutoff=0.6
        )

        message = f"Unsupported operator '{operator}' on field '{field}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "message": str(self),
            "field": self.field,
            "operator": self.operator,
            "suggestions": self.suggestions,
        }


class InvalidIdentifierError(FilterBuildError):
    """Raised when a value cannot be coerced into a native ObjectId."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid identifier for field '{field}': {value!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_IDENTIFIER",
            "message": str(self),
            "field": self.field,
        }


class StoreCommunicationError(MongoAdapterError):
    """Raised when the underlying MongoDB call fails.

    The original driver exception is kept as ``__cause__`` and ``original``.
    """

    def __init__(self, operation: str, identity: str, original: BaseException) -> None:
        self.operation = operation
        self.identity = identity
        self.original = original
        super().__init__(f"MongoDB {operation} on '{identity}' failed: {original}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "STORE_COMMUNICATION_FAILURE",
            "message": str(self),
            "operation": self.operation,
            "identity": self.identity,
        }


class InsertCountMismatchError(MongoAdapterError):
    """Insert acknowledgement reported a different number of ids than submitted."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Mismatch in id counts returned by insert: "
            f"submitted {expected} documents, store acknowledged {actual}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INSERT_COUNT_MISMATCH",
            "message": str(self),
            "expected": self.expected,
            "actual": self.actual,
        }

"""Exceptions raised for malformed input and persistence failures.

Business rule outcomes (incompatible slot, weekly limit, tag suggestions) are
not exceptions; see ``nutrition_helper.domain.validation``.
"""

from collections.abc import Mapping
from typing import Any


class NutritionHelperError(Exception):
    """Base class for errors surfaced to the calling layer.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context
        code: machine-readable error kind
    """

    code = "internal_error"

    def __init__(
        self,
        message: str,
        details: Mapping[str, Any] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class InvalidInputError(NutritionHelperError):
    """Raised when a create or update payload breaks an entity invariant."""

    code = "validation_error"


class NotFoundError(NutritionHelperError):
    """Raised when an id does not match any stored row."""

    code = "not_found"


class ConflictError(NutritionHelperError):
    """Raised when a uniqueness constraint rejects a write."""

    code = "conflict"


class ForeignKeyViolationError(NutritionHelperError):
    """Raised when a write references a row that does not exist."""

    code = "foreign_key_violation"


class StorageError(NutritionHelperError):
    """Raised for any other failure of the embedded store."""

    code = "database_error"

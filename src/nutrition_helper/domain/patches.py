"""Per-field update patches for nullable columns."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class PatchKind(Enum):
    KEEP = "keep"
    CLEAR = "clear"
    SET = "set"


@dataclass(frozen=True)
class FieldPatch(Generic[T]):
    """Change to a nullable field: leave it, clear it, or set a new value."""

    kind: PatchKind = PatchKind.KEEP
    value: T | None = None

    @classmethod
    def keep(cls) -> "FieldPatch[T]":
        return cls()

    @classmethod
    def clear(cls) -> "FieldPatch[T]":
        return cls(kind=PatchKind.CLEAR)

    @classmethod
    def set(cls, value: T) -> "FieldPatch[T]":
        if value is None:
            raise ValueError("FieldPatch.set requires a value; use clear()")
        return cls(kind=PatchKind.SET, value=value)

    @property
    def is_keep(self) -> bool:
        return self.kind is PatchKind.KEEP

    def apply(self, current: T | None) -> T | None:
        """Return the field value after the patch is applied."""
        if self.kind is PatchKind.KEEP:
            return current
        if self.kind is PatchKind.CLEAR:
            return None
        return self.value


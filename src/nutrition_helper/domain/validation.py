"""Outcomes of meal entry validation.

Hard failures block the entry, warnings are advisory. Both are plain data so
the calling layer can render a precise message without another query.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from nutrition_helper.domain.enums import SlotType


class WarningType(StrEnum):
    TAG_SUGGESTION = "tag_suggestion"


@dataclass(frozen=True)
class MissingReference:
    """The option, or the template it belongs to, does not exist."""

    entity: str
    entity_id: int

    @property
    def message(self) -> str:
        return f"{self.entity} with id {self.entity_id} does not exist"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "missing_reference",
            "data": {"entity": self.entity, "entity_id": self.entity_id},
        }


@dataclass(frozen=True)
class IncompatibleSlot:
    """The template of the option cannot fill the requested slot."""

    option_name: str
    slot: SlotType
    compatible_slots: list[SlotType]

    @property
    def message(self) -> str:
        allowed = ", ".join(slot.value for slot in self.compatible_slots)
        return (
            f"'{self.option_name}' is not compatible with {self.slot.value}. "
            f"Compatible slots: {allowed}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "incompatible_slot",
            "data": {
                "option_name": self.option_name,
                "slot": self.slot.value,
                "compatible_slots": [slot.value for slot in self.compatible_slots],
            },
        }


@dataclass(frozen=True)
class WeeklyLimitExceeded:
    """The option already reached the weekly cap declared by its template."""

    item_name: str
    limit: int
    current_usage: int

    @property
    def message(self) -> str:
        return (
            f"Weekly limit exceeded for '{self.item_name}': "
            f"{self.current_usage}/{self.limit} uses this week"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "weekly_limit_exceeded",
            "data": {
                "item_name": self.item_name,
                "limit": self.limit,
                "current_usage": self.current_usage,
            },
        }


ValidationFailure = MissingReference | IncompatibleSlot | WeeklyLimitExceeded


@dataclass(frozen=True)
class ValidationWarning:
    """Non-blocking advisory returned next to a successful validation."""

    warning_type: WarningType
    tag_id: int
    tag_name: str
    display_name: str
    suggestion: int
    current_usage: int

    @property
    def message(self) -> str:
        return (
            f"Tag '{self.display_name}' suggestion exceeded: "
            f"{self.current_usage}/{self.suggestion} uses this week"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.warning_type.value,
            "message": self.message,
            "data": {
                "tag_id": self.tag_id,
                "tag_name": self.tag_name,
                "display_name": self.display_name,
                "suggestion": self.suggestion,
                "current_usage": self.current_usage,
            },
        }


@dataclass(frozen=True)
class ValidationPassed:
    """Validation succeeded, possibly with warnings."""

    warnings: list[ValidationWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ValidationFailed:
    """Validation was rejected by the first failing hard rule."""

    reason: ValidationFailure

    @property
    def ok(self) -> bool:
        return False

    @property
    def warnings(self) -> list[ValidationWarning]:
        return []


ValidationOutcome = ValidationPassed | ValidationFailed

"""Domain models for meal templates."""

import json
from dataclasses import dataclass, field
from datetime import datetime

from nutrition_helper.domain.enums import LocationType, SlotType
from nutrition_helper.domain.errors import InvalidInputError
from nutrition_helper.domain.patches import FieldPatch


@dataclass(frozen=True)
class MealTemplate:
    """A reusable card that can fill one or more meal slots."""

    id: int
    name: str
    description: str | None
    compatible_slots: list[SlotType]
    location_type: LocationType
    weekly_limit: int | None
    created_at: datetime
    updated_at: datetime

    def accepts_slot(self, slot: SlotType) -> bool:
        return slot in self.compatible_slots


@dataclass(frozen=True)
class CreateMealTemplate:
    """Payload for creating a template."""

    name: str
    compatible_slots: list[SlotType]
    location_type: LocationType
    description: str | None = None
    weekly_limit: int | None = None

    def validate(self) -> None:
        if not self.name.strip():
            raise InvalidInputError("Template name cannot be empty")
        _validate_slots(self.compatible_slots)
        _validate_weekly_limit(self.weekly_limit)


@dataclass(frozen=True)
class UpdateMealTemplate:
    """Patch for a template; ``None`` on non-nullable fields means no change."""

    name: str | None = None
    description: FieldPatch[str] = field(default_factory=FieldPatch)
    compatible_slots: list[SlotType] | None = None
    location_type: LocationType | None = None
    weekly_limit: FieldPatch[int] = field(default_factory=FieldPatch)

    def validate(self) -> None:
        if self.name is not None and not self.name.strip():
            raise InvalidInputError("Template name cannot be empty")
        if self.compatible_slots is not None:
            _validate_slots(self.compatible_slots)
        _validate_weekly_limit(self.weekly_limit.value)


def serialize_compatible_slots(slots: list[SlotType]) -> str:
    """Encode compatible slots the way they are stored on the template row.

    Duplicates are dropped, keeping the first occurrence.
    """
    return json.dumps([slot.value for slot in dict.fromkeys(slots)])


def parse_compatible_slots(raw: str) -> list[SlotType]:
    """Decode the stored JSON list of compatible slots."""
    try:
        values = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Failed to parse compatible_slots: {exc}") from exc
    if not isinstance(values, list):
        raise InvalidInputError("Failed to parse compatible_slots: expected a list")
    return list(dict.fromkeys(SlotType.parse(str(value)) for value in values))


def _validate_slots(slots: list[SlotType]) -> None:
    if not slots:
        raise InvalidInputError("Template must be compatible with at least one slot")


def _validate_weekly_limit(weekly_limit: int | None) -> None:
    if weekly_limit is not None and weekly_limit <= 0:
        raise InvalidInputError("Weekly limit must be positive")

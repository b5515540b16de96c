"""Domain models for planned and logged meal entries."""

from dataclasses import dataclass, field
from datetime import date, datetime

from nutrition_helper.domain.enums import LocationType, SlotType
from nutrition_helper.domain.errors import InvalidInputError
from nutrition_helper.domain.patches import FieldPatch

DEFAULT_SERVINGS = 1.0


@dataclass(frozen=True)
class MealEntry:
    """A meal option placed on a date and slot; ``completed`` marks it eaten."""

    id: int
    meal_option_id: int
    date: date
    slot_type: SlotType
    location: LocationType
    servings: float
    notes: str | None
    completed: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreateMealEntry:
    """Payload for creating an entry; servings default to 1, completed to False."""

    meal_option_id: int
    date: date
    slot_type: SlotType
    location: LocationType
    servings: float | None = None
    notes: str | None = None
    completed: bool | None = None

    def validate(self) -> None:
        if self.meal_option_id <= 0:
            raise InvalidInputError("Invalid meal option ID")
        _validate_servings(self.servings)

    def servings_or_default(self) -> float:
        return DEFAULT_SERVINGS if self.servings is None else self.servings

    def completed_or_default(self) -> bool:
        return bool(self.completed)


@dataclass(frozen=True)
class UpdateMealEntry:
    """Patch for an entry. Date and slot change only through a reschedule."""

    location: LocationType | None = None
    servings: float | None = None
    notes: FieldPatch[str] = field(default_factory=FieldPatch)
    completed: bool | None = None

    def validate(self) -> None:
        _validate_servings(self.servings)

    def is_empty(self) -> bool:
        return (
            self.location is None
            and self.servings is None
            and self.notes.is_keep
            and self.completed is None
        )


@dataclass(frozen=True)
class WeeklyUsage:
    """Number of entries of one option in one ISO week."""

    meal_option_id: int
    week: str
    usage_count: int


@dataclass(frozen=True)
class WeeklyTagUsage:
    """Number of entries carrying one tag in one ISO week."""

    tag_id: int
    tag_name: str
    display_name: str
    week: str
    usage_count: int


def _validate_servings(servings: float | None) -> None:
    if servings is not None and servings <= 0:
        raise InvalidInputError("Servings must be positive")

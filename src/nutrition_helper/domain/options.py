"""Domain models for meal options."""

from dataclasses import dataclass, field
from datetime import datetime

from nutrition_helper.domain.errors import InvalidInputError
from nutrition_helper.domain.patches import FieldPatch


@dataclass(frozen=True)
class MealOption:
    """A concrete ingredient or variation choice within a template."""

    id: int
    template_id: int
    name: str
    description: str | None
    nutritional_notes: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MealOptionWithTags:
    """A meal option together with the ids of its tags."""

    option: MealOption
    tags: list[int]


@dataclass(frozen=True)
class CreateMealOption:
    """Payload for creating a meal option."""

    template_id: int
    name: str
    description: str | None = None
    nutritional_notes: str | None = None

    def validate(self) -> None:
        if not self.name.strip():
            raise InvalidInputError("Option name cannot be empty")
        if self.template_id <= 0:
            raise InvalidInputError("Invalid template ID")


@dataclass(frozen=True)
class UpdateMealOption:
    """Patch for a meal option."""

    name: str | None = None
    description: FieldPatch[str] = field(default_factory=FieldPatch)
    nutritional_notes: FieldPatch[str] = field(default_factory=FieldPatch)

    def validate(self) -> None:
        if self.name is not None and not self.name.strip():
            raise InvalidInputError("Option name cannot be empty")

"""Domain models for tags."""

import re
from dataclasses import dataclass, field
from datetime import datetime

from nutrition_helper.domain.enums import TagCategory
from nutrition_helper.domain.errors import InvalidInputError
from nutrition_helper.domain.patches import FieldPatch

TAG_NAME_PATTERN = re.compile(r"[a-z_]+")


@dataclass(frozen=True)
class Tag:
    """Tag used to track ingredients, diets and frequency suggestions.

    ``name`` is the internal key (``pasta_integrale``), ``display_name`` is
    what the user sees. A ``weekly_suggestion`` of 0 means "avoid".
    """

    id: int
    name: str
    display_name: str
    category: TagCategory
    weekly_suggestion: int | None
    parent_tag_id: int | None
    created_at: datetime


@dataclass(frozen=True)
class CreateTag:
    """Payload for creating a tag."""

    name: str
    display_name: str
    category: TagCategory
    weekly_suggestion: int | None = None
    parent_tag_id: int | None = None

    def validate(self) -> None:
        if not self.name.strip():
            raise InvalidInputError("Tag name cannot be empty")
        if not self.display_name.strip():
            raise InvalidInputError("Tag display name cannot be empty")
        if not TAG_NAME_PATTERN.fullmatch(self.name):
            raise InvalidInputError("Tag name must be lowercase with underscores only")
        _validate_suggestion(self.weekly_suggestion)


@dataclass(frozen=True)
class UpdateTag:
    """Patch for a tag. The internal name is immutable."""

    display_name: str | None = None
    category: TagCategory | None = None
    weekly_suggestion: FieldPatch[int] = field(default_factory=FieldPatch)
    parent_tag_id: FieldPatch[int] = field(default_factory=FieldPatch)

    def validate(self) -> None:
        if self.display_name is not None and not self.display_name.strip():
            raise InvalidInputError("Tag display name cannot be empty")
        _validate_suggestion(self.weekly_suggestion.value)


def _validate_suggestion(weekly_suggestion: int | None) -> None:
    if weekly_suggestion is not None and weekly_suggestion < 0:
        raise InvalidInputError("Weekly suggestion cannot be negative")

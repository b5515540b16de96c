"""Shared test fixtures."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from nutrition_helper.config import Settings
from nutrition_helper.domain.entries import (
    CreateMealEntry,
    MealEntry,
    UpdateMealEntry,
    WeeklyTagUsage,
    WeeklyUsage,
)
from nutrition_helper.domain.enums import SlotType, TagCategory
from nutrition_helper.domain.errors import ForeignKeyViolationError
from nutrition_helper.domain.options import (
    CreateMealOption,
    MealOption,
    UpdateMealOption,
)
from nutrition_helper.domain.tags import CreateTag, Tag, UpdateTag
from nutrition_helper.domain.templates import (
    CreateMealTemplate,
    MealTemplate,
    UpdateMealTemplate,
)
from nutrition_helper.domain.weeks import week_key
from nutrition_helper.services.entries import MealEntryRepository
from nutrition_helper.services.options import MealOptionRepository
from nutrition_helper.services.planner import Repositories, TransactionalStore
from nutrition_helper.services.tags import TagRepository
from nutrition_helper.services.templates import MealTemplateRepository
from nutrition_helper.services.validation import ValidationService

FIXED_NOW = datetime(2024, 11, 4, 12, 0, tzinfo=UTC)


@dataclass
class InMemoryTemplateRepository(MealTemplateRepository):
    """In-memory template repository for tests."""

    templates: dict[int, MealTemplate] = field(default_factory=dict)
    next_id: int = 1

    async def create(self, payload: CreateMealTemplate) -> MealTemplate:
        template = MealTemplate(
            id=self.next_id,
            name=payload.name,
            description=payload.description,
            compatible_slots=list(payload.compatible_slots),
            location_type=payload.location_type,
            weekly_limit=payload.weekly_limit,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        self.templates[template.id] = template
        self.next_id += 1
        return template

    async def get(self, template_id: int) -> MealTemplate | None:
        return self.templates.get(template_id)

    async def list_all(self) -> list[MealTemplate]:
        return sorted(self.templates.values(), key=lambda item: item.name)

    async def search(self, query: str) -> list[MealTemplate]:
        needle = query.lower()
        return [
            template
            for template in await self.list_all()
            if needle in template.name.lower()
            or needle in (template.description or "").lower()
        ]

    async def update(
        self, template_id: int, patch: UpdateMealTemplate
    ) -> MealTemplate | None:
        existing = self.templates.get(template_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            name=patch.name if patch.name is not None else existing.name,
            description=patch.description.apply(existing.description),
            compatible_slots=(
                patch.compatible_slots
                if patch.compatible_slots is not None
                else existing.compatible_slots
            ),
            location_type=patch.location_type or existing.location_type,
            weekly_limit=patch.weekly_limit.apply(existing.weekly_limit),
        )
        self.templates[template_id] = updated
        return updated

    async def delete(self, template_id: int) -> bool:
        return self.templates.pop(template_id, None) is not None


@dataclass
class InMemoryOptionRepository(MealOptionRepository):
    """In-memory option repository that checks template and tag references."""

    templates: InMemoryTemplateRepository
    tags: "InMemoryTagRepository"
    options: dict[int, MealOption] = field(default_factory=dict)
    option_tags: dict[int, list[int]] = field(default_factory=dict)
    next_id: int = 1

    async def create(self, payload: CreateMealOption) -> MealOption:
        if payload.template_id not in self.templates.templates:
            raise ForeignKeyViolationError(
                f"Meal template with id {payload.template_id} does not exist"
            )
        option = MealOption(
            id=self.next_id,
            template_id=payload.template_id,
            name=payload.name,
            description=payload.description,
            nutritional_notes=payload.nutritional_notes,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        self.options[option.id] = option
        self.next_id += 1
        return option

    async def get(self, option_id: int) -> MealOption | None:
        return self.options.get(option_id)

    async def list_all(self) -> list[MealOption]:
        return sorted(self.options.values(), key=lambda item: item.name)

    async def list_by_template(self, template_id: int) -> list[MealOption]:
        return [
            option
            for option in await self.list_all()
            if option.template_id == template_id
        ]

    async def search(self, query: str) -> list[MealOption]:
        needle = query.lower()
        return [
            option
            for option in await self.list_all()
            if needle in option.name.lower()
            or needle in (option.description or "").lower()
        ]

    async def update(
        self, option_id: int, patch: UpdateMealOption
    ) -> MealOption | None:
        existing = self.options.get(option_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            name=patch.name if patch.name is not None else existing.name,
            description=patch.description.apply(existing.description),
            nutritional_notes=patch.nutritional_notes.apply(
                existing.nutritional_notes
            ),
        )
        self.options[option_id] = updated
        return updated

    async def delete(self, option_id: int) -> bool:
        self.option_tags.pop(option_id, None)
        return self.options.pop(option_id, None) is not None

    async def list_tag_ids(self, option_id: int) -> list[int]:
        return sorted(self.option_tags.get(option_id, []))

    async def add_tags(self, option_id: int, tag_ids: list[int]) -> None:
        self._require_tags(tag_ids)
        current = self.option_tags.setdefault(option_id, [])
        current.extend(tag_id for tag_id in tag_ids if tag_id not in current)

    async def remove_tags(self, option_id: int, tag_ids: list[int]) -> None:
        self.option_tags[option_id] = [
            tag_id
            for tag_id in self.option_tags.get(option_id, [])
            if tag_id not in tag_ids
        ]

    async def set_tags(self, option_id: int, tag_ids: list[int]) -> None:
        self._require_tags(tag_ids)
        self.option_tags[option_id] = list(tag_ids)

    def _require_tags(self, tag_ids: list[int]) -> None:
        missing = [tag_id for tag_id in tag_ids if tag_id not in self.tags.tags]
        if missing:
            raise ForeignKeyViolationError(f"Tags do not exist: {missing}")


@dataclass
class InMemoryTagRepository(TagRepository):
    """In-memory tag repository for tests."""

    tags: dict[int, Tag] = field(default_factory=dict)
    next_id: int = 1

    async def create(self, payload: CreateTag) -> Tag:
        tag = Tag(
            id=self.next_id,
            name=payload.name,
            display_name=payload.display_name,
            category=payload.category,
            weekly_suggestion=payload.weekly_suggestion,
            parent_tag_id=payload.parent_tag_id,
            created_at=FIXED_NOW,
        )
        self.tags[tag.id] = tag
        self.next_id += 1
        return tag

    async def get(self, tag_id: int) -> Tag | None:
        return self.tags.get(tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        return next((tag for tag in self.tags.values() if tag.name == name), None)

    async def list_all(self) -> list[Tag]:
        return sorted(self.tags.values(), key=lambda item: item.name)

    async def list_by_category(self, category: TagCategory) -> list[Tag]:
        return [tag for tag in await self.list_all() if tag.category is category]

    async def list_children(self, parent_id: int) -> list[Tag]:
        return [tag for tag in await self.list_all() if tag.parent_tag_id == parent_id]

    async def update(self, tag_id: int, patch: UpdateTag) -> Tag | None:
        existing = self.tags.get(tag_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            display_name=patch.display_name or existing.display_name,
            category=patch.category or existing.category,
            weekly_suggestion=patch.weekly_suggestion.apply(existing.weekly_suggestion),
            parent_tag_id=patch.parent_tag_id.apply(existing.parent_tag_id),
        )
        self.tags[tag_id] = updated
        return updated

    async def delete(self, tag_id: int) -> bool:
        return self.tags.pop(tag_id, None) is not None


@dataclass
class InMemoryEntryRepository(MealEntryRepository):
    """In-memory entry repository computing weekly usage like the store views."""

    options: InMemoryOptionRepository
    entries: dict[int, MealEntry] = field(default_factory=dict)
    next_id: int = 1

    async def create(self, payload: CreateMealEntry) -> MealEntry:
        if payload.meal_option_id not in self.options.options:
            raise ForeignKeyViolationError(
                f"Meal option with id {payload.meal_option_id} does not exist"
            )
        entry = MealEntry(
            id=self.next_id,
            meal_option_id=payload.meal_option_id,
            date=payload.date,
            slot_type=payload.slot_type,
            location=payload.location,
            servings=payload.servings_or_default(),
            notes=payload.notes,
            completed=payload.completed_or_default(),
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        self.entries[entry.id] = entry
        self.next_id += 1
        return entry

    async def get(self, entry_id: int) -> MealEntry | None:
        return self.entries.get(entry_id)

    async def list_by_date(self, day: date) -> list[MealEntry]:
        return _by_slot([entry for entry in self.entries.values() if entry.date == day])

    async def list_by_date_range(self, start: date, end: date) -> list[MealEntry]:
        return _by_slot(
            [entry for entry in self.entries.values() if start <= entry.date <= end]
        )

    async def list_by_date_and_slot(self, day: date, slot: SlotType) -> list[MealEntry]:
        return [
            entry
            for entry in self.entries.values()
            if entry.date == day and entry.slot_type is slot
        ]

    async def list_by_completed(self, completed: bool) -> list[MealEntry]:
        matching = [
            entry for entry in self.entries.values() if entry.completed == completed
        ]
        return sorted(matching, key=lambda entry: entry.date, reverse=True)

    async def list_by_option(self, meal_option_id: int) -> list[MealEntry]:
        matching = [
            entry
            for entry in self.entries.values()
            if entry.meal_option_id == meal_option_id
        ]
        return sorted(matching, key=lambda entry: entry.date, reverse=True)

    async def get_weekly_usage(
        self, meal_option_id: int, week: str
    ) -> WeeklyUsage | None:
        count = sum(
            1
            for entry in self.entries.values()
            if entry.meal_option_id == meal_option_id and week_key(entry.date) == week
        )
        if count == 0:
            return None
        return WeeklyUsage(meal_option_id=meal_option_id, week=week, usage_count=count)

    async def get_weekly_tag_usage(self, tag_id: int, week: str) -> WeeklyTagUsage | None:
        tag = self.options.tags.tags.get(tag_id)
        if tag is None:
            return None
        count = sum(
            1
            for entry in self.entries.values()
            if week_key(entry.date) == week
            and tag_id in self.options.option_tags.get(entry.meal_option_id, [])
        )
        if count == 0:
            return None
        return WeeklyTagUsage(
            tag_id=tag_id,
            tag_name=tag.name,
            display_name=tag.display_name,
            week=week,
            usage_count=count,
        )

    async def update(self, entry_id: int, patch: UpdateMealEntry) -> MealEntry | None:
        existing = self.entries.get(entry_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            location=patch.location or existing.location,
            servings=patch.servings if patch.servings is not None else existing.servings,
            notes=patch.notes.apply(existing.notes),
            completed=patch.completed if patch.completed is not None else existing.completed,
        )
        self.entries[entry_id] = updated
        return updated

    async def reschedule(
        self, entry_id: int, day: date, slot: SlotType
    ) -> MealEntry | None:
        existing = self.entries.get(entry_id)
        if existing is None:
            return None
        moved = replace(existing, date=day, slot_type=slot)
        self.entries[entry_id] = moved
        return moved

    async def delete(self, entry_id: int) -> bool:
        return self.entries.pop(entry_id, None) is not None


def _by_slot(entries: list[MealEntry]) -> list[MealEntry]:
    return sorted(entries, key=lambda entry: (entry.date, entry.slot_type.order))


@dataclass
class InMemoryStore(TransactionalStore):
    """Store fake that hands out the same repositories for every transaction."""

    repositories: Repositories
    transactions: int = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Repositories]:
        self.transactions += 1
        yield self.repositories


def build_repositories() -> Repositories:
    templates = InMemoryTemplateRepository()
    tags = InMemoryTagRepository()
    options = InMemoryOptionRepository(templates=templates, tags=tags)
    entries = InMemoryEntryRepository(options=options)
    return Repositories(templates=templates, options=options, tags=tags, entries=entries)


def build_validator(repositories: Repositories) -> ValidationService:
    return ValidationService(
        templates=repositories.templates,
        options=repositories.options,
        tags=repositories.tags,
        entries=repositories.entries,
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(database_path=tmp_path / "nutrition_helper.db")


@pytest.fixture
def repositories() -> Repositories:
    return build_repositories()

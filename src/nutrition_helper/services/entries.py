"""Services for reading and editing meal entries."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from nutrition_helper.domain.entries import (
    CreateMealEntry,
    MealEntry,
    UpdateMealEntry,
    WeeklyTagUsage,
    WeeklyUsage,
)
from nutrition_helper.domain.enums import SlotType
from nutrition_helper.domain.errors import InvalidInputError, NotFoundError


class MealEntryRepository(Protocol):
    """Persistence interface for meal entries and weekly usage views."""

    async def create(self, payload: CreateMealEntry) -> MealEntry:
        """Insert an entry; the option must exist."""

    async def get(self, entry_id: int) -> MealEntry | None:
        """Return an entry by id, if present."""

    async def list_by_date(self, day: date) -> list[MealEntry]:
        """Return the entries of a day in slot order."""

    async def list_by_date_range(self, start: date, end: date) -> list[MealEntry]:
        """Return entries between two dates, inclusive, by date then slot."""

    async def list_by_date_and_slot(self, day: date, slot: SlotType) -> list[MealEntry]:
        """Return the entries of one slot on one day."""

    async def list_by_completed(self, completed: bool) -> list[MealEntry]:
        """Return planned or consumed entries, newest first."""

    async def list_by_option(self, meal_option_id: int) -> list[MealEntry]:
        """Return the entries of an option, newest first."""

    async def get_weekly_usage(
        self, meal_option_id: int, week: str
    ) -> WeeklyUsage | None:
        """Return the usage of an option in an ISO week, if any."""

    async def get_weekly_tag_usage(self, tag_id: int, week: str) -> WeeklyTagUsage | None:
        """Return the usage of a tag in an ISO week, if any."""

    async def update(self, entry_id: int, patch: UpdateMealEntry) -> MealEntry | None:
        """Apply a patch and return the entry, or None when missing."""

    async def reschedule(
        self, entry_id: int, day: date, slot: SlotType
    ) -> MealEntry | None:
        """Move an entry to another date and slot."""

    async def delete(self, entry_id: int) -> bool:
        """Delete an entry; return whether it existed."""


@dataclass
class MealEntryService:
    """Application service for entry reads and edits.

    ``create`` stores the entry as given; use ``MealPlanService`` to create
    entries that must pass slot and weekly limit rules.
    """

    repository: MealEntryRepository

    async def create(self, payload: CreateMealEntry) -> MealEntry:
        payload.validate()
        return await self.repository.create(payload)

    async def get(self, entry_id: int) -> MealEntry | None:
        return await self.repository.get(entry_id)

    async def list_by_date(self, day: date) -> list[MealEntry]:
        return await self.repository.list_by_date(day)

    async def list_by_date_range(self, start: date, end: date) -> list[MealEntry]:
        if end < start:
            raise InvalidInputError(
                "End date must not be before start date",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        return await self.repository.list_by_date_range(start, end)

    async def list_by_date_and_slot(self, day: date, slot: SlotType) -> list[MealEntry]:
        return await self.repository.list_by_date_and_slot(day, slot)

    async def list_by_completed(self, completed: bool) -> list[MealEntry]:
        return await self.repository.list_by_completed(completed)

    async def list_by_option(self, meal_option_id: int) -> list[MealEntry]:
        return await self.repository.list_by_option(meal_option_id)

    async def get_weekly_usage(
        self, meal_option_id: int, week: str
    ) -> WeeklyUsage | None:
        return await self.repository.get_weekly_usage(meal_option_id, week)

    async def get_weekly_tag_usage(self, tag_id: int, week: str) -> WeeklyTagUsage | None:
        return await self.repository.get_weekly_tag_usage(tag_id, week)

    async def update(self, entry_id: int, patch: UpdateMealEntry) -> MealEntry:
        patch.validate()
        entry = await self.repository.update(entry_id, patch)
        if entry is None:
            raise NotFoundError(f"Meal entry {entry_id} not found")
        return entry

    async def delete(self, entry_id: int) -> None:
        if not await self.repository.delete(entry_id):
            raise NotFoundError(f"Meal entry {entry_id} not found")

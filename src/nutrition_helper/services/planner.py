"""Planning service that validates and persists entries atomically."""

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from nutrition_helper.domain.entries import CreateMealEntry, MealEntry
from nutrition_helper.domain.enums import SlotType
from nutrition_helper.domain.errors import NotFoundError
from nutrition_helper.domain.validation import (
    ValidationFailed,
    ValidationFailure,
    ValidationOutcome,
    ValidationWarning,
)
from nutrition_helper.domain.weeks import week_dates, week_key
from nutrition_helper.services.entries import MealEntryRepository
from nutrition_helper.services.options import MealOptionRepository
from nutrition_helper.services.tags import TagRepository
from nutrition_helper.services.templates import MealTemplateRepository
from nutrition_helper.services.validation import ValidationService

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Repositories:
    """Repositories sharing one transaction."""

    templates: MealTemplateRepository
    options: MealOptionRepository
    tags: TagRepository
    entries: MealEntryRepository


class TransactionalStore(Protocol):
    """Store able to run several repository calls in one write transaction."""

    def transaction(self) -> AbstractAsyncContextManager[Repositories]:
        """Open a transaction that blocks other writers until it ends."""


@dataclass(frozen=True)
class ScheduleOutcome:
    """Result of scheduling or moving an entry."""

    entry: MealEntry | None
    warnings: list[ValidationWarning] = field(default_factory=list)
    failure: ValidationFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class WeekPlan:
    """Entries of one ISO week, Monday to Sunday."""

    week: str
    start: date
    end: date
    entries: list[MealEntry]


@dataclass
class MealPlanService:
    """Service that gates entry creation and moves behind validation.

    Validation reads and the write run inside one store transaction, so two
    concurrent requests for the same option and week cannot both pass the
    weekly limit.
    """

    store: TransactionalStore

    async def schedule_entry(self, payload: CreateMealEntry) -> ScheduleOutcome:
        """Validate a new entry and insert it when no hard rule fails."""
        payload.validate()
        async with self.store.transaction() as repositories:
            outcome = await _validator(repositories).validate_meal_entry(
                payload.meal_option_id, payload.slot_type, payload.date
            )
            if isinstance(outcome, ValidationFailed):
                return ScheduleOutcome(entry=None, failure=outcome.reason)
            entry = await repositories.entries.create(payload)
        _logger.info(
            "Scheduled entry: id=%s option=%s date=%s slot=%s warnings=%s",
            entry.id,
            entry.meal_option_id,
            entry.date.isoformat(),
            entry.slot_type.value,
            len(outcome.warnings),
        )
        return ScheduleOutcome(entry=entry, warnings=outcome.warnings)

    async def move_entry(
        self, entry_id: int, day: date, slot: SlotType
    ) -> ScheduleOutcome:
        """Move an entry to another date and slot, re-checking the rules.

        A move within the same ISO week leaves weekly usage unchanged, so only
        slot compatibility is checked; a move to another week runs the full
        validation against the target week.
        """
        async with self.store.transaction() as repositories:
            current = await repositories.entries.get(entry_id)
            if current is None:
                raise NotFoundError(f"Meal entry {entry_id} not found")
            validator = _validator(repositories)
            outcome: ValidationOutcome
            if week_key(current.date) == week_key(day):
                outcome = await validator.check_slot(current.meal_option_id, slot)
            else:
                outcome = await validator.validate_meal_entry(
                    current.meal_option_id, slot, day
                )
            if isinstance(outcome, ValidationFailed):
                return ScheduleOutcome(entry=current, failure=outcome.reason)
            moved = await repositories.entries.reschedule(entry_id, day, slot)
        if moved is None:
            raise NotFoundError(f"Meal entry {entry_id} not found")
        return ScheduleOutcome(entry=moved, warnings=outcome.warnings)

    async def weekly_overview(self, day: date) -> WeekPlan:
        """Return every entry in the ISO week containing ``day``."""
        days = week_dates(day)
        start, end = days[0], days[-1]
        async with self.store.transaction() as repositories:
            entries = await repositories.entries.list_by_date_range(start, end)
        return WeekPlan(week=week_key(day), start=start, end=end, entries=entries)


def _validator(repositories: Repositories) -> ValidationService:
    return ValidationService(
        templates=repositories.templates,
        options=repositories.options,
        tags=repositories.tags,
        entries=repositories.entries,
    )

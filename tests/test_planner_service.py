"""Tests for scheduling and moving meal entries."""

import asyncio
from datetime import date, timedelta

import pytest

from nutrition_helper.domain.entries import CreateMealEntry
from nutrition_helper.domain.enums import LocationType, SlotType, TagCategory
from nutrition_helper.domain.errors import InvalidInputError, NotFoundError
from nutrition_helper.domain.options import CreateMealOption, MealOption
from nutrition_helper.domain.tags import CreateTag
from nutrition_helper.domain.templates import CreateMealTemplate
from nutrition_helper.domain.validation import IncompatibleSlot, WeeklyLimitExceeded
from nutrition_helper.services.planner import (
    MealPlanService,
    Repositories,
    ScheduleOutcome,
    WeekPlan,
)
from tests.conftest import InMemoryStore

MONDAY = date(2024, 11, 4)


async def _seed_option(repositories: Repositories, weekly_limit: int | None) -> MealOption:
    template = await repositories.templates.create(
        CreateMealTemplate(
            name="Salmon bowl",
            compatible_slots=[SlotType.LUNCH, SlotType.DINNER],
            location_type=LocationType.ANY,
            weekly_limit=weekly_limit,
        )
    )
    return await repositories.options.create(
        CreateMealOption(template_id=template.id, name="Salmon teriyaki")
    )


def _payload(option_id: int, day: date, slot: SlotType = SlotType.LUNCH) -> CreateMealEntry:
    return CreateMealEntry(
        meal_option_id=option_id, date=day, slot_type=slot, location=LocationType.OFFICE
    )


def test_schedule_entry_stops_at_weekly_limit(repositories: Repositories) -> None:
    store = InMemoryStore(repositories)
    service = MealPlanService(store)

    async def run() -> list[ScheduleOutcome]:
        option = await _seed_option(repositories, weekly_limit=2)
        return [
            await service.schedule_entry(_payload(option.id, MONDAY + timedelta(days=offset)))
            for offset in range(3)
        ]

    first, second, third = asyncio.run(run())

    assert first.ok and second.ok
    assert first.entry is not None and first.entry.servings == 1.0
    assert not third.ok
    assert third.entry is None
    assert third.failure == WeeklyLimitExceeded(
        item_name="Salmon teriyaki", limit=2, current_usage=2
    )
    assert len(asyncio.run(repositories.entries.list_by_option(first.entry.meal_option_id))) == 2
    assert store.transactions == 3


def test_schedule_entry_returns_tag_warnings(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))

    async def run() -> ScheduleOutcome:
        option = await _seed_option(repositories, weekly_limit=None)
        tag = await repositories.tags.create(
            CreateTag(
                name="fish",
                display_name="Fish",
                category=TagCategory.INGREDIENT,
                weekly_suggestion=1,
            )
        )
        await repositories.options.add_tags(option.id, [tag.id])
        await service.schedule_entry(_payload(option.id, MONDAY))
        return await service.schedule_entry(_payload(option.id, MONDAY, SlotType.DINNER))

    outcome = asyncio.run(run())

    assert outcome.ok
    assert outcome.entry is not None
    assert [warning.tag_name for warning in outcome.warnings] == ["fish"]


def test_schedule_entry_rejects_invalid_payload(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))
    payload = CreateMealEntry(
        meal_option_id=1,
        date=MONDAY,
        slot_type=SlotType.LUNCH,
        location=LocationType.HOME,
        servings=-1,
    )

    with pytest.raises(InvalidInputError):
        asyncio.run(service.schedule_entry(payload))


def test_move_entry_within_week_only_checks_slot(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))

    async def run() -> tuple[ScheduleOutcome, ScheduleOutcome]:
        option = await _seed_option(repositories, weekly_limit=1)
        scheduled = await service.schedule_entry(_payload(option.id, MONDAY))
        assert scheduled.entry is not None
        moved = await service.move_entry(
            scheduled.entry.id, MONDAY + timedelta(days=4), SlotType.DINNER
        )
        rejected = await service.move_entry(
            scheduled.entry.id, MONDAY + timedelta(days=4), SlotType.BREAKFAST
        )
        return moved, rejected

    moved, rejected = asyncio.run(run())

    assert moved.ok
    assert moved.entry is not None
    assert moved.entry.date == MONDAY + timedelta(days=4)
    assert moved.entry.slot_type is SlotType.DINNER
    assert isinstance(rejected.failure, IncompatibleSlot)
    assert rejected.entry == moved.entry


def test_move_entry_to_full_week_is_rejected(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))
    next_monday = MONDAY + timedelta(days=7)

    async def run() -> ScheduleOutcome:
        option = await _seed_option(repositories, weekly_limit=1)
        first = await service.schedule_entry(_payload(option.id, MONDAY))
        await service.schedule_entry(_payload(option.id, next_monday))
        assert first.entry is not None
        return await service.move_entry(first.entry.id, next_monday, SlotType.DINNER)

    outcome = asyncio.run(run())

    assert isinstance(outcome.failure, WeeklyLimitExceeded)
    assert outcome.entry is not None
    assert outcome.entry.date == MONDAY


def test_move_missing_entry_raises(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))

    with pytest.raises(NotFoundError):
        asyncio.run(service.move_entry(7, MONDAY, SlotType.LUNCH))


def test_weekly_overview_lists_monday_to_sunday(repositories: Repositories) -> None:
    service = MealPlanService(InMemoryStore(repositories))

    async def run() -> WeekPlan:
        option = await _seed_option(repositories, weekly_limit=None)
        await service.schedule_entry(_payload(option.id, MONDAY - timedelta(days=1)))
        await service.schedule_entry(_payload(option.id, MONDAY + timedelta(days=6)))
        await service.schedule_entry(_payload(option.id, MONDAY, SlotType.DINNER))
        await service.schedule_entry(_payload(option.id, MONDAY))
        return await service.weekly_overview(MONDAY + timedelta(days=3))

    plan = asyncio.run(run())

    assert plan.week == "2024-45"
    assert (plan.start, plan.end) == (MONDAY, MONDAY + timedelta(days=6))
    assert [(entry.date, entry.slot_type) for entry in plan.entries] == [
        (MONDAY, SlotType.LUNCH),
        (MONDAY, SlotType.DINNER),
        (MONDAY + timedelta(days=6), SlotType.LUNCH),
    ]

"""SQLite implementation for meal entries and weekly usage lookups."""

from dataclasses import dataclass
from datetime import date

from sqlalchemy import case, delete, exists, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from nutrition_helper.adapters.sqlite_engine import Connectable, connect
from nutrition_helper.adapters.sqlite_schema import (
    meal_entries,
    meal_options,
    weekly_meal_usage,
    weekly_tag_usage,
)
from nutrition_helper.domain.entries import (
    CreateMealEntry,
    MealEntry,
    UpdateMealEntry,
    WeeklyTagUsage,
    WeeklyUsage,
)
from nutrition_helper.domain.enums import LocationType, SlotType
from nutrition_helper.domain.errors import ForeignKeyViolationError
from nutrition_helper.services.entries import MealEntryRepository

_SLOT_ORDER = case(
    {slot.value: slot.order for slot in SlotType},
    value=meal_entries.c.slot_type,
    else_=len(SlotType),
)


@dataclass
class SqliteMealEntryRepository(MealEntryRepository):
    """SQLite-backed repository for meal entries."""

    connectable: Connectable

    async def create(self, payload: CreateMealEntry) -> MealEntry:
        """Insert an entry; the option must exist."""
        async with connect(self.connectable, "create meal entry") as conn:
            option_exists = await conn.scalar(
                select(exists().where(meal_options.c.id == payload.meal_option_id))
            )
            if not option_exists:
                raise ForeignKeyViolationError(
                    f"Meal option with id {payload.meal_option_id} does not exist",
                    details={"meal_option_id": payload.meal_option_id},
                )
            result = await conn.execute(
                insert(meal_entries).values(
                    meal_option_id=payload.meal_option_id,
                    date=payload.date,
                    slot_type=payload.slot_type.value,
                    location=payload.location.value,
                    servings=payload.servings_or_default(),
                    notes=payload.notes,
                    completed=payload.completed_or_default(),
                )
            )
            entry = await _fetch(conn, result.inserted_primary_key[0])
        if entry is None:
            raise RuntimeError("Failed to create meal entry")
        return entry

    async def get(self, entry_id: int) -> MealEntry | None:
        """Return an entry by id, if present."""
        async with connect(self.connectable, "get meal entry") as conn:
            return await _fetch(conn, entry_id)

    async def list_by_date(self, day: date) -> list[MealEntry]:
        """Return the entries of a day in slot order."""
        async with connect(self.connectable, "list entries by date") as conn:
            result = await conn.execute(
                select(meal_entries)
                .where(meal_entries.c.date == day)
                .order_by(_SLOT_ORDER, meal_entries.c.id)
            )
            return [_parse_entry(row) for row in result.mappings()]

    async def list_by_date_range(self, start: date, end: date) -> list[MealEntry]:
        """Return entries between two dates, inclusive, by date then slot."""
        async with connect(self.connectable, "list entries by date range") as conn:
            result = await conn.execute(
                select(meal_entries)
                .where(meal_entries.c.date.between(start, end))
                .order_by(meal_entries.c.date, _SLOT_ORDER, meal_entries.c.id)
            )
            return [_parse_entry(row) for row in result.mappings()]

    async def list_by_date_and_slot(self, day: date, slot: SlotType) -> list[MealEntry]:
        """Return the entries of one slot on one day."""
        async with connect(self.connectable, "list entries by slot") as conn:
            result = await conn.execute(
                select(meal_entries)
                .where(
                    meal_entries.c.date == day,
                    meal_entries.c.slot_type == slot.value,
                )
                .order_by(meal_entries.c.id)
            )
            return [_parse_entry(row) for row in result.mappings()]

    async def list_by_completed(self, completed: bool) -> list[MealEntry]:
        """Return planned or consumed entries, newest first."""
        async with connect(self.connectable, "list entries by status") as conn:
            result = await conn.execute(
                select(meal_entries)
                .where(meal_entries.c.completed == completed)
                .order_by(meal_entries.c.date.desc(), _SLOT_ORDER, meal_entries.c.id)
            )
            return [_parse_entry(row) for row in result.mappings()]

    async def list_by_option(self, meal_option_id: int) -> list[MealEntry]:
        """Return the entries of an option, newest first."""
        async with connect(self.connectable, "list entries by option") as conn:
            result = await conn.execute(
                select(meal_entries)
                .where(meal_entries.c.meal_option_id == meal_option_id)
                .order_by(meal_entries.c.date.desc(), _SLOT_ORDER, meal_entries.c.id)
            )
            return [_parse_entry(row) for row in result.mappings()]

    async def get_weekly_usage(
        self, meal_option_id: int, week: str
    ) -> WeeklyUsage | None:
        """Return the usage of an option in an ISO week, if any."""
        async with connect(self.connectable, "get weekly usage") as conn:
            result = await conn.execute(
                select(weekly_meal_usage).where(
                    weekly_meal_usage.c.meal_option_id == meal_option_id,
                    weekly_meal_usage.c.week == week,
                )
            )
            row = result.mappings().first()
        if row is None:
            return None
        return WeeklyUsage(
            meal_option_id=int(row["meal_option_id"]),
            week=str(row["week"]),
            usage_count=int(row["usage_count"]),
        )

    async def get_weekly_tag_usage(self, tag_id: int, week: str) -> WeeklyTagUsage | None:
        """Return the usage of a tag in an ISO week, if any."""
        async with connect(self.connectable, "get weekly tag usage") as conn:
            result = await conn.execute(
                select(weekly_tag_usage).where(
                    weekly_tag_usage.c.tag_id == tag_id,
                    weekly_tag_usage.c.week == week,
                )
            )
            row = result.mappings().first()
        if row is None:
            return None
        return WeeklyTagUsage(
            tag_id=int(row["tag_id"]),
            tag_name=str(row["tag_name"]),
            display_name=str(row["display_name"]),
            week=str(row["week"]),
            usage_count=int(row["usage_count"]),
        )

    async def update(self, entry_id: int, patch: UpdateMealEntry) -> MealEntry | None:
        """Apply a patch and return the entry, or None when missing."""
        async with connect(self.connectable, "update meal entry") as conn:
            existing = await _fetch(conn, entry_id)
            if existing is None or patch.is_empty():
                return existing
            values: dict[str, object] = {}
            if patch.location is not None:
                values["location"] = patch.location.value
            if patch.servings is not None:
                values["servings"] = patch.servings
            if not patch.notes.is_keep:
                values["notes"] = patch.notes.apply(existing.notes)
            if patch.completed is not None:
                values["completed"] = patch.completed
            await conn.execute(
                update(meal_entries).where(meal_entries.c.id == entry_id).values(**values)
            )
            return await _fetch(conn, entry_id)

    async def reschedule(
        self, entry_id: int, day: date, slot: SlotType
    ) -> MealEntry | None:
        """Move an entry to another date and slot."""
        async with connect(self.connectable, "reschedule meal entry") as conn:
            result = await conn.execute(
                update(meal_entries)
                .where(meal_entries.c.id == entry_id)
                .values(date=day, slot_type=slot.value)
            )
            if result.rowcount == 0:
                return None
            return await _fetch(conn, entry_id)

    async def delete(self, entry_id: int) -> bool:
        """Delete an entry; return whether it existed."""
        async with connect(self.connectable, "delete meal entry") as conn:
            result = await conn.execute(
                delete(meal_entries).where(meal_entries.c.id == entry_id)
            )
            return result.rowcount > 0


async def _fetch(conn: AsyncConnection, entry_id: int) -> MealEntry | None:
    result = await conn.execute(
        select(meal_entries).where(meal_entries.c.id == entry_id)
    )
    row = result.mappings().first()
    return _parse_entry(row) if row is not None else None


def _parse_entry(row: RowMapping) -> MealEntry:
    """Parse an entry row into a domain model."""
    return MealEntry(
        id=int(row["id"]),
        meal_option_id=int(row["meal_option_id"]),
        date=row["date"],
        slot_type=SlotType.parse(row["slot_type"]),
        location=LocationType.parse(row["location"]),
        servings=float(row["servings"]),
        notes=row["notes"],
        completed=bool(row["completed"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )

"""SQLite implementation for meal templates."""

from dataclasses import dataclass

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from nutrition_helper.adapters.sqlite_engine import Connectable, connect
from nutrition_helper.adapters.sqlite_schema import meal_templates
from nutrition_helper.domain.enums import LocationType
from nutrition_helper.domain.templates import (
    CreateMealTemplate,
    MealTemplate,
    UpdateMealTemplate,
    parse_compatible_slots,
    serialize_compatible_slots,
)
from nutrition_helper.services.templates import MealTemplateRepository


@dataclass
class SqliteMealTemplateRepository(MealTemplateRepository):
    """SQLite-backed repository for meal templates."""

    connectable: Connectable

    async def create(self, payload: CreateMealTemplate) -> MealTemplate:
        """Insert a template and return it."""
        async with connect(self.connectable, "create meal template") as conn:
            result = await conn.execute(
                insert(meal_templates).values(
                    name=payload.name,
                    description=payload.description,
                    compatible_slots=serialize_compatible_slots(
                        payload.compatible_slots
                    ),
                    location_type=payload.location_type.value,
                    weekly_limit=payload.weekly_limit,
                )
            )
            template = await _fetch(conn, result.inserted_primary_key[0])
        if template is None:
            raise RuntimeError("Failed to create meal template")
        return template

    async def get(self, template_id: int) -> MealTemplate | None:
        """Return a template by id, if present."""
        async with connect(self.connectable, "get meal template") as conn:
            return await _fetch(conn, template_id)

    async def list_all(self) -> list[MealTemplate]:
        """Return every template ordered by name."""
        async with connect(self.connectable, "list meal templates") as conn:
            result = await conn.execute(
                select(meal_templates).order_by(meal_templates.c.name)
            )
            return [_parse_template(row) for row in result.mappings()]

    async def search(self, query: str) -> list[MealTemplate]:
        """Return templates whose name or description contains the query."""
        pattern = f"%{query}%"
        async with connect(self.connectable, "search meal templates") as conn:
            result = await conn.execute(
                select(meal_templates)
                .where(
                    or_(
                        meal_templates.c.name.like(pattern),
                        meal_templates.c.description.like(pattern),
                    )
                )
                .order_by(meal_templates.c.name)
            )
            return [_parse_template(row) for row in result.mappings()]

    async def update(
        self, template_id: int, patch: UpdateMealTemplate
    ) -> MealTemplate | None:
        """Apply a patch and return the template, or None when missing."""
        async with connect(self.connectable, "update meal template") as conn:
            existing = await _fetch(conn, template_id)
            if existing is None:
                return None
            slots = (
                patch.compatible_slots
                if patch.compatible_slots is not None
                else existing.compatible_slots
            )
            location = patch.location_type or existing.location_type
            await conn.execute(
                update(meal_templates)
                .where(meal_templates.c.id == template_id)
                .values(
                    name=patch.name if patch.name is not None else existing.name,
                    description=patch.description.apply(existing.description),
                    compatible_slots=serialize_compatible_slots(slots),
                    location_type=location.value,
                    weekly_limit=patch.weekly_limit.apply(existing.weekly_limit),
                )
            )
            return await _fetch(conn, template_id)

    async def delete(self, template_id: int) -> bool:
        """Delete a template and its options; return whether it existed."""
        async with connect(self.connectable, "delete meal template") as conn:
            result = await conn.execute(
                delete(meal_templates).where(meal_templates.c.id == template_id)
            )
            return result.rowcount > 0


async def _fetch(conn: AsyncConnection, template_id: int) -> MealTemplate | None:
    result = await conn.execute(
        select(meal_templates).where(meal_templates.c.id == template_id)
    )
    row = result.mappings().first()
    return _parse_template(row) if row is not None else None


def _parse_template(row: RowMapping) -> MealTemplate:
    """Parse a template row into a domain model."""
    return MealTemplate(
        id=int(row["id"]),
        name=str(row["name"]),
        description=row["description"],
        compatible_slots=parse_compatible_slots(row["compatible_slots"]),
        location_type=LocationType.parse(row["location_type"]),
        weekly_limit=row["weekly_limit"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )

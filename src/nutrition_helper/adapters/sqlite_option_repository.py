"""SQLite implementation for meal options and option tags."""

from dataclasses import dataclass

from sqlalchemy import delete, exists, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from nutrition_helper.adapters.sqlite_engine import Connectable, connect
from nutrition_helper.adapters.sqlite_schema import (
    meal_option_tags,
    meal_options,
    meal_templates,
    tags,
)
from nutrition_helper.domain.errors import ForeignKeyViolationError
from nutrition_helper.domain.options import (
    CreateMealOption,
    MealOption,
    UpdateMealOption,
)
from nutrition_helper.services.options import MealOptionRepository


@dataclass
class SqliteMealOptionRepository(MealOptionRepository):
    """SQLite-backed repository for meal options."""

    connectable: Connectable

    async def create(self, payload: CreateMealOption) -> MealOption:
        """Insert an option; the template must exist."""
        async with connect(self.connectable, "create meal option") as conn:
            template_exists = await conn.scalar(
                select(exists().where(meal_templates.c.id == payload.template_id))
            )
            if not template_exists:
                raise ForeignKeyViolationError(
                    f"Meal template with id {payload.template_id} does not exist",
                    details={"template_id": payload.template_id},
                )
            result = await conn.execute(
                insert(meal_options).values(
                    template_id=payload.template_id,
                    name=payload.name,
                    description=payload.description,
                    nutritional_notes=payload.nutritional_notes,
                )
            )
            option = await _fetch(conn, result.inserted_primary_key[0])
        if option is None:
            raise RuntimeError("Failed to create meal option")
        return option

    async def get(self, option_id: int) -> MealOption | None:
        """Return an option by id, if present."""
        async with connect(self.connectable, "get meal option") as conn:
            return await _fetch(conn, option_id)

    async def list_all(self) -> list[MealOption]:
        """Return every option ordered by name."""
        async with connect(self.connectable, "list meal options") as conn:
            result = await conn.execute(
                select(meal_options).order_by(meal_options.c.name)
            )
            return [_parse_option(row) for row in result.mappings()]

    async def list_by_template(self, template_id: int) -> list[MealOption]:
        """Return the options of a template ordered by name."""
        async with connect(self.connectable, "list template options") as conn:
            result = await conn.execute(
                select(meal_options)
                .where(meal_options.c.template_id == template_id)
                .order_by(meal_options.c.name)
            )
            return [_parse_option(row) for row in result.mappings()]

    async def search(self, query: str) -> list[MealOption]:
        """Return options whose name or description contains the query."""
        pattern = f"%{query}%"
        async with connect(self.connectable, "search meal options") as conn:
            result = await conn.execute(
                select(meal_options)
                .where(
                    or_(
                        meal_options.c.name.like(pattern),
                        meal_options.c.description.like(pattern),
                    )
                )
                .order_by(meal_options.c.name)
            )
            return [_parse_option(row) for row in result.mappings()]

    async def update(
        self, option_id: int, patch: UpdateMealOption
    ) -> MealOption | None:
        """Apply a patch and return the option, or None when missing."""
        async with connect(self.connectable, "update meal option") as conn:
            existing = await _fetch(conn, option_id)
            if existing is None:
                return None
            await conn.execute(
                update(meal_options)
                .where(meal_options.c.id == option_id)
                .values(
                    name=patch.name if patch.name is not None else existing.name,
                    description=patch.description.apply(existing.description),
                    nutritional_notes=patch.nutritional_notes.apply(
                        existing.nutritional_notes
                    ),
                )
            )
            return await _fetch(conn, option_id)

    async def delete(self, option_id: int) -> bool:
        """Delete an option; entries referencing it block the delete."""
        async with connect(self.connectable, "delete meal option") as conn:
            result = await conn.execute(
                delete(meal_options).where(meal_options.c.id == option_id)
            )
            return result.rowcount > 0

    async def list_tag_ids(self, option_id: int) -> list[int]:
        """Return the ids of the tags attached to an option."""
        async with connect(self.connectable, "list option tags") as conn:
            result = await conn.execute(
                select(meal_option_tags.c.tag_id)
                .where(meal_option_tags.c.meal_option_id == option_id)
                .order_by(meal_option_tags.c.tag_id)
            )
            return [int(tag_id) for tag_id in result.scalars()]

    async def add_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Attach tags, ignoring ones already attached."""
        async with connect(self.connectable, "add option tags") as conn:
            await _require_tags(conn, tag_ids)
            for tag_id in tag_ids:
                await conn.execute(
                    insert(meal_option_tags)
                    .prefix_with("OR IGNORE")
                    .values(meal_option_id=option_id, tag_id=tag_id)
                )

    async def remove_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Detach tags."""
        if not tag_ids:
            return
        async with connect(self.connectable, "remove option tags") as conn:
            await conn.execute(
                delete(meal_option_tags).where(
                    meal_option_tags.c.meal_option_id == option_id,
                    meal_option_tags.c.tag_id.in_(tag_ids),
                )
            )

    async def set_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Replace the tags of an option."""
        async with connect(self.connectable, "set option tags") as conn:
            await _require_tags(conn, tag_ids)
            await conn.execute(
                delete(meal_option_tags).where(
                    meal_option_tags.c.meal_option_id == option_id
                )
            )
            if tag_ids:
                await conn.execute(
                    insert(meal_option_tags),
                    [
                        {"meal_option_id": option_id, "tag_id": tag_id}
                        for tag_id in tag_ids
                    ],
                )


async def _require_tags(conn: AsyncConnection, tag_ids: list[int]) -> None:
    if not tag_ids:
        return
    result = await conn.execute(select(tags.c.id).where(tags.c.id.in_(tag_ids)))
    missing = set(tag_ids) - {int(tag_id) for tag_id in result.scalars()}
    if missing:
        raise ForeignKeyViolationError(
            f"Tags do not exist: {sorted(missing)}",
            details={"tag_ids": sorted(missing)},
        )


async def _fetch(conn: AsyncConnection, option_id: int) -> MealOption | None:
    result = await conn.execute(
        select(meal_options).where(meal_options.c.id == option_id)
    )
    row = result.mappings().first()
    return _parse_option(row) if row is not None else None


def _parse_option(row: RowMapping) -> MealOption:
    """Parse an option row into a domain model."""
    return MealOption(
        id=int(row["id"]),
        template_id=int(row["template_id"]),
        name=str(row["name"]),
        description=row["description"],
        nutritional_notes=row["nutritional_notes"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )

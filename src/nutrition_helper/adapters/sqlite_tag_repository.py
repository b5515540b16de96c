"""SQLite implementation for tags."""

from dataclasses import dataclass

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncConnection

from nutrition_helper.adapters.sqlite_engine import Connectable, connect
from nutrition_helper.adapters.sqlite_schema import tags
from nutrition_helper.domain.enums import TagCategory
from nutrition_helper.domain.tags import CreateTag, Tag, UpdateTag
from nutrition_helper.services.tags import TagRepository


@dataclass
class SqliteTagRepository(TagRepository):
    """SQLite-backed repository for tags."""

    connectable: Connectable

    async def create(self, payload: CreateTag) -> Tag:
        """Insert a tag; the name must be unique."""
        async with connect(self.connectable, "create tag") as conn:
            result = await conn.execute(
                insert(tags).values(
                    name=payload.name,
                    display_name=payload.display_name,
                    category=payload.category.value,
                    weekly_suggestion=payload.weekly_suggestion,
                    parent_tag_id=payload.parent_tag_id,
                )
            )
            tag = await _fetch(conn, result.inserted_primary_key[0])
        if tag is None:
            raise RuntimeError("Failed to create tag")
        return tag

    async def get(self, tag_id: int) -> Tag | None:
        """Return a tag by id, if present."""
        async with connect(self.connectable, "get tag") as conn:
            return await _fetch(conn, tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        """Return a tag by its internal name, if present."""
        async with connect(self.connectable, "get tag by name") as conn:
            result = await conn.execute(select(tags).where(tags.c.name == name))
            row = result.mappings().first()
            return _parse_tag(row) if row is not None else None

    async def list_all(self) -> list[Tag]:
        """Return every tag ordered by name."""
        async with connect(self.connectable, "list tags") as conn:
            result = await conn.execute(select(tags).order_by(tags.c.name))
            return [_parse_tag(row) for row in result.mappings()]

    async def list_by_category(self, category: TagCategory) -> list[Tag]:
        """Return the tags of one category ordered by name."""
        async with connect(self.connectable, "list tags by category") as conn:
            result = await conn.execute(
                select(tags)
                .where(tags.c.category == category.value)
                .order_by(tags.c.name)
            )
            return [_parse_tag(row) for row in result.mappings()]

    async def list_children(self, parent_id: int) -> list[Tag]:
        """Return the direct children of a tag."""
        async with connect(self.connectable, "list tag children") as conn:
            result = await conn.execute(
                select(tags)
                .where(tags.c.parent_tag_id == parent_id)
                .order_by(tags.c.name)
            )
            return [_parse_tag(row) for row in result.mappings()]

    async def update(self, tag_id: int, patch: UpdateTag) -> Tag | None:
        """Apply a patch and return the tag, or None when missing."""
        async with connect(self.connectable, "update tag") as conn:
            existing = await _fetch(conn, tag_id)
            if existing is None:
                return None
            category = patch.category or existing.category
            await conn.execute(
                update(tags)
                .where(tags.c.id == tag_id)
                .values(
                    display_name=(
                        patch.display_name
                        if patch.display_name is not None
                        else existing.display_name
                    ),
                    category=category.value,
                    weekly_suggestion=patch.weekly_suggestion.apply(
                        existing.weekly_suggestion
                    ),
                    parent_tag_id=patch.parent_tag_id.apply(existing.parent_tag_id),
                )
            )
            return await _fetch(conn, tag_id)

    async def delete(self, tag_id: int) -> bool:
        """Delete a tag; children keep existing without a parent."""
        async with connect(self.connectable, "delete tag") as conn:
            result = await conn.execute(delete(tags).where(tags.c.id == tag_id))
            return result.rowcount > 0


async def _fetch(conn: AsyncConnection, tag_id: int) -> Tag | None:
    result = await conn.execute(select(tags).where(tags.c.id == tag_id))
    row = result.mappings().first()
    return _parse_tag(row) if row is not None else None


def _parse_tag(row: RowMapping) -> Tag:
    """Parse a tag row into a domain model."""
    return Tag(
        id=int(row["id"]),
        name=str(row["name"]),
        display_name=str(row["display_name"]),
        category=TagCategory.parse(row["category"]),
        weekly_suggestion=row["weekly_suggestion"],
        parent_tag_id=row["parent_tag_id"],
        created_at=row["created_at"],
    )

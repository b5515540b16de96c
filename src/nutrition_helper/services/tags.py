"""Services for managing tags and their hierarchy."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrition_helper.domain.enums import TagCategory
from nutrition_helper.domain.errors import InvalidInputError, NotFoundError
from nutrition_helper.domain.patches import PatchKind
from nutrition_helper.domain.tags import CreateTag, Tag, UpdateTag

_logger = logging.getLogger(__name__)


class TagRepository(Protocol):
    """Persistence interface for tags."""

    async def create(self, payload: CreateTag) -> Tag:
        """Insert a tag; the name must be unique."""

    async def get(self, tag_id: int) -> Tag | None:
        """Return a tag by id, if present."""

    async def get_by_name(self, name: str) -> Tag | None:
        """Return a tag by its internal name, if present."""

    async def list_all(self) -> list[Tag]:
        """Return every tag ordered by name."""

    async def list_by_category(self, category: TagCategory) -> list[Tag]:
        """Return the tags of one category ordered by name."""

    async def list_children(self, parent_id: int) -> list[Tag]:
        """Return the direct children of a tag."""

    async def update(self, tag_id: int, patch: UpdateTag) -> Tag | None:
        """Apply a patch and return the tag, or None when missing."""

    async def delete(self, tag_id: int) -> bool:
        """Delete a tag; children keep existing without a parent."""


@dataclass
class TagService:
    """Application service for tag operations."""

    repository: TagRepository

    async def create(self, payload: CreateTag) -> Tag:
        payload.validate()
        return await self.repository.create(payload)

    async def get(self, tag_id: int) -> Tag | None:
        return await self.repository.get(tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        return await self.repository.get_by_name(name)

    async def list_all(self) -> list[Tag]:
        return await self.repository.list_all()

    async def list_by_category(self, category: TagCategory) -> list[Tag]:
        return await self.repository.list_by_category(category)

    async def list_children(self, parent_id: int) -> list[Tag]:
        return await self.repository.list_children(parent_id)

    async def update(self, tag_id: int, patch: UpdateTag) -> Tag:
        patch.validate()
        if patch.parent_tag_id.kind is PatchKind.SET:
            await self._ensure_acyclic(tag_id, patch.parent_tag_id.value)
        tag = await self.repository.update(tag_id, patch)
        if tag is None:
            raise NotFoundError(f"Tag {tag_id} not found")
        return tag

    async def delete(self, tag_id: int) -> bool:
        return await self.repository.delete(tag_id)

    async def _ensure_acyclic(self, tag_id: int, parent_id: int | None) -> None:
        """Reject a parent whose ancestor chain leads back to the tag."""
        seen: set[int] = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == tag_id:
                _logger.info(
                    "Rejected tag parent cycle: tag=%s parent=%s", tag_id, parent_id
                )
                raise InvalidInputError(
                    "Tag cannot be its own ancestor",
                    details={"tag_id": tag_id, "parent_tag_id": parent_id},
                )
            seen.add(current)
            ancestor = await self.repository.get(current)
            current = ancestor.parent_tag_id if ancestor else None

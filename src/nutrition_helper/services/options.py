"""Services for managing meal options and their tags."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_helper.domain.errors import NotFoundError
from nutrition_helper.domain.options import (
    CreateMealOption,
    MealOption,
    MealOptionWithTags,
    UpdateMealOption,
)


class MealOptionRepository(Protocol):
    """Persistence interface for meal options."""

    async def create(self, payload: CreateMealOption) -> MealOption:
        """Insert an option; the template must exist."""

    async def get(self, option_id: int) -> MealOption | None:
        """Return an option by id, if present."""

    async def list_all(self) -> list[MealOption]:
        """Return every option ordered by name."""

    async def list_by_template(self, template_id: int) -> list[MealOption]:
        """Return the options of a template ordered by name."""

    async def search(self, query: str) -> list[MealOption]:
        """Return options whose name or description contains the query."""

    async def update(
        self, option_id: int, patch: UpdateMealOption
    ) -> MealOption | None:
        """Apply a patch and return the option, or None when missing."""

    async def delete(self, option_id: int) -> bool:
        """Delete an option; return whether it existed."""

    async def list_tag_ids(self, option_id: int) -> list[int]:
        """Return the ids of the tags attached to an option."""

    async def add_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Attach tags, ignoring ones already attached."""

    async def remove_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Detach tags."""

    async def set_tags(self, option_id: int, tag_ids: list[int]) -> None:
        """Replace the tags of an option."""


@dataclass
class MealOptionService:
    """Application service for option operations."""

    repository: MealOptionRepository

    async def create(self, payload: CreateMealOption) -> MealOption:
        payload.validate()
        return await self.repository.create(payload)

    async def get(self, option_id: int) -> MealOption | None:
        return await self.repository.get(option_id)

    async def get_with_tags(self, option_id: int) -> MealOptionWithTags | None:
        option = await self.repository.get(option_id)
        if option is None:
            return None
        tags = await self.repository.list_tag_ids(option_id)
        return MealOptionWithTags(option=option, tags=tags)

    async def list_all(self) -> list[MealOption]:
        return await self.repository.list_all()

    async def list_by_template(self, template_id: int) -> list[MealOption]:
        return await self.repository.list_by_template(template_id)

    async def list_by_template_with_tags(
        self, template_id: int
    ) -> list[MealOptionWithTags]:
        options = await self.repository.list_by_template(template_id)
        return [
            MealOptionWithTags(
                option=option, tags=await self.repository.list_tag_ids(option.id)
            )
            for option in options
        ]

    async def search(self, query: str) -> list[MealOption]:
        if not query.strip():
            return await self.repository.list_all()
        return await self.repository.search(query.strip())

    async def update(self, option_id: int, patch: UpdateMealOption) -> MealOption:
        patch.validate()
        option = await self.repository.update(option_id, patch)
        if option is None:
            raise NotFoundError(f"Meal option {option_id} not found")
        return option

    async def delete(self, option_id: int) -> None:
        if not await self.repository.delete(option_id):
            raise NotFoundError(f"Meal option {option_id} not found")

    async def add_tags(self, option_id: int, tag_ids: list[int]) -> None:
        await self._require(option_id)
        await self.repository.add_tags(option_id, _unique(tag_ids))

    async def remove_tags(self, option_id: int, tag_ids: list[int]) -> None:
        await self._require(option_id)
        await self.repository.remove_tags(option_id, _unique(tag_ids))

    async def set_tags(self, option_id: int, tag_ids: list[int]) -> None:
        await self._require(option_id)
        await self.repository.set_tags(option_id, _unique(tag_ids))

    async def _require(self, option_id: int) -> None:
        if await self.repository.get(option_id) is None:
            raise NotFoundError(f"Meal option {option_id} not found")


def _unique(tag_ids: list[int]) -> list[int]:
    return list(dict.fromkeys(tag_ids))

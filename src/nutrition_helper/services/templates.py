"""Services for managing meal templates."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_helper.domain.enums import LocationType, SlotType
from nutrition_helper.domain.errors import NotFoundError
from nutrition_helper.domain.templates import (
    CreateMealTemplate,
    MealTemplate,
    UpdateMealTemplate,
)


class MealTemplateRepository(Protocol):
    """Persistence interface for meal templates."""

    async def create(self, payload: CreateMealTemplate) -> MealTemplate:
        """Insert a template and return it."""

    async def get(self, template_id: int) -> MealTemplate | None:
        """Return a template by id, if present."""

    async def list_all(self) -> list[MealTemplate]:
        """Return every template ordered by name."""

    async def search(self, query: str) -> list[MealTemplate]:
        """Return templates whose name or description contains the query."""

    async def update(
        self, template_id: int, patch: UpdateMealTemplate
    ) -> MealTemplate | None:
        """Apply a patch and return the template, or None when missing."""

    async def delete(self, template_id: int) -> bool:
        """Delete a template and its options; return whether it existed."""


@dataclass
class MealTemplateService:
    """Application service for template operations."""

    repository: MealTemplateRepository

    async def create(self, payload: CreateMealTemplate) -> MealTemplate:
        payload.validate()
        return await self.repository.create(payload)

    async def get(self, template_id: int) -> MealTemplate | None:
        return await self.repository.get(template_id)

    async def list_all(self) -> list[MealTemplate]:
        return await self.repository.list_all()

    async def list_by_slot(self, slot: SlotType) -> list[MealTemplate]:
        """Return templates that can fill the given slot."""
        templates = await self.repository.list_all()
        return [template for template in templates if template.accepts_slot(slot)]

    async def list_by_location(self, location: LocationType) -> list[MealTemplate]:
        """Return templates that can be eaten at the given location."""
        templates = await self.repository.list_all()
        return [
            template
            for template in templates
            if template.location_type.is_compatible_with(location)
        ]

    async def search(self, query: str) -> list[MealTemplate]:
        if not query.strip():
            return await self.repository.list_all()
        return await self.repository.search(query.strip())

    async def update(
        self, template_id: int, patch: UpdateMealTemplate
    ) -> MealTemplate:
        patch.validate()
        template = await self.repository.update(template_id, patch)
        if template is None:
            raise NotFoundError(f"Meal template {template_id} not found")
        return template

    async def delete(self, template_id: int) -> bool:
        return await self.repository.delete(template_id)

"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrition_helper.adapters.sqlite_engine import create_engine
from nutrition_helper.adapters.sqlite_store import SqliteStore
from nutrition_helper.app_logging import configure_logging
from nutrition_helper.config import Settings
from nutrition_helper.services.entries import MealEntryService
from nutrition_helper.services.options import MealOptionService
from nutrition_helper.services.planner import MealPlanService
from nutrition_helper.services.tags import TagService
from nutrition_helper.services.templates import MealTemplateService
from nutrition_helper.services.validation import ValidationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: SqliteStore
    template_service: MealTemplateService
    option_service: MealOptionService
    tag_service: TagService
    entry_service: MealEntryService
    validation_service: ValidationService
    plan_service: MealPlanService
    initialize: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    The schema is not touched here; await ``initialize`` before first use.
    """
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    store = SqliteStore(create_engine(resolved_settings))
    repositories = store.repositories()
    validation_service = ValidationService(
        templates=repositories.templates,
        options=repositories.options,
        tags=repositories.tags,
        entries=repositories.entries,
    )

    async def initialize() -> None:
        await store.initialize()

    async def close_resources() -> None:
        await store.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        template_service=MealTemplateService(repositories.templates),
        option_service=MealOptionService(repositories.options),
        tag_service=TagService(repositories.tags),
        entry_service=MealEntryService(repositories.entries),
        validation_service=validation_service,
        plan_service=MealPlanService(store),
        initialize=initialize,
        close_resources=close_resources,
    )

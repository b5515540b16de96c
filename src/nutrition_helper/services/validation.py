"""Validation engine for meal entries.

Three layers are checked in order for an (option, slot, date) request:

1. the option's template must list the slot among its compatible slots;
2. when the template declares a ``weekly_limit``, the option must have fewer
   entries than the limit in the date's ISO week, so ``limit`` entries can
   coexist and the next one is rejected;
3. every tag of the option with a ``weekly_suggestion`` is compared with its
   usage across all options in that week, and a warning is produced for each
   tag that already reached its suggestion.

The first two are hard rules and short-circuit; the third never blocks.
Usage counts include planned and completed entries. Storage failures raised
by the repositories propagate unchanged.
"""

import logging
from dataclasses import dataclass
from datetime import date

from nutrition_helper.domain.enums import SlotType
from nutrition_helper.domain.options import MealOption
from nutrition_helper.domain.templates import MealTemplate
from nutrition_helper.domain.validation import (
    IncompatibleSlot,
    MissingReference,
    ValidationFailed,
    ValidationFailure,
    ValidationOutcome,
    ValidationPassed,
    ValidationWarning,
    WarningType,
    WeeklyLimitExceeded,
)
from nutrition_helper.domain.weeks import week_key
from nutrition_helper.services.entries import MealEntryRepository
from nutrition_helper.services.options import MealOptionRepository
from nutrition_helper.services.tags import TagRepository
from nutrition_helper.services.templates import MealTemplateRepository

_logger = logging.getLogger(__name__)


@dataclass
class ValidationService:
    """Stateless orchestrator over template, option, tag and entry reads."""

    templates: MealTemplateRepository
    options: MealOptionRepository
    tags: TagRepository
    entries: MealEntryRepository

    async def validate_meal_entry(
        self, meal_option_id: int, slot: SlotType, day: date
    ) -> ValidationOutcome:
        """Run every rule for a prospective entry and collect warnings."""
        resolved = await self._resolve(meal_option_id)
        if isinstance(resolved, MissingReference):
            return _reject(resolved, meal_option_id, day)
        option, template = resolved

        failure = validate_slot_compatibility(option, template, slot)
        if failure is None:
            failure = await self._weekly_limit_failure(option, template, day)
        if failure is not None:
            return _reject(failure, meal_option_id, day)

        warnings = await self._tag_warnings(option.id, day)
        return ValidationPassed(warnings=warnings)

    async def check_slot(self, meal_option_id: int, slot: SlotType) -> ValidationOutcome:
        """Check only that the option's template accepts the slot."""
        resolved = await self._resolve(meal_option_id)
        if isinstance(resolved, MissingReference):
            return ValidationFailed(reason=resolved)
        option, template = resolved
        failure = validate_slot_compatibility(option, template, slot)
        if failure is not None:
            return ValidationFailed(reason=failure)
        return ValidationPassed()

    async def check_weekly_limit(
        self, meal_option_id: int, day: date
    ) -> ValidationOutcome:
        """Check only the hard weekly limit, for pre-flight display."""
        resolved = await self._resolve(meal_option_id)
        if isinstance(resolved, MissingReference):
            return ValidationFailed(reason=resolved)
        option, template = resolved
        failure = await self._weekly_limit_failure(option, template, day)
        if failure is not None:
            return ValidationFailed(reason=failure)
        return ValidationPassed()

    async def check_tag_suggestions(
        self, meal_option_id: int, day: date
    ) -> list[ValidationWarning]:
        """Return advisory warnings for the option's tags in the date's week.

        An unknown option has no tags and therefore no warnings.
        """
        return await self._tag_warnings(meal_option_id, day)

    async def _resolve(
        self, meal_option_id: int
    ) -> tuple[MealOption, MealTemplate] | MissingReference:
        option = await self.options.get(meal_option_id)
        if option is None:
            return MissingReference(entity="meal_option", entity_id=meal_option_id)
        template = await self.templates.get(option.template_id)
        if template is None:
            return MissingReference(
                entity="meal_template", entity_id=option.template_id
            )
        return option, template

    async def _weekly_limit_failure(
        self, option: MealOption, template: MealTemplate, day: date
    ) -> WeeklyLimitExceeded | None:
        if template.weekly_limit is None:
            return None
        usage = await self.entries.get_weekly_usage(option.id, week_key(day))
        current = usage.usage_count if usage else 0
        if current >= template.weekly_limit:
            return WeeklyLimitExceeded(
                item_name=option.name,
                limit=template.weekly_limit,
                current_usage=current,
            )
        return None

    async def _tag_warnings(
        self, meal_option_id: int, day: date
    ) -> list[ValidationWarning]:
        week = week_key(day)
        warnings: list[ValidationWarning] = []
        for tag_id in await self.options.list_tag_ids(meal_option_id):
            tag = await self.tags.get(tag_id)
            if tag is None or tag.weekly_suggestion is None:
                continue
            usage = await self.entries.get_weekly_tag_usage(tag_id, week)
            current = usage.usage_count if usage else 0
            if current >= tag.weekly_suggestion:
                warnings.append(
                    ValidationWarning(
                        warning_type=WarningType.TAG_SUGGESTION,
                        tag_id=tag.id,
                        tag_name=tag.name,
                        display_name=tag.display_name,
                        suggestion=tag.weekly_suggestion,
                        current_usage=current,
                    )
                )
        if warnings:
            _logger.info(
                "Tag suggestions reached: option=%s week=%s tags=%s",
                meal_option_id,
                week,
                [warning.tag_name for warning in warnings],
            )
        return warnings


def validate_slot_compatibility(
    option: MealOption, template: MealTemplate, slot: SlotType
) -> IncompatibleSlot | None:
    """Return a failure when the template cannot fill ``slot``."""
    if template.accepts_slot(slot):
        return None
    return IncompatibleSlot(
        option_name=option.name,
        slot=slot,
        compatible_slots=list(template.compatible_slots),
    )


def _reject(
    failure: ValidationFailure, meal_option_id: int, day: date
) -> ValidationFailed:
    _logger.info(
        "Meal entry rejected: option=%s date=%s reason=%s",
        meal_option_id,
        day.isoformat(),
        failure.message,
    )
    return ValidationFailed(reason=failure)

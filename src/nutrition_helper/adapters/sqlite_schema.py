"""SQLite schema: tables, weekly usage views and initialisation."""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.ext.asyncio import AsyncEngine

from nutrition_helper.domain.enums import LocationType, SlotType, TagCategory

_logger = logging.getLogger(__name__)


def _in_values(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


def _timestamp(name: str, *, on_update: bool = False) -> Column:
    return Column(
        name,
        DateTime,
        nullable=False,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp() if on_update else None,
    )


metadata = MetaData()

meal_templates = Table(
    "meal_templates",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("compatible_slots", Text, nullable=False),
    Column("location_type", Text, nullable=False),
    Column("weekly_limit", Integer),
    _timestamp("created_at"),
    _timestamp("updated_at", on_update=True),
    CheckConstraint(
        _in_values("location_type", [item.value for item in LocationType]),
        name="ck_meal_templates_location_type",
    ),
    CheckConstraint(
        "weekly_limit IS NULL OR weekly_limit > 0",
        name="ck_meal_templates_weekly_limit",
    ),
    Index("idx_meal_templates_location", "location_type"),
    sqlite_autoincrement=True,
)

meal_options = Table(
    "meal_options",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "template_id",
        Integer,
        ForeignKey("meal_templates.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    Column("description", Text),
    Column("nutritional_notes", Text),
    _timestamp("created_at"),
    _timestamp("updated_at", on_update=True),
    Index("idx_meal_options_template", "template_id"),
    sqlite_autoincrement=True,
)

tags = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False, unique=True),
    Column("display_name", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("weekly_suggestion", Integer),
    Column("parent_tag_id", Integer, ForeignKey("tags.id", ondelete="SET NULL")),
    _timestamp("created_at"),
    CheckConstraint(
        _in_values("category", [item.value for item in TagCategory]),
        name="ck_tags_category",
    ),
    CheckConstraint(
        "weekly_suggestion IS NULL OR weekly_suggestion >= 0",
        name="ck_tags_weekly_suggestion",
    ),
    Index("idx_tags_category", "category"),
    Index("idx_tags_parent", "parent_tag_id"),
    sqlite_autoincrement=True,
)

meal_option_tags = Table(
    "meal_option_tags",
    metadata,
    Column(
        "meal_option_id",
        Integer,
        ForeignKey("meal_options.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("idx_meal_option_tags_tag", "tag_id"),
)

meal_entries = Table(
    "meal_entries",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "meal_option_id",
        Integer,
        ForeignKey("meal_options.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("date", Date, nullable=False),
    Column("slot_type", Text, nullable=False),
    Column("location", Text, nullable=False),
    Column("servings", Float, nullable=False, server_default=text("1.0")),
    Column("notes", Text),
    Column("completed", Boolean, nullable=False, server_default=text("0")),
    _timestamp("created_at"),
    _timestamp("updated_at", on_update=True),
    CheckConstraint(
        _in_values("slot_type", [item.value for item in SlotType]),
        name="ck_meal_entries_slot_type",
    ),
    CheckConstraint(
        _in_values("location", [item.value for item in LocationType]),
        name="ck_meal_entries_location",
    ),
    CheckConstraint("servings > 0", name="ck_meal_entries_servings"),
    Index("idx_meal_entries_date", "date"),
    Index("idx_meal_entries_option", "meal_option_id"),
    Index("idx_meal_entries_date_slot", "date", "slot_type"),
    sqlite_autoincrement=True,
)

# Views are created from raw DDL below; these tables only describe their columns.
view_metadata = MetaData()

weekly_meal_usage = Table(
    "weekly_meal_usage",
    view_metadata,
    Column("meal_option_id", Integer),
    Column("week", Text),
    Column("usage_count", Integer),
)

weekly_tag_usage = Table(
    "weekly_tag_usage",
    view_metadata,
    Column("tag_id", Integer),
    Column("tag_name", Text),
    Column("display_name", Text),
    Column("week", Text),
    Column("usage_count", Integer),
)


def iso_week_sql(column: str) -> str:
    """SQL expression producing the ``YYYY-WW`` ISO week key of a date column.

    The Thursday of a date's Monday-based week determines both the ISO year
    and the week number.
    """
    thursday = f"{column}, '-3 days', 'weekday 4'"
    return (
        f"strftime('%Y', {thursday}) || '-' || "
        f"printf('%02d', (CAST(strftime('%j', {thursday}) AS INTEGER) - 1) / 7 + 1)"
    )


VIEW_STATEMENTS = [
    f"""
    CREATE VIEW IF NOT EXISTS weekly_meal_usage AS
    SELECT
        meal_option_id,
        {iso_week_sql("date")} AS week,
        COUNT(*) AS usage_count
    FROM meal_entries
    GROUP BY meal_option_id, week
    """,
    f"""
    CREATE VIEW IF NOT EXISTS weekly_tag_usage AS
    SELECT
        t.id AS tag_id,
        t.name AS tag_name,
        t.display_name AS display_name,
        {iso_week_sql("me.date")} AS week,
        COUNT(*) AS usage_count
    FROM meal_entries me
    JOIN meal_option_tags mot ON me.meal_option_id = mot.meal_option_id
    JOIN tags t ON mot.tag_id = t.id
    GROUP BY t.id, t.name, t.display_name, week
    """,
]


async def initialize_database(engine: AsyncEngine) -> None:
    """Create tables, indexes and views that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        for statement in VIEW_STATEMENTS:
            await conn.exec_driver_sql(statement)
    _logger.info("Database schema ready: %s", engine.url.render_as_string())

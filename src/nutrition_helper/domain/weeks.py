"""ISO-8601 week helpers used for weekly usage accounting."""

from datetime import date, timedelta

DAYS_PER_WEEK = 7


def week_key(day: date) -> str:
    """Return the ISO week key of a date, formatted ``YYYY-WW``.

    The year is the ISO week-numbering year, so 2024-12-30 maps to
    ``2025-01`` and 2021-01-03 maps to ``2020-53``.
    """
    iso = day.isocalendar()
    return f"{iso.year}-{iso.week:02d}"


def get_week_start(day: date) -> date:
    """Return the Monday that begins the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_dates(day: date) -> list[date]:
    """Return the seven dates, Monday to Sunday, of the week containing ``day``."""
    start = get_week_start(day)
    return [start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]

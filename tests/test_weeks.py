"""Tests for ISO week helpers."""

from datetime import date, timedelta

from nutrition_helper.domain.weeks import get_week_start, week_dates, week_key


def test_week_key_is_stable_from_monday_to_sunday() -> None:
    monday = date(2024, 11, 4)
    keys = {week_key(monday + timedelta(days=offset)) for offset in range(7)}

    assert keys == {"2024-45"}


def test_week_key_changes_after_seven_days() -> None:
    day = date(2024, 3, 14)

    assert week_key(day) != week_key(day + timedelta(days=7))


def test_week_key_across_year_boundary() -> None:
    span = [date(2024, 12, 30) + timedelta(days=offset) for offset in range(7)]

    assert {week_key(day) for day in span} == {"2025-01"}
    assert week_key(date(2025, 1, 6)) == "2025-02"


def test_week_key_uses_iso_year_for_early_january() -> None:
    assert week_key(date(2021, 1, 3)) == "2020-53"
    assert week_key(date(2021, 1, 4)) == "2021-01"


def test_week_key_pads_single_digit_weeks() -> None:
    assert week_key(date(2024, 1, 1)) == "2024-01"


def test_get_week_start_returns_monday_and_is_idempotent() -> None:
    for offset in range(14):
        day = date(2024, 12, 25) + timedelta(days=offset)
        start = get_week_start(day)

        assert start.weekday() == 0
        assert get_week_start(start) == start
        assert week_key(start) == week_key(day)


def test_week_dates_span_monday_to_sunday() -> None:
    days = week_dates(date(2025, 1, 1))

    assert days[0] == date(2024, 12, 30)
    assert days[-1] == date(2025, 1, 5)
    assert len(days) == 7

"""Unit tests for time helpers (app/utils/time_utils.py)"""
import pytest
from datetime import date, datetime, timedelta, timezone

from app.utils.time_utils import ensure_utc, start_of_day, to_utc_isoformat, utc_now, week_key


# ============================================================================
# Week Key Tests
# ============================================================================

def test_week_key_same_for_every_day_of_a_week():
    """Mon 12 Oct 2026 through Sun 18 Oct 2026 is ISO week 42"""
    monday = date(2026, 10, 12)
    keys = {week_key(monday + timedelta(days=i)) for i in range(7)}
    assert keys == {"2026-42"}


def test_week_key_sunday_and_next_monday_differ():
    assert week_key(date(2026, 10, 18)) == "2026-42"
    assert week_key(date(2026, 10, 19)) == "2026-43"


def test_week_key_is_stable_across_a_whole_year():
    """Every day keys like its Monday, and never like the day before its Monday"""
    day = date(2026, 1, 1)
    while day.year == 2026:
        monday = day - timedelta(days=day.weekday())
        assert week_key(day) == week_key(monday)
        assert week_key(monday) != week_key(monday - timedelta(days=1))
        day += timedelta(days=1)


@pytest.mark.parametrize("value,expected", [
    (date(2020, 12, 31), "2020-53"),  # Thursday
    (date(2021, 1, 3), "2020-53"),    # Sunday belongs to the previous ISO year
    (date(2021, 1, 4), "2021-01"),
    (date(2024, 12, 30), "2025-01"),  # Monday belongs to the next ISO year
    (date(2026, 1, 1), "2026-01"),
    (date(2026, 1, 5), "2026-02"),    # zero-padded week
])
def test_week_key_iso_year_boundaries(value, expected):
    assert week_key(value) == expected


def test_week_key_ignores_time_of_day():
    assert week_key(datetime(2026, 10, 18, 23, 59, 59, tzinfo=timezone.utc)) == "2026-42"
    assert week_key(datetime(2026, 10, 12, 0, 0, 0, tzinfo=timezone.utc)) == "2026-42"


def test_week_key_converts_aware_datetimes_to_utc():
    # 01:00 Monday at UTC+2 is still Sunday in UTC
    value = datetime(2026, 10, 19, 1, 0, tzinfo=timezone(timedelta(hours=2)))
    assert week_key(value) == "2026-42"


def test_week_key_treats_naive_datetimes_as_utc():
    assert week_key(datetime(2026, 10, 19, 0, 30)) == "2026-43"


# ============================================================================
# Other Helpers
# ============================================================================

def test_utc_now_is_aware():
    assert utc_now().tzinfo is not None


def test_ensure_utc_naive_and_aware():
    naive = datetime(2026, 10, 14, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)

    plus_two = datetime(2026, 10, 14, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    converted = ensure_utc(plus_two)
    assert converted.hour == 10
    assert converted.utcoffset() == timedelta(0)


def test_start_of_day():
    value = datetime(2026, 10, 14, 15, 30, 12, 999, tzinfo=timezone.utc)
    assert start_of_day(value) == datetime(2026, 10, 14, tzinfo=timezone.utc)


def test_to_utc_isoformat():
    assert to_utc_isoformat(None) is None
    assert to_utc_isoformat(datetime(2026, 10, 14, 15, 30, tzinfo=timezone.utc)) == "2026-10-14T15:30:00Z"

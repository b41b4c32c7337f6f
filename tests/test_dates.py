"""Tests for calendar-date parsing and inclusive ranges."""

from datetime import date, datetime

import pytest

from staffing.domain.dates import DateRange, parse_date
from staffing.errors import ValidationFailure


def test_parse_date_accepts_date_and_iso_string():
    assert parse_date(date(2024, 3, 1)) == date(2024, 3, 1)
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date(" 2024-02-29 ") == date(2024, 2, 29)


@pytest.mark.parametrize("value", ["01.03.2024", "2024-13-01", "", None, 20240301])
def test_parse_date_rejects_other_input(value):
    with pytest.raises(ValidationFailure) as exc:
        parse_date(value, "start_date")
    assert exc.value.message == "start_date must be in YYYY-MM-DD format"
    assert exc.value.field == "start_date"


def test_parse_date_rejects_datetime():
    """A time component must not silently move the day."""
    with pytest.raises(ValidationFailure):
        parse_date(datetime(2024, 3, 1, 23, 30))


def test_range_is_inclusive_on_both_ends():
    period = DateRange(date(2024, 3, 1), date(2024, 3, 3))
    assert len(period) == 3
    assert list(period.days()) == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]
    assert date(2024, 3, 1) in period
    assert date(2024, 3, 3) in period
    assert date(2024, 3, 4) not in period


def test_single_day_range():
    period = DateRange.parse("2024-03-01", "2024-03-01")
    assert len(period) == 1


def test_end_before_start_rejected():
    with pytest.raises(ValidationFailure, match="End date must be after start date"):
        DateRange.parse("2024-03-02", "2024-03-01")


def test_range_crosses_leap_day():
    period = DateRange.parse("2024-02-28", "2024-03-01")
    assert len(period) == 3


def test_overlaps_and_covers():
    march = DateRange.parse("2024-03-01", "2024-03-31")
    touching = DateRange.parse("2024-03-31", "2024-04-10")
    april = DateRange.parse("2024-04-01", "2024-04-30")

    assert march.overlaps(touching)
    assert not march.overlaps(april)
    assert march.covers(DateRange.parse("2024-03-05", "2024-03-31"))
    assert not march.covers(touching)
    assert str(march) == "2024-03-01..2024-03-31"

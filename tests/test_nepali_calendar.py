from datetime import date, timedelta
import pytest
from schoolms.services.nepali_calendar import (
    BSDate,
    DAYS_IN_MONTH,
    MONTH_START_DATES,
    YEAR_END,
    YEAR_START,
    days_in_month,
    first_weekday,
    gregorian_to_nepali,
    month_grid,
    nepali_to_gregorian,
    to_nepali_numeral,
)


def test_new_year_is_baisakh_first():
    assert nepali_to_gregorian(1, 1) == date(2025, 4, 14)
    assert gregorian_to_nepali(date(2025, 4, 14)) == BSDate(2082, 1, 1)


def test_months_tile_the_year():
    for index in range(len(MONTH_START_DATES) - 1):
        gap = (MONTH_START_DATES[index + 1] - MONTH_START_DATES[index]).days
        assert gap == DAYS_IN_MONTH[index]
    assert sum(DAYS_IN_MONTH) == (YEAR_END - YEAR_START).days + 1


def test_every_bs_day_round_trips():
    for month in range(1, 13):
        for day in range(1, days_in_month(month) + 1):
            gregorian = nepali_to_gregorian(month, day)
            assert gregorian_to_nepali(gregorian) == BSDate(2082, month, day)


def test_every_gregorian_day_in_year_converts():
    current = YEAR_START
    while current <= YEAR_END:
        bs = gregorian_to_nepali(current)
        assert bs is not None
        assert nepali_to_gregorian(bs.month, bs.day) == current
        current += timedelta(days=1)


def test_dates_outside_the_year():
    assert gregorian_to_nepali(YEAR_START - timedelta(days=1)) is None
    assert gregorian_to_nepali(YEAR_END + timedelta(days=1)) is None
    assert gregorian_to_nepali(date(2026, 4, 13)) == BSDate(2082, 12, 30)


@pytest.mark.parametrize("month, day", [(0, 1), (13, 1), (10, 30), (1, 0), (3, 33)])
def test_invalid_bs_dates(month, day):
    with pytest.raises(ValueError):
        nepali_to_gregorian(month, day)


def test_month_grid_is_sunday_first():
    # 14 April 2025 was a Monday
    assert first_weekday(1) == 1
    weeks = month_grid(1)
    assert all(len(week) == 7 for week in weeks)
    assert weeks[0][:2] == [None, 1]
    days = [d for week in weeks for d in week if d is not None]
    assert days == list(range(1, 32))


def test_bs_date_formatting():
    bs = BSDate(2082, 4, 5)
    assert str(bs) == "2082-04-05"
    assert bs.month_name == "साउन"
    assert to_nepali_numeral(2082) == "२०८२"

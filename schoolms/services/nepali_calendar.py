"""
Bikram Sambat (BS) calendar conversion for the academic year 2082 BS.

The conversion is table driven: each BS month starts on a fixed Gregorian date
and dates inside the month are a linear day offset from that start. Dates
outside 2082 BS are not convertible.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

BS_YEAR = 2082

NEPALI_MONTHS = [
    {"name": "बैशाख", "roman": "Baisakh", "english": "Apr/May"},
    {"name": "जेठ", "roman": "Jestha", "english": "May/Jun"},
    {"name": "असार", "roman": "Ashar", "english": "Jun/Jul"},
    {"name": "साउन", "roman": "Shrawan", "english": "Jul/Aug"},
    {"name": "भदौ", "roman": "Bhadra", "english": "Aug/Sep"},
    {"name": "असोज", "roman": "Ashwin", "english": "Sep/Oct"},
    {"name": "कार्तिक", "roman": "Kartik", "english": "Oct/Nov"},
    {"name": "मंसिर", "roman": "Mangsir", "english": "Nov/Dec"},
    {"name": "पौष", "roman": "Poush", "english": "Dec/Jan"},
    {"name": "माघ", "roman": "Magh", "english": "Jan/Feb"},
    {"name": "फागुन", "roman": "Falgun", "english": "Feb/Mar"},
    {"name": "चैत", "roman": "Chaitra", "english": "Mar/Apr"},
]

WEEKDAYS = ["आ", "सो", "मं", "बु", "बि", "शु", "श"]  # Sunday first

NEPALI_DIGITS = "०१२३४५६७८९"

# Gregorian date on which each month of 2082 BS begins
MONTH_START_DATES = [
    date(2025, 4, 14),
    date(2025, 5, 15),
    date(2025, 6, 15),
    date(2025, 7, 17),
    date(2025, 8, 17),
    date(2025, 9, 17),
    date(2025, 10, 17),
    date(2025, 11, 16),
    date(2025, 12, 16),
    date(2026, 1, 15),
    date(2026, 2, 13),
    date(2026, 3, 15),
]

# Month lengths are the gaps between consecutive start dates so the months tile the year
DAYS_IN_MONTH = [31, 31, 32, 31, 31, 30, 30, 30, 30, 29, 30, 30]

YEAR_START = MONTH_START_DATES[0]
YEAR_END = MONTH_START_DATES[-1] + timedelta(days=DAYS_IN_MONTH[-1] - 1)


@dataclass(frozen=True)
class BSDate:
    year: int
    month: int
    day: int

    @property
    def month_name(self) -> str:
        return NEPALI_MONTHS[self.month - 1]["name"]

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}-{self.day:02d}"


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")


def days_in_month(month: int) -> int:
    _check_month(month)
    return DAYS_IN_MONTH[month - 1]


def nepali_to_gregorian(month: int, day: int) -> date:
    """Convert a 2082 BS month (1-12) and day to the Gregorian date."""
    length = days_in_month(month)
    if not 1 <= day <= length:
        raise ValueError(f"Day must be between 1 and {length} for month {month}, got {day}")
    return MONTH_START_DATES[month - 1] + timedelta(days=day - 1)


def gregorian_to_nepali(gregorian: date) -> Optional[BSDate]:
    """Convert a Gregorian date to 2082 BS, or None when it falls outside the year."""
    if gregorian < YEAR_START or gregorian > YEAR_END:
        return None

    for index, start in enumerate(MONTH_START_DATES):
        offset = (gregorian - start).days
        if 0 <= offset < DAYS_IN_MONTH[index]:
            return BSDate(year=BS_YEAR, month=index + 1, day=offset + 1)
    return None


def first_weekday(month: int) -> int:
    """Weekday of the first day of the month, 0 = Sunday."""
    _check_month(month)
    # date.weekday() is Monday = 0
    return (MONTH_START_DATES[month - 1].weekday() + 1) % 7


def month_grid(month: int) -> list[list[Optional[int]]]:
    """Sunday-first weeks of day numbers, padded with None outside the month."""
    leading = first_weekday(month)
    cells: list[Optional[int]] = [None] * leading + list(range(1, days_in_month(month) + 1))
    while len(cells) % 7:
        cells.append(None)
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def to_nepali_numeral(number: int) -> str:
    return "".join(NEPALI_DIGITS[int(d)] if d.isdigit() else d for d in str(number))

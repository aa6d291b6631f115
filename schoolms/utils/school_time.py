"""
Calendar days as the school sees them.

Timestamps are stored in UTC; every "day" (receipts, due dates, dashboards,
late submissions) is a day in settings.TIMEZONE.
"""
from datetime import date, datetime, time, timedelta
import pytz
from schoolms.core.config import settings


def school_timezone():
    return pytz.timezone(settings.TIMEZONE)


def school_today() -> date:
    return datetime.now(school_timezone()).date()


def school_date(moment: datetime) -> date:
    """Local calendar date of an instant. Naive values are read as UTC, the way they are stored."""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(school_timezone()).date()


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """UTC instants covering local days start..end inclusive (end bound exclusive)."""
    tz = school_timezone()
    lower = tz.localize(datetime.combine(start, time.min)).astimezone(pytz.utc)
    upper = tz.localize(datetime.combine(end + timedelta(days=1), time.min)).astimezone(pytz.utc)
    return lower, upper

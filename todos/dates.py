"""Calendar helpers shared by the resolver, the tracker and the views.

All dates are local calendar dates; anything carrying a time component is
truncated to its day.
"""

import datetime

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .exceptions import InvalidRange

ONE_DAY = datetime.timedelta(days=1)


def as_date(value):
    """Truncate a date, datetime or ISO-8601 string to a ``datetime.date``.

    Raises InvalidRange for anything that cannot be read as a calendar date.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return isoparse(text).date()
        except (ValueError, OverflowError):
            raise InvalidRange(f"Invalid date: {value!r}") from None
    raise InvalidRange(f"Invalid date: {value!r}")


def python_weekday(day_number):
    """Convert a Sunday=0 weekday number to Python's Monday=0 numbering."""
    return (day_number + 6) % 7


def day_window(day):
    """Return the half-open window ``[day, day + 1)``."""
    day = as_date(day)
    try:
        return day, day + ONE_DAY
    except OverflowError:
        raise InvalidRange(f"Date out of range: {day}") from None


def week_window(day, week_starts_on=0):
    """Return the 7-day window containing *day*.

    The window starts on the preceding (or same) *week_starts_on* weekday,
    given with Sunday=0.
    """
    day = as_date(day)
    back = (day.weekday() - python_weekday(week_starts_on)) % 7
    try:
        start = day - datetime.timedelta(days=back)
        return start, start + datetime.timedelta(days=7)
    except OverflowError:
        raise InvalidRange(f"Week of {day} is out of range") from None


def parse_year_month(year, month):
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise InvalidRange(f"Invalid year/month: {year!r}/{month!r}") from None
    if not datetime.MINYEAR <= year <= datetime.MAXYEAR or not 1 <= month <= 12:
        raise InvalidRange(f"Invalid year/month: {year}/{month}")
    return year, month


def month_window(year, month):
    """Return ``[first day, first day of next month)`` for *year*/*month*."""
    year, month = parse_year_month(year, month)
    start = datetime.date(year, month, 1)
    try:
        end = start + relativedelta(months=1)
    except (ValueError, OverflowError):
        raise InvalidRange(f"Invalid year/month: {year}/{month}") from None
    return start, end


def months_before(day, months):
    """First day of the month *months* calendar months before *day*'s month."""
    return as_date(day).replace(day=1) - relativedelta(months=months)


def display_day(day):
    """Short label like ``Jun 1``."""
    return f"{day:%b} {day.day}"

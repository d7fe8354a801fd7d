"""Expand task recurrence rules into dated occurrences.

Every function here is pure: it reads the task's fields and never touches
the database, so unsaved ``Task`` instances work as well as stored ones.
"""

import datetime

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, YEARLY, rrule

from .dates import as_date, python_weekday
from .models import Task

_FREQUENCIES = {
    Task.Recurrence.DAILY: DAILY,
    Task.Recurrence.WEEKLY: WEEKLY,
    Task.Recurrence.MONTHLY: MONTHLY,
    Task.Recurrence.YEARLY: YEARLY,
}


def weekly_days(task):
    """Return the valid Sunday=0 weekday numbers of *task*, sorted.

    Anything that is not an integer in 0-6 is dropped.
    """
    days = set()
    for value in task.recurrence_days or ():
        if isinstance(value, bool):
            continue
        try:
            number = int(value)
        except (TypeError, ValueError):
            continue
        if 0 <= number <= 6:
            days.add(number)
    return sorted(days)


def _build_rule(task, first, last):
    """Return the rrule covering [first, last], or None when it can't match."""
    anchor = as_date(task.start_date)
    options = {
        "dtstart": datetime.datetime.combine(first, datetime.time.min),
        "until": datetime.datetime.combine(last, datetime.time.min),
    }
    if task.recurrence == Task.Recurrence.WEEKLY:
        days = weekly_days(task)
        if not days:
            return None
        options["byweekday"] = [python_weekday(day) for day in days]
    elif task.recurrence == Task.Recurrence.MONTHLY:
        # rrule drops months lacking the anchor day rather than clamping.
        options["bymonthday"] = anchor.day
    elif task.recurrence == Task.Recurrence.YEARLY:
        options["bymonth"] = anchor.month
        options["bymonthday"] = anchor.day
    return rrule(_FREQUENCIES[task.recurrence], **options)


def resolve_occurrences(task, range_start, range_end):
    """Return the ascending occurrence dates of *task* within the range.

    Both bounds are inclusive and truncated to the day. Tasks with no
    recurrence occur once, on their due date (or start date when no due
    date is set). Recurring tasks occur between ``start_date`` and
    ``end_date`` according to their rule, clipped to the range.
    """
    range_start = as_date(range_start)
    range_end = as_date(range_end)
    if range_start > range_end:
        return []

    if task.recurrence not in _FREQUENCIES:
        anchor = as_date(task.due_date or task.start_date)
        return [anchor] if range_start <= anchor <= range_end else []

    first = max(range_start, as_date(task.start_date))
    last = range_end
    if task.end_date is not None:
        last = min(last, as_date(task.end_date))
    if first > last:
        return []

    rule = _build_rule(task, first, last)
    if rule is None:
        return []
    return [occurrence.date() for occurrence in rule]

"""Productivity series and task statistics.

Everything here works over the tasks loaded once at the start of a request
and reuses the window query helpers, so no extra storage is involved.
"""

import datetime
from collections import Counter

from django.utils import timezone

from .completion import has_any_completion
from .conf import get_config
from .dates import ONE_DAY, as_date, display_day, month_window, months_before
from .exceptions import InvalidRange
from .models import Task
from .services import occurrences_for_tasks
from .store import get_store


def percentage(part, total):
    """Integer percentage, halves rounded up, 0 for an empty total."""
    if not total:
        return 0
    return (200 * part + total) // (2 * total)


def _rate(tasks, start, end):
    occurrences = occurrences_for_tasks(tasks, start, end)
    completed = sum(1 for occurrence in occurrences if occurrence.completed)
    total = len(occurrences)
    return {"completed": completed, "total": total, "completion": percentage(completed, total)}


class ProductivityReport:
    """Analytics for one owner's tasks as of a reference day."""

    def __init__(self, tasks, today=None, config=None):
        self.tasks = list(tasks)
        self.today = as_date(today) if today is not None else timezone.localdate()
        self.config = get_config(config)

    @classmethod
    def for_owner(cls, owner, today=None, config=None, store=None):
        return cls(get_store(store).for_owner(owner), today=today, config=config)

    def _length(self, value, name):
        try:
            count = int(value)
        except (TypeError, ValueError):
            raise InvalidRange(f"Invalid number of {name}: {value!r}") from None
        if not 1 <= count <= self.config.max_series_length:
            raise InvalidRange(
                f"Number of {name} must be between 1 and {self.config.max_series_length}"
            )
        return count

    def daily(self, days=30):
        days = self._length(days, "days")
        series = []
        for back in range(days - 1, -1, -1):
            day = self.today - datetime.timedelta(days=back)
            row = {"date": day.isoformat(), "display_date": display_day(day)}
            row.update(_rate(self.tasks, day, day + ONE_DAY))
            series.append(row)
        return series

    def weekly(self, weeks=12):
        weeks = self._length(weeks, "weeks")
        series = []
        for back in range(weeks - 1, -1, -1):
            end = self.today - datetime.timedelta(days=7 * back)
            start = end - datetime.timedelta(days=6)
            row = {
                "week": f"Week {back}",
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
            }
            row.update(_rate(self.tasks, start, end + ONE_DAY))
            series.append(row)
        return series

    def monthly(self, months=12):
        months = self._length(months, "months")
        series = []
        for back in range(months - 1, -1, -1):
            first = months_before(self.today, back)
            start, end = month_window(first.year, first.month)
            row = {
                "month": f"{start:%b %y}",
                "start_date": start.isoformat(),
                "end_date": (end - ONE_DAY).isoformat(),
            }
            row.update(_rate(self.tasks, start, end))
            series.append(row)
        return series

    def statistics(self):
        total = len(self.tasks)
        completed = sum(1 for task in self.tasks if has_any_completion(task))
        by_priority = Counter(task.priority for task in self.tasks)
        return {
            "total_tasks": total,
            "completed_tasks": completed,
            "pending_tasks": total - completed,
            "completion_percentage": percentage(completed, total),
            "by_priority": {
                priority: by_priority.get(priority, 0) for priority in Task.Priority.values
            },
            "by_status": {
                Task.Status.COMPLETED.value: completed,
                Task.Status.PENDING.value: total - completed,
            },
        }

    def history(self, days=30):
        days = self._length(days, "days")
        first = self.today - datetime.timedelta(days=days - 1)
        counts = Counter(
            record.completed_on
            for task in self.tasks
            for record in task.completion_history.all()
            if first <= record.completed_on <= self.today
        )
        series = []
        for back in range(days - 1, -1, -1):
            day = self.today - datetime.timedelta(days=back)
            series.append({
                "date": day.isoformat(),
                "display_date": display_day(day),
                "tasks_completed": counts.get(day, 0),
            })
        return series

    def overview(self):
        return {
            "statistics": self.statistics(),
            "daily_trends": self.daily(7),
            "weekly_trends": self.weekly(4),
            "monthly_trends": self.monthly(12),
            "completion_history": self.history(30),
        }


def daily_productivity(owner, days=30, today=None, config=None, store=None):
    return ProductivityReport.for_owner(owner, today, config, store).daily(days)


def weekly_productivity(owner, weeks=12, today=None, config=None, store=None):
    return ProductivityReport.for_owner(owner, today, config, store).weekly(weeks)


def monthly_productivity(owner, months=12, today=None, config=None, store=None):
    return ProductivityReport.for_owner(owner, today, config, store).monthly(months)


def task_statistics(owner, store=None):
    return ProductivityReport.for_owner(owner, store=store).statistics()


def completion_history(owner, days=30, today=None, config=None, store=None):
    return ProductivityReport.for_owner(owner, today, config, store).history(days)


def dashboard_overview(owner, today=None, config=None, store=None):
    """Everything the dashboard shows, built from a single task load."""
    return ProductivityReport.for_owner(owner, today, config, store).overview()

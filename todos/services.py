"""Service helpers for the todos app.

Window queries expand every task an owner has into the occurrences that
fall inside a half-open date window ``[start, end)``; task management wraps
validation and persistence for create / update / delete.
"""

from collections import namedtuple

from django.db import transaction
from django.utils import timezone

from .completion import CompletionIndex, set_completed
from .conf import get_config
from .dates import ONE_DAY, as_date, day_window, month_window, week_window
from .exceptions import InvalidRange, ValidationFailure
from .forms import TaskForm, initial_data, instance_data
from .models import Task
from .recurrence import resolve_occurrences
from .store import get_store, owner_pk

Occurrence = namedtuple("Occurrence", ["task", "date", "completed"])

# Fields a client may explicitly clear on create / update.
_NULLABLE_FIELDS = {"due_date", "end_date"}


def occurrence_sort_key(occurrence):
    return (-occurrence.task.priority_rank, occurrence.task.pk, occurrence.date)


def occurrences_for_tasks(tasks, start, end):
    """Return the occurrences of *tasks* inside ``[start, end)``.

    Sorted by priority (high first), then task id, then date.
    """
    start, end = as_date(start), as_date(end)
    if end <= start:
        return []
    last = end - ONE_DAY

    occurrences = []
    for task in tasks:
        days = resolve_occurrences(task, start, last)
        if not days:
            continue
        index = CompletionIndex(task)
        occurrences.extend(
            Occurrence(task, day, index.is_completed(day)) for day in days
        )
    occurrences.sort(key=occurrence_sort_key)
    return occurrences


def list_occurrences_in_range(owner, start, end, store=None):
    """Load *owner*'s tasks and return their occurrences in ``[start, end)``."""
    tasks = get_store(store).for_owner(owner)
    return occurrences_for_tasks(tasks, start, end)


def occurrences_on(owner, day, store=None):
    return list_occurrences_in_range(owner, *day_window(day), store=store)


def occurrences_today(owner, today=None, store=None):
    return occurrences_on(owner, today or timezone.localdate(), store=store)


def occurrences_for_week(owner, day, config=None, store=None):
    """Occurrences of the week containing *day*, starting on the configured weekday."""
    start, end = week_window(day, get_config(config).week_starts_on)
    return list_occurrences_in_range(owner, start, end, store=store)


def occurrences_for_month(owner, year, month, store=None):
    return list_occurrences_in_range(owner, *month_window(year, month), store=store)


def window_for(kind, day=None, year=None, month=None, today=None, config=None):
    """Translate a named range (today, date, week, month) into ``(start, end)``."""
    today = as_date(today) if today is not None else timezone.localdate()
    if kind in (None, "", "today"):
        return day_window(today)
    if kind == "date":
        if day in (None, ""):
            raise InvalidRange("A date is required for the 'date' range")
        return day_window(day)
    if kind == "week":
        return week_window(day or today, get_config(config).week_starts_on)
    if kind == "month":
        return month_window(year or today.year, month or today.month)
    raise InvalidRange(f"Unknown range: {kind!r}")


def _merge(base, payload):
    data = dict(base)
    for name, value in payload.items():
        if name not in TaskForm.Meta.fields:
            continue
        if value is None and name not in _NULLABLE_FIELDS:
            continue
        data[name] = value
    return data


def _save_form(form):
    if not form.is_valid():
        raise ValidationFailure(
            {field: [str(message) for message in messages]
             for field, messages in form.errors.items()}
        )
    return form.save()


def list_tasks(owner, store=None):
    """Owner's tasks ordered by due date (undated last), then priority."""
    tasks = get_store(store).for_owner(owner)
    return sorted(
        tasks,
        key=lambda t: (t.due_date is None, t.due_date or t.start_date, -t.priority_rank, t.pk),
    )


def get_task(owner, task_id, store=None):
    return get_store(store).get_for_owner(owner, task_id)


@transaction.atomic
def create_task(owner, payload, config=None):
    """Validate *payload* and create a pending task for *owner*."""
    config = get_config(config)
    data = _merge(initial_data(config), payload)
    data["status"] = Task.Status.PENDING
    form = TaskForm(data, instance=Task(owner_id=owner_pk(owner)), config=config)
    return _save_form(form)


@transaction.atomic
def update_task(owner, task_id, payload, config=None, store=None):
    """Patch the fields present in *payload*; omitted fields keep their values."""
    task = get_task(owner, task_id, store=store)
    data = _merge(instance_data(task), payload)
    form = TaskForm(data, instance=task, config=config)
    return _save_form(form)


@transaction.atomic
def delete_task(owner, task_id, store=None):
    task = get_task(owner, task_id, store=store)
    pk = task.pk
    task.delete()
    return pk


def mark_occurrence(owner, task_id, day=None, completed=True, store=None):
    """Complete or un-complete *owner*'s task on *day* (default: today)."""
    task = get_task(owner, task_id, store=store)
    day = as_date(day) if day is not None else timezone.localdate()
    return set_completed(task, day, owner, completed)

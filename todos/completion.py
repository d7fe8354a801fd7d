"""Per-occurrence completion state.

Tasks without recurrence keep their completion in ``status``; recurring
tasks keep one CompletionRecord per completed occurrence day.
"""

from bisect import bisect_left

from django.db import transaction

from .dates import as_date
from .models import CompletionRecord, Task


class CompletionIndex:
    """Sorted, de-duplicated days on which a task has completion records."""

    def __init__(self, task):
        self.task = task
        self.days = sorted({record.completed_on for record in task.completion_history.all()})

    def __contains__(self, day):
        day = as_date(day)
        position = bisect_left(self.days, day)
        return position < len(self.days) and self.days[position] == day

    def __len__(self):
        return len(self.days)

    def is_completed(self, day=None):
        if not self.task.is_recurring:
            return self.task.status == Task.Status.COMPLETED
        return day is not None and day in self


def is_completed(task, day=None):
    """Return whether the occurrence of *task* on *day* is completed.

    The day is ignored for tasks without recurrence.
    """
    return CompletionIndex(task).is_completed(day)


def has_any_completion(task):
    """Per-task notion of "completed" used by the task statistics."""
    if not task.is_recurring:
        return task.status == Task.Status.COMPLETED
    return len(CompletionIndex(task)) > 0


def _forget_history_cache(task):
    prefetched = getattr(task, "_prefetched_objects_cache", None)
    if prefetched:
        prefetched.pop("completion_history", None)


@transaction.atomic
def set_completed(task, day, actor, value):
    """Mark the occurrence of *task* on *day* completed (or not) for *actor*.

    Completing an already completed recurring occurrence is a no-op, and
    un-completing removes every record for that day. For tasks without
    recurrence the status flips and the history is kept as an audit trail.
    Returns the task.
    """
    day = as_date(day)
    actor_id = getattr(actor, "pk", actor)

    if not task.is_recurring:
        task.status = Task.Status.COMPLETED if value else Task.Status.PENDING
        task.save(update_fields=["status", "updated_at"])
        if value:
            CompletionRecord.objects.create(
                task=task, completed_on=day, completed_by_id=actor_id,
            )
    elif value:
        exists = CompletionRecord.objects.filter(task=task, completed_on=day).exists()
        if not exists:
            CompletionRecord.objects.create(
                task=task, completed_on=day, completed_by_id=actor_id,
            )
    else:
        CompletionRecord.objects.filter(task=task, completed_on=day).delete()

    if task.is_recurring:
        task.save(update_fields=["updated_at"])
    _forget_history_cache(task)
    return task
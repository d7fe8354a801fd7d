"""ORM-backed task lookups used by the services and analytics."""

from .exceptions import Forbidden, NotFound
from .models import Task


def owner_pk(owner):
    """Accept a user instance or a bare primary key."""
    return getattr(owner, "pk", owner)


class TaskStore:
    """Load tasks with their completion history in one round trip.

    Services take a store argument so callers can swap the queryset (or the
    whole store) without touching the engine.
    """

    def __init__(self, queryset=None):
        self.queryset = queryset if queryset is not None else Task.objects.all()

    def _base(self):
        return self.queryset.prefetch_related("completion_history")

    def for_owner(self, owner):
        return list(self._base().filter(owner_id=owner_pk(owner)).order_by("pk"))

    def get(self, task_id):
        try:
            return self._base().get(pk=task_id)
        except (Task.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Task {task_id} not found") from None

    def get_for_owner(self, owner, task_id):
        """Return the task, raising Forbidden when someone else owns it."""
        task = self.get(task_id)
        if task.owner_id != owner_pk(owner):
            raise Forbidden(f"Task {task_id} belongs to another user")
        return task


def get_store(store=None):
    return store if store is not None else TaskStore()

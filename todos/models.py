from django.conf import settings
from django.db import models
from django.utils import timezone


class Task(models.Model):
    class Priority(models.TextChoices):
        LOW = "low", "Low"
        MEDIUM = "medium", "Medium"
        HIGH = "high", "High"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"

    class Recurrence(models.TextChoices):
        NONE = "none", "None"
        DAILY = "daily", "Daily"
        WEEKLY = "weekly", "Weekly"
        MONTHLY = "monthly", "Monthly"
        YEARLY = "yearly", "Yearly"

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="todo_tasks",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    priority = models.CharField(
        max_length=10, choices=Priority.choices, default=Priority.MEDIUM
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    recurrence = models.CharField(
        max_length=10, choices=Recurrence.choices, default=Recurrence.NONE
    )
    start_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    # Weekday numbers 0-6 with Sunday=0; only read for weekly recurrence.
    recurrence_days = models.JSONField(default=list, blank=True)
    category = models.CharField(max_length=50, default="general")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["owner", "recurrence"], name="todos_task_owner_recur_idx"),
            models.Index(fields=["owner", "status"], name="todos_task_owner_status_idx"),
        ]

    @property
    def is_recurring(self):
        return self.recurrence != self.Recurrence.NONE

    @property
    def priority_rank(self):
        """Higher number sorts first."""
        return PRIORITY_RANK.get(self.priority, 0)

    def __str__(self):
        return self.title


PRIORITY_RANK = {
    Task.Priority.HIGH: 2,
    Task.Priority.MEDIUM: 1,
    Task.Priority.LOW: 0,
}


class CompletionRecord(models.Model):
    task = models.ForeignKey(
        Task, on_delete=models.CASCADE, related_name="completion_history"
    )
    # Day-truncated occurrence date; the key every completion lookup uses.
    completed_on = models.DateField()
    completed_at = models.DateTimeField(default=timezone.now)
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="todo_completions",
    )

    class Meta:
        ordering = ["completed_on", "completed_at", "pk"]
        indexes = [
            models.Index(fields=["task", "completed_on"], name="todos_record_task_day_idx"),
        ]

    def __str__(self):
        return f"{self.task} – {self.completed_on}"

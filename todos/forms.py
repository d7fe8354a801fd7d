from django import forms
from django.core.exceptions import ValidationError
from django.utils import timezone

from .conf import get_config
from .dates import as_date
from .exceptions import InvalidRange
from .models import Task


class DayField(forms.DateField):
    """DateField that also accepts full ISO timestamps, keeping only the day."""

    def to_python(self, value):
        if value in self.empty_values:
            return None
        try:
            return as_date(value)
        except InvalidRange:
            raise ValidationError(self.error_messages["invalid"], code="invalid") from None


class TaskForm(forms.ModelForm):
    start_date = DayField()
    due_date = DayField(required=False)
    end_date = DayField(required=False)
    recurrence_days = forms.JSONField(required=False)

    class Meta:
        model = Task
        fields = [
            "title", "description", "priority", "status", "recurrence",
            "start_date", "due_date", "end_date", "recurrence_days", "category",
        ]

    def __init__(self, *args, config=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = get_config(config)
        self.fields["category"] = forms.ChoiceField(
            choices=[(name, name) for name in self.config.categories],
        )

    def clean_description(self):
        return self.cleaned_data.get("description") or ""

    def clean_recurrence_days(self):
        value = self.cleaned_data.get("recurrence_days")
        if value in (None, ""):
            return []
        if not isinstance(value, list):
            raise ValidationError("recurrence_days must be a list of weekday numbers.")
        days = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, (int, str)):
                raise ValidationError("recurrence_days must contain integers.")
            try:
                days.append(int(item))
            except ValueError:
                raise ValidationError("recurrence_days must contain integers.") from None
        return sorted(set(days))

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start_date"), cleaned.get("end_date")
        if start and end and end < start:
            self.add_error("end_date", "End date cannot be before the start date.")
        return cleaned


def initial_data(config=None):
    """Defaults for a brand-new task."""
    config = get_config(config)
    return {
        "description": "",
        "priority": config.default_priority,
        "status": Task.Status.PENDING,
        "recurrence": config.default_recurrence,
        "start_date": timezone.localdate(),
        "recurrence_days": [],
        "category": config.default_category,
    }


def instance_data(task):
    """Current field values of *task* in the shape TaskForm expects."""
    return {name: getattr(task, name) for name in TaskForm.Meta.fields}

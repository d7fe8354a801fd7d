import datetime
import json
from io import StringIO

from django.contrib.auth.models import User
from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import Client, SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from . import analytics, services
from .completion import CompletionIndex, is_completed, set_completed
from .conf import TrackerConfig
from .dates import as_date, day_window, month_window, week_window
from .exceptions import Forbidden, InvalidRange, NotFound, ValidationFailure
from .forms import TaskForm, initial_data
from .models import CompletionRecord, Task
from .recurrence import resolve_occurrences
from .store import TaskStore

D = datetime.date


def _task(**kwargs):
    """Unsaved task for pure resolver tests."""
    kwargs.setdefault("title", "Task")
    kwargs.setdefault("start_date", D(2024, 1, 1))
    return Task(**kwargs)


def _make_task(owner, title="Test task", **kwargs):
    kwargs.setdefault("start_date", D(2024, 1, 1))
    return Task.objects.create(owner=owner, title=title, **kwargs)


def _days(start, end):
    day, out = start, []
    while day <= end:
        out.append(day)
        day += datetime.timedelta(days=1)
    return out


class DailyRecurrenceTests(SimpleTestCase):
    """Daily tasks occur on every day from their start date."""

    def test_one_date_per_day_after_start(self):
        task = _task(recurrence="daily")
        result = resolve_occurrences(task, D(2024, 6, 10), D(2024, 6, 16))
        self.assertEqual(result, _days(D(2024, 6, 10), D(2024, 6, 16)))

    def test_end_date_stops_occurrences(self):
        task = _task(recurrence="daily", end_date=D(2024, 6, 12))
        result = resolve_occurrences(task, D(2024, 6, 10), D(2024, 6, 16))
        self.assertEqual(result, [D(2024, 6, 10), D(2024, 6, 11), D(2024, 6, 12)])

    def test_start_inside_range_clips_lower_bound(self):
        task = _task(recurrence="daily", start_date=D(2024, 6, 14))
        result = resolve_occurrences(task, D(2024, 6, 10), D(2024, 6, 16))
        self.assertEqual(result, [D(2024, 6, 14), D(2024, 6, 15), D(2024, 6, 16)])

    def test_start_after_range_is_empty(self):
        task = _task(recurrence="daily", start_date=D(2024, 7, 1))
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [])

    def test_end_before_range_is_empty(self):
        task = _task(recurrence="daily", end_date=D(2024, 5, 31))
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [])

    def test_inverted_range_is_empty(self):
        task = _task(recurrence="daily")
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 2), D(2024, 6, 1)), [])

    def test_timestamps_are_truncated(self):
        task = _task(recurrence="daily")
        result = resolve_occurrences(
            task, "2024-06-10T23:30:00Z", datetime.datetime(2024, 6, 11, 0, 15),
        )
        self.assertEqual(result, [D(2024, 6, 10), D(2024, 6, 11)])

    def test_result_is_restartable(self):
        task = _task(recurrence="daily")
        first = resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 3))
        second = resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 3))
        self.assertEqual(first, second)
        self.assertEqual(list(first), first)


class WeeklyRecurrenceTests(SimpleTestCase):
    """Weekly tasks occur on their listed Sunday=0 weekdays."""

    def test_monday_and_wednesday_in_one_week(self):
        task = _task(recurrence="weekly", recurrence_days=[1, 3])
        # 2024-06-02 is a Sunday
        result = resolve_occurrences(task, D(2024, 6, 2), D(2024, 6, 8))
        self.assertEqual(result, [D(2024, 6, 3), D(2024, 6, 5)])
        self.assertEqual([d.weekday() for d in result], [0, 2])

    def test_sunday_is_zero(self):
        task = _task(recurrence="weekly", recurrence_days=[0])
        result = resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30))
        self.assertEqual(result, [D(2024, 6, 2), D(2024, 6, 9), D(2024, 6, 16),
                                  D(2024, 6, 23), D(2024, 6, 30)])

    def test_empty_days_never_occur(self):
        task = _task(recurrence="weekly", recurrence_days=[])
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [])

    def test_malformed_days_are_ignored(self):
        task = _task(recurrence="weekly", recurrence_days=[1, 9, -1, "x", None])
        result = resolve_occurrences(task, D(2024, 6, 2), D(2024, 6, 15))
        self.assertEqual(result, [D(2024, 6, 3), D(2024, 6, 10)])

    def test_only_malformed_days_is_empty(self):
        task = _task(recurrence="weekly", recurrence_days=[7, 12])
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [])


class MonthlyAndYearlyRecurrenceTests(SimpleTestCase):
    """Month and year anchors skip dates that do not exist."""

    def test_day_31_skips_february(self):
        task = _task(recurrence="monthly", start_date=D(2024, 1, 31))
        self.assertEqual(resolve_occurrences(task, D(2024, 2, 1), D(2024, 2, 29)), [])

    def test_day_31_in_march(self):
        task = _task(recurrence="monthly", start_date=D(2024, 1, 31))
        self.assertEqual(
            resolve_occurrences(task, D(2024, 3, 1), D(2024, 3, 31)), [D(2024, 3, 31)],
        )

    def test_short_months_skipped_not_clamped(self):
        task = _task(recurrence="monthly", start_date=D(2024, 1, 31))
        result = resolve_occurrences(task, D(2024, 1, 1), D(2024, 6, 30))
        self.assertEqual(result, [D(2024, 1, 31), D(2024, 3, 31), D(2024, 5, 31)])

    def test_monthly_respects_end_date(self):
        task = _task(recurrence="monthly", start_date=D(2024, 1, 15), end_date=D(2024, 3, 14))
        result = resolve_occurrences(task, D(2024, 1, 1), D(2024, 12, 31))
        self.assertEqual(result, [D(2024, 1, 15), D(2024, 2, 15)])

    def test_yearly_leap_day(self):
        task = _task(recurrence="yearly", start_date=D(2024, 2, 29))
        self.assertEqual(resolve_occurrences(task, D(2025, 1, 1), D(2025, 12, 31)), [])
        self.assertEqual(
            resolve_occurrences(task, D(2028, 1, 1), D(2028, 12, 31)), [D(2028, 2, 29)],
        )

    def test_yearly_once_per_year(self):
        task = _task(recurrence="yearly", start_date=D(2020, 7, 4))
        result = resolve_occurrences(task, D(2022, 1, 1), D(2024, 12, 31))
        self.assertEqual(result, [D(2022, 7, 4), D(2023, 7, 4), D(2024, 7, 4)])


class OneOffTaskResolutionTests(SimpleTestCase):
    """Tasks without recurrence occur once, on due or start date."""

    def test_due_date_in_range(self):
        task = _task(due_date=D(2024, 6, 15))
        self.assertEqual(
            resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [D(2024, 6, 15)],
        )

    def test_due_date_out_of_range(self):
        task = _task(due_date=D(2024, 7, 15))
        self.assertEqual(resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [])

    def test_falls_back_to_start_date(self):
        task = _task(start_date=D(2024, 6, 20))
        self.assertEqual(
            resolve_occurrences(task, D(2024, 6, 1), D(2024, 6, 30)), [D(2024, 6, 20)],
        )

    def test_end_date_and_days_ignored(self):
        task = _task(due_date=D(2024, 6, 15), end_date=D(2024, 6, 1), recurrence_days=[1])
        self.assertEqual(
            resolve_occurrences(task, D(2024, 6, 15), D(2024, 6, 15)), [D(2024, 6, 15)],
        )


class DateHelperTests(SimpleTestCase):
    """Day truncation and window arithmetic, including calendar edges."""

    def test_as_date_rejects_garbage(self):
        with self.assertRaises(InvalidRange):
            as_date("not-a-date")
        with self.assertRaises(InvalidRange):
            as_date(42)

    def test_week_window_starts_on_sunday(self):
        # 2024-06-05 is a Wednesday
        self.assertEqual(week_window(D(2024, 6, 5)), (D(2024, 6, 2), D(2024, 6, 9)))
        self.assertEqual(week_window(D(2024, 6, 2)), (D(2024, 6, 2), D(2024, 6, 9)))

    def test_week_window_custom_start(self):
        self.assertEqual(week_window(D(2024, 6, 5), week_starts_on=1), (D(2024, 6, 3), D(2024, 6, 10)))

    def test_month_window(self):
        self.assertEqual(month_window(2024, 2), (D(2024, 2, 1), D(2024, 3, 1)))
        self.assertEqual(month_window("2024", "12"), (D(2024, 12, 1), D(2025, 1, 1)))

    def test_month_window_invalid(self):
        for year, month in [(2024, 13), (2024, 0), ("abc", 1), (None, 5), (9999, 12)]:
            with self.assertRaises(InvalidRange):
                month_window(year, month)

    def test_windows_at_calendar_edges(self):
        with self.assertRaises(InvalidRange):
            day_window(datetime.date.max)
        with self.assertRaises(InvalidRange):
            week_window(datetime.date.min)
        with self.assertRaises(InvalidRange):
            week_window(datetime.date.max)
        # 0001-01-01 is a Monday, so a Monday-start week fits.
        self.assertEqual(
            week_window(datetime.date.min, week_starts_on=1),
            (datetime.date.min, D(1, 1, 8)),
        )


class TrackerConfigTests(SimpleTestCase):
    """TODOS settings are validated into a TrackerConfig."""

    def test_from_settings(self):
        with self.settings(TODOS={"DEFAULT_PRIORITY": "high", "CATEGORIES": ["general", "chores"]}):
            config = TrackerConfig.from_settings()
        self.assertEqual(config.default_priority, "high")
        self.assertEqual(config.categories, ("general", "chores"))

    def test_unknown_key_rejected(self):
        with self.settings(TODOS={"COLOUR": "red"}):
            with self.assertRaises(ImproperlyConfigured):
                TrackerConfig.from_settings()

    def test_default_category_must_be_listed(self):
        with self.assertRaises(ImproperlyConfigured):
            TrackerConfig(default_category="misc")


class CompletionTrackerTests(TestCase):
    """Completion is tracked per occurrence day for recurring tasks."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")
        self.task = _make_task(self.user, recurrence="daily")
        self.day = D(2024, 6, 1)

    def test_complete_then_uncomplete(self):
        set_completed(self.task, self.day, self.user, True)
        self.assertTrue(is_completed(self.task, self.day))
        set_completed(self.task, self.day, self.user, False)
        self.assertFalse(is_completed(self.task, self.day))

    def test_complete_twice_keeps_one_record(self):
        set_completed(self.task, self.day, self.user, True)
        set_completed(self.task, self.day, self.user, True)
        self.assertEqual(
            CompletionRecord.objects.filter(task=self.task, completed_on=self.day).count(), 1,
        )

    def test_other_days_unaffected(self):
        set_completed(self.task, self.day, self.user, True)
        self.assertFalse(is_completed(self.task, D(2024, 6, 2)))

    def test_time_of_day_is_discarded(self):
        set_completed(self.task, datetime.datetime(2024, 6, 1, 23, 59), self.user, True)
        self.assertTrue(is_completed(self.task, "2024-06-01T08:00:00Z"))
        set_completed(self.task, "2024-06-01T12:00:00", self.user, False)
        self.assertFalse(is_completed(self.task, self.day))

    def test_uncomplete_removes_every_record_for_day(self):
        CompletionRecord.objects.create(task=self.task, completed_on=self.day)
        CompletionRecord.objects.create(task=self.task, completed_on=self.day)
        set_completed(self.task, self.day, self.user, False)
        self.assertFalse(CompletionRecord.objects.filter(task=self.task).exists())

    def test_records_actor(self):
        set_completed(self.task, self.day, self.user, True)
        record = CompletionRecord.objects.get(task=self.task)
        self.assertEqual(record.completed_by, self.user)

    def test_prefetched_task_sees_new_state(self):
        task = TaskStore().get(self.task.pk)
        self.assertFalse(is_completed(task, self.day))
        set_completed(task, self.day, self.user, True)
        self.assertTrue(is_completed(task, self.day))

    def test_index_lookup(self):
        for day in (D(2024, 6, 3), D(2024, 6, 1), D(2024, 6, 2)):
            CompletionRecord.objects.create(task=self.task, completed_on=day)
        index = CompletionIndex(self.task)
        self.assertEqual(index.days, [D(2024, 6, 1), D(2024, 6, 2), D(2024, 6, 3)])
        self.assertIn(D(2024, 6, 2), index)
        self.assertNotIn(D(2024, 6, 4), index)


class OneOffCompletionTests(TestCase):
    """Tasks without recurrence use status, ignoring the date."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")
        self.task = _make_task(self.user, due_date=D(2024, 6, 15))

    def test_complete_sets_status(self):
        set_completed(self.task, D(2024, 6, 15), self.user, True)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, "completed")
        self.assertTrue(is_completed(self.task, D(2024, 6, 15)))
        self.assertTrue(is_completed(self.task, D(1999, 1, 1)))
        self.assertTrue(is_completed(self.task))

    def test_uncomplete_keeps_history(self):
        set_completed(self.task, D(2024, 6, 15), self.user, True)
        set_completed(self.task, D(2024, 6, 15), self.user, False)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, "pending")
        self.assertFalse(is_completed(self.task, D(2024, 6, 15)))
        self.assertEqual(self.task.completion_history.count(), 1)

    def test_each_completion_appends(self):
        set_completed(self.task, D(2024, 6, 15), self.user, True)
        set_completed(self.task, D(2024, 6, 15), self.user, True)
        self.assertEqual(self.task.completion_history.count(), 2)


class TaskStoreTests(TestCase):
    """Lookups are scoped to the owner."""

    def setUp(self):
        self.alice = User.objects.create_user(username="alice", password="pw")
        self.bob = User.objects.create_user(username="bob", password="pw")
        self.task = _make_task(self.alice)

    def test_for_owner_filters(self):
        _make_task(self.bob, title="Bob's")
        self.assertEqual(TaskStore().for_owner(self.alice), [self.task])
        self.assertEqual(len(TaskStore().for_owner(self.bob.pk)), 1)

    def test_missing_task(self):
        with self.assertRaises(NotFound):
            TaskStore().get_for_owner(self.alice, self.task.pk + 100)

    def test_other_owner_forbidden(self):
        with self.assertRaises(Forbidden):
            TaskStore().get_for_owner(self.bob, self.task.pk)

    def test_forbidden_is_a_not_found(self):
        self.assertTrue(issubclass(Forbidden, NotFound))


class WindowQueryTests(TestCase):
    """Occurrence windows across all of an owner's tasks."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_sorted_by_priority_then_id(self):
        low = _make_task(self.user, "Low", recurrence="daily", priority="low")
        high_a = _make_task(self.user, "High A", recurrence="daily", priority="high")
        medium = _make_task(self.user, "Medium", recurrence="daily", priority="medium")
        high_b = _make_task(self.user, "High B", recurrence="daily", priority="high")
        rows = services.occurrences_on(self.user, D(2024, 6, 1))
        self.assertEqual([r.task for r in rows], [high_a, high_b, medium, low])

    def test_multi_day_rows_grouped_by_task(self):
        a = _make_task(self.user, "A", recurrence="daily", priority="high")
        b = _make_task(self.user, "B", recurrence="daily", priority="high")
        rows = services.list_occurrences_in_range(self.user, D(2024, 6, 1), D(2024, 6, 3))
        self.assertEqual(
            [(r.task, r.date) for r in rows],
            [(a, D(2024, 6, 1)), (a, D(2024, 6, 2)), (b, D(2024, 6, 1)), (b, D(2024, 6, 2))],
        )

    def test_half_open_window(self):
        _make_task(self.user, recurrence="daily")
        rows = services.list_occurrences_in_range(self.user, D(2024, 6, 1), D(2024, 6, 1))
        self.assertEqual(rows, [])
        earliest = datetime.date.min
        self.assertEqual(services.list_occurrences_in_range(self.user, earliest, earliest), [])

    def test_completion_annotated(self):
        task = _make_task(self.user, recurrence="daily")
        set_completed(task, D(2024, 6, 2), self.user, True)
        rows = services.list_occurrences_in_range(self.user, D(2024, 6, 1), D(2024, 6, 4))
        self.assertEqual([r.completed for r in rows], [False, True, False])

    def test_other_owners_excluded(self):
        bob = User.objects.create_user(username="bob", password="pw")
        _make_task(bob, recurrence="daily")
        self.assertEqual(services.occurrences_on(self.user, D(2024, 6, 1)), [])

    def test_today(self):
        _make_task(self.user, "Today only", due_date=timezone.localdate())
        rows = services.occurrences_today(self.user)
        self.assertEqual([r.task.title for r in rows], ["Today only"])

    def test_week_normalised_to_sunday(self):
        _make_task(self.user, recurrence="daily")
        rows = services.occurrences_for_week(self.user, D(2024, 6, 5))
        self.assertEqual([r.date for r in rows], _days(D(2024, 6, 2), D(2024, 6, 8)))

    def test_month_spans_calendar_month(self):
        _make_task(self.user, "Daily", recurrence="daily")
        _make_task(self.user, "Month end", recurrence="monthly", start_date=D(2024, 1, 31))
        rows = services.occurrences_for_month(self.user, 2024, 2)
        self.assertEqual(len(rows), 29)
        self.assertTrue(all(r.task.title == "Daily" for r in rows))
        march = services.occurrences_for_month(self.user, 2024, 3)
        self.assertIn(D(2024, 3, 31), [r.date for r in march if r.task.title == "Month end"])

    def test_invalid_month(self):
        with self.assertRaises(InvalidRange):
            services.occurrences_for_month(self.user, 2024, 13)

    def test_window_for(self):
        today = D(2024, 6, 5)
        self.assertEqual(services.window_for("today", today=today), (today, D(2024, 6, 6)))
        self.assertEqual(services.window_for("week", today=today), (D(2024, 6, 2), D(2024, 6, 9)))
        self.assertEqual(services.window_for("month", today=today), (D(2024, 6, 1), D(2024, 7, 1)))
        self.assertEqual(
            services.window_for("date", day="2024-01-02T10:00:00"), (D(2024, 1, 2), D(2024, 1, 3)),
        )
        with self.assertRaises(InvalidRange):
            services.window_for("date")
        with self.assertRaises(InvalidRange):
            services.window_for("fortnight")


class TaskManagementTests(TestCase):
    """Create, update, delete and list go through TaskForm."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_create_applies_defaults(self):
        task = services.create_task(self.user, {"title": "  Water plants  "})
        self.assertEqual(task.title, "Water plants")
        self.assertEqual(task.priority, "medium")
        self.assertEqual(task.recurrence, "none")
        self.assertEqual(task.category, "general")
        self.assertEqual(task.status, "pending")
        self.assertEqual(task.start_date, timezone.localdate())
        self.assertEqual(task.owner, self.user)

    def test_create_uses_config_defaults(self):
        config = TrackerConfig(default_priority="high", default_recurrence="daily")
        task = services.create_task(self.user, {"title": "Stretch"}, config=config)
        self.assertEqual(task.priority, "high")
        self.assertEqual(task.recurrence, "daily")

    def test_create_always_pending(self):
        task = services.create_task(self.user, {"title": "X", "status": "completed"})
        self.assertEqual(task.status, "pending")

    def test_empty_title_rejected(self):
        with self.assertRaises(ValidationFailure) as ctx:
            services.create_task(self.user, {"title": "   "})
        self.assertIn("title", ctx.exception.errors)

    def test_unknown_choices_rejected(self):
        for field, value in [("priority", "urgent"), ("recurrence", "hourly"), ("category", "misc")]:
            with self.assertRaises(ValidationFailure) as ctx:
                services.create_task(self.user, {"title": "X", field: value})
            self.assertIn(field, ctx.exception.errors)

    def test_update_patches_fields(self):
        task = _make_task(self.user, "Old", priority="low", category="work")
        updated = services.update_task(self.user, task.pk, {"title": "New"})
        self.assertEqual(updated.title, "New")
        self.assertEqual(updated.priority, "low")
        self.assertEqual(updated.category, "work")

    def test_update_can_clear_due_date(self):
        task = _make_task(self.user, due_date=D(2024, 6, 15))
        updated = services.update_task(self.user, task.pk, {"due_date": None})
        self.assertIsNone(updated.due_date)

    def test_update_other_owner_forbidden(self):
        bob = User.objects.create_user(username="bob", password="pw")
        task = _make_task(bob)
        with self.assertRaises(Forbidden):
            services.update_task(self.user, task.pk, {"title": "Mine now"})

    def test_delete_removes_history(self):
        task = _make_task(self.user, recurrence="daily")
        set_completed(task, D(2024, 6, 1), self.user, True)
        services.delete_task(self.user, task.pk)
        self.assertFalse(Task.objects.filter(pk=task.pk).exists())
        self.assertFalse(CompletionRecord.objects.exists())

    def test_mark_occurrence_defaults_to_today(self):
        task = _make_task(self.user, recurrence="daily")
        services.mark_occurrence(self.user, task.pk)
        self.assertTrue(is_completed(task, timezone.localdate()))

    def test_list_tasks_order(self):
        undated = _make_task(self.user, "Undated", recurrence="daily")
        later = _make_task(self.user, "Later", due_date=D(2024, 7, 1))
        sooner_low = _make_task(self.user, "Sooner low", due_date=D(2024, 6, 1), priority="low")
        sooner_high = _make_task(self.user, "Sooner high", due_date=D(2024, 6, 1), priority="high")
        self.assertEqual(
            services.list_tasks(self.user), [sooner_high, sooner_low, later, undated],
        )


class TaskFormTests(TestCase):
    """TaskForm validation of categories, dates and weekdays."""

    def _form(self, **overrides):
        data = initial_data()
        data.update({"title": "Form task"}, **overrides)
        return TaskForm(data)

    def test_timestamp_dates_truncated(self):
        form = self._form(due_date="2024-06-15T18:30:00.000Z")
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["due_date"], D(2024, 6, 15))

    def test_bad_date_rejected(self):
        form = self._form(due_date="15/06/2024 maybe")
        self.assertFalse(form.is_valid())
        self.assertIn("due_date", form.errors)

    def test_end_before_start_rejected(self):
        form = self._form(start_date=D(2024, 6, 10), end_date=D(2024, 6, 1))
        self.assertFalse(form.is_valid())
        self.assertIn("end_date", form.errors)

    def test_recurrence_days_must_be_list(self):
        form = self._form(recurrence="weekly", recurrence_days={"monday": True})
        self.assertFalse(form.is_valid())
        self.assertIn("recurrence_days", form.errors)

    def test_recurrence_days_normalised(self):
        form = self._form(recurrence="weekly", recurrence_days=[3, "1", 3])
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["recurrence_days"], [1, 3])


class PercentageTests(SimpleTestCase):
    """Percentages round halves up."""

    def test_rounding(self):
        self.assertEqual(analytics.percentage(1, 3), 33)
        self.assertEqual(analytics.percentage(2, 3), 67)
        self.assertEqual(analytics.percentage(1, 8), 13)
        self.assertEqual(analytics.percentage(1, 2), 50)
        self.assertEqual(analytics.percentage(0, 0), 0)
        self.assertEqual(analytics.percentage(5, 5), 100)


class ProductivitySeriesTests(TestCase):
    """Daily / weekly / monthly completion series."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_no_tasks_gives_zero_series(self):
        series = analytics.daily_productivity(self.user, 5, today=D(2024, 6, 10))
        self.assertEqual([row["completion"] for row in series], [0, 0, 0, 0, 0])
        self.assertEqual(series[0]["date"], "2024-06-06")
        self.assertEqual(series[-1]["date"], "2024-06-10")
        self.assertEqual(series[-1]["display_date"], "Jun 10")

    def test_daily(self):
        daily = _make_task(self.user, "Daily", recurrence="daily", start_date=D(2024, 6, 1))
        set_completed(daily, D(2024, 6, 9), self.user, True)
        done = _make_task(self.user, "Done", due_date=D(2024, 6, 10))
        set_completed(done, D(2024, 6, 10), self.user, True)
        _make_task(self.user, "Later", due_date=D(2024, 6, 20))
        series = analytics.daily_productivity(self.user, 3, today=D(2024, 6, 10))
        self.assertEqual([row["completion"] for row in series], [0, 100, 50])
        self.assertEqual([row["total"] for row in series], [1, 1, 2])

    def test_weekly(self):
        task = _make_task(self.user, recurrence="daily")
        for day in _days(D(2024, 6, 8), D(2024, 6, 14)):
            set_completed(task, day, self.user, True)
        series = analytics.weekly_productivity(self.user, 2, today=D(2024, 6, 14))
        self.assertEqual(
            [(r["week"], r["start_date"], r["end_date"], r["completion"]) for r in series],
            [
                ("Week 1", "2024-06-01", "2024-06-07", 0),
                ("Week 0", "2024-06-08", "2024-06-14", 100),
            ],
        )

    def test_monthly(self):
        task = _make_task(self.user, recurrence="monthly", start_date=D(2024, 1, 31))
        set_completed(task, D(2024, 1, 31), self.user, True)
        series = analytics.monthly_productivity(self.user, 3, today=D(2024, 3, 15))
        self.assertEqual([r["month"] for r in series], ["Jan 24", "Feb 24", "Mar 24"])
        self.assertEqual([r["end_date"] for r in series], ["2024-01-31", "2024-02-29", "2024-03-31"])
        self.assertEqual([r["total"] for r in series], [1, 0, 1])
        self.assertEqual([r["completion"] for r in series], [100, 0, 0])

    def test_invalid_lengths(self):
        for value in (0, -3, "abc", 10_000):
            with self.assertRaises(InvalidRange):
                analytics.daily_productivity(self.user, value)


class TaskStatisticsTests(TestCase):
    """Totals and breakdowns by priority and status."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_empty(self):
        stats = analytics.task_statistics(self.user)
        self.assertEqual(stats["total_tasks"], 0)
        self.assertEqual(stats["completion_percentage"], 0)

    def test_one_of_three(self):
        done = _make_task(self.user, "Done", priority="high")
        set_completed(done, D(2024, 6, 1), self.user, True)
        _make_task(self.user, "A", priority="low")
        _make_task(self.user, "B", priority="low")
        stats = analytics.task_statistics(self.user)
        self.assertEqual(stats["completion_percentage"], 33)
        self.assertEqual(stats["completed_tasks"], 1)
        self.assertEqual(stats["pending_tasks"], 2)
        self.assertEqual(stats["by_priority"], {"low": 2, "medium": 0, "high": 1})
        self.assertEqual(stats["by_status"], {"completed": 1, "pending": 2})

    def test_recurring_with_history_counts_completed(self):
        task = _make_task(self.user, recurrence="weekly", recurrence_days=[1])
        _make_task(self.user, recurrence="daily")
        set_completed(task, D(2024, 6, 3), self.user, True)
        stats = analytics.task_statistics(self.user)
        self.assertEqual(stats["completed_tasks"], 1)
        self.assertEqual(stats["completion_percentage"], 50)


class CompletionHistoryTests(TestCase):
    """Per-day counts of completion records."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_counts_per_day(self):
        a = _make_task(self.user, "A", recurrence="daily")
        b = _make_task(self.user, "B", recurrence="daily")
        set_completed(a, D(2024, 6, 9), self.user, True)
        set_completed(b, D(2024, 6, 9), self.user, True)
        set_completed(a, D(2024, 6, 10), self.user, True)
        set_completed(a, D(2024, 6, 1), self.user, True)
        history = analytics.completion_history(self.user, 3, today=D(2024, 6, 10))
        self.assertEqual(
            [(row["date"], row["tasks_completed"]) for row in history],
            [("2024-06-08", 0), ("2024-06-09", 2), ("2024-06-10", 1)],
        )

    def test_dashboard_overview(self):
        _make_task(self.user, recurrence="daily")
        overview = analytics.dashboard_overview(self.user, today=D(2024, 6, 10))
        self.assertEqual(overview["statistics"]["total_tasks"], 1)
        self.assertEqual(len(overview["daily_trends"]), 7)
        self.assertEqual(len(overview["weekly_trends"]), 4)
        self.assertEqual(len(overview["monthly_trends"]), 12)
        self.assertEqual(len(overview["completion_history"]), 30)


class ApiTests(TestCase):
    """JSON endpoints: auth, error mapping and happy paths."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")
        self.client = Client()
        self.client.login(username="alice", password="pw")

    def _json(self, method, url, payload=None):
        return getattr(self.client, method)(
            url, data=json.dumps(payload or {}), content_type="application/json",
        )

    def test_anonymous_gets_401(self):
        self.client.logout()
        response = self.client.get(reverse("todos:task_collection"))
        self.assertEqual(response.status_code, 401)

    def test_method_not_allowed(self):
        response = self.client.delete(reverse("todos:occurrences"))
        self.assertEqual(response.status_code, 405)

    def test_request_id_header(self):
        response = self.client.get(reverse("todos:task_collection"))
        self.assertTrue(response["X-Request-ID"])

    def test_create_and_list(self):
        response = self._json("post", reverse("todos:task_collection"), {
            "title": "Gym", "recurrence": "weekly", "recurrence_days": [1, 3],
            "start_date": "2024-06-01T00:00:00.000Z",
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["recurrence_days"], [1, 3])
        self.assertEqual(body["start_date"], "2024-06-01")
        listing = self.client.get(reverse("todos:task_collection")).json()
        self.assertEqual([t["title"] for t in listing], ["Gym"])

    def test_create_validation_error(self):
        response = self._json("post", reverse("todos:task_collection"), {"title": "", "priority": "urgent"})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "Validation failed")
        self.assertIn("title", body["details"])
        self.assertIn("priority", body["details"])

    def test_malformed_json(self):
        response = self.client.post(
            reverse("todos:task_collection"), data="{nope", content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

    def test_update_delete(self):
        task = _make_task(self.user, "Old")
        url = reverse("todos:task_detail", args=[task.pk])
        response = self._json("patch", url, {"title": "New"})
        self.assertEqual(response.json()["title"], "New")
        response = self.client.delete(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_foreign_task_is_403(self):
        bob = User.objects.create_user(username="bob", password="pw")
        task = _make_task(bob)
        url = reverse("todos:task_detail", args=[task.pk])
        self.assertEqual(self.client.get(url).status_code, 403)
        response = self.client.patch(reverse("todos:complete", args=[task.pk]))
        self.assertEqual(response.status_code, 403)

    def test_complete_and_uncomplete_with_date(self):
        task = _make_task(self.user, recurrence="daily")
        url = reverse("todos:complete", args=[task.pk])
        response = self.client.patch(f"{url}?date=2024-06-01T09:00:00")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [r["completed_on"] for r in response.json()["completion_history"]], ["2024-06-01"],
        )
        response = self.client.patch(f"{reverse('todos:uncomplete', args=[task.pk])}?date=2024-06-01")
        self.assertEqual(response.json()["completion_history"], [])

    def test_complete_bad_date(self):
        task = _make_task(self.user, recurrence="daily")
        response = self.client.patch(f"{reverse('todos:complete', args=[task.pk])}?date=garbage")
        self.assertEqual(response.status_code, 400)

    def test_occurrences_week(self):
        task = _make_task(self.user, recurrence="weekly", recurrence_days=[1, 3])
        set_completed(task, D(2024, 6, 3), self.user, True)
        response = self.client.get(reverse("todos:occurrences"), {"range": "week", "date": "2024-06-05"})
        body = response.json()
        self.assertEqual(body["start"], "2024-06-02")
        self.assertEqual(body["end"], "2024-06-09")
        self.assertEqual(
            [(o["occurrence_date"], o["completed"]) for o in body["occurrences"]],
            [("2024-06-03", True), ("2024-06-05", False)],
        )

    def test_occurrences_bad_range(self):
        url = reverse("todos:occurrences")
        self.assertEqual(self.client.get(url, {"range": "month", "year": 2024, "month": 13}).status_code, 400)
        self.assertEqual(self.client.get(url, {"range": "decade"}).status_code, 400)

    def test_analytics_endpoints(self):
        _make_task(self.user, recurrence="daily")
        daily = self.client.get(reverse("todos:analytics_daily", args=[5])).json()
        self.assertEqual(len(daily), 5)
        weekly = self.client.get(reverse("todos:analytics_weekly", args=[3])).json()
        self.assertEqual(len(weekly), 3)
        monthly = self.client.get(reverse("todos:analytics_monthly", args=[2])).json()
        self.assertEqual(len(monthly), 2)
        stats = self.client.get(reverse("todos:analytics_statistics")).json()
        self.assertEqual(stats["total_tasks"], 1)
        history = self.client.get(reverse("todos:analytics_history", args=[10])).json()
        self.assertEqual(len(history), 10)
        overview = self.client.get(reverse("todos:dashboard_overview")).json()
        self.assertEqual(set(overview), {
            "statistics", "daily_trends", "weekly_trends", "monthly_trends", "completion_history",
        })

    def test_occurrences_at_calendar_edges(self):
        url = reverse("todos:occurrences")
        response = self.client.get(url, {"range": "date", "date": "9999-12-31"})
        self.assertEqual(response.status_code, 400)
        response = self.client.get(url, {"range": "week", "date": "0001-01-01"})
        self.assertEqual(response.status_code, 400)

    def test_analytics_zero_length(self):
        response = self.client.get(reverse("todos:analytics_daily", args=[0]))
        self.assertEqual(response.status_code, 400)


class AgendaCommandTests(TestCase):
    """The agenda command prints a user's occurrences."""

    def setUp(self):
        self.user = User.objects.create_user(username="alice", password="pw")

    def test_prints_day(self):
        task = _make_task(self.user, "Walk dog", recurrence="daily")
        set_completed(task, D(2024, 6, 3), self.user, True)
        out = StringIO()
        call_command("agenda", "alice", "--date", "2024-06-03", stdout=out)
        output = out.getvalue()
        self.assertIn("[x] 2024-06-03 Walk dog", output)
        self.assertIn("1/1 completed.", output)

    def test_prints_week(self):
        _make_task(self.user, "Walk dog", recurrence="daily")
        out = StringIO()
        call_command("agenda", "alice", "--date", "2024-06-05", "--week", stdout=out)
        self.assertIn("from 2024-06-02 to 2024-06-08", out.getvalue())
        self.assertIn("0/7 completed.", out.getvalue())

    def test_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command("agenda", "nobody", stdout=StringIO())

import datetime

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from todos.exceptions import InvalidRange
from todos.services import list_occurrences_in_range, window_for


class Command(BaseCommand):
    help = "Print a user's task occurrences for a day, week or month."

    def add_arguments(self, parser):
        parser.add_argument("username", help="Owner of the tasks.")
        parser.add_argument(
            "--date",
            type=datetime.date.fromisoformat,
            default=None,
            help="Reference date (YYYY-MM-DD). Defaults to today.",
        )
        span = parser.add_mutually_exclusive_group()
        span.add_argument(
            "--week",
            action="store_true",
            default=False,
            help="Show the whole week containing the date.",
        )
        span.add_argument(
            "--month",
            action="store_true",
            default=False,
            help="Show the whole month containing the date.",
        )

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            owner = User.objects.get(**{User.USERNAME_FIELD: options["username"]})
        except User.DoesNotExist:
            raise CommandError(f"No user named {options['username']!r}.")

        target = options["date"] or timezone.localdate()
        if options["month"]:
            kind = "month"
        elif options["week"]:
            kind = "week"
        else:
            kind = "date"

        try:
            start, end = window_for(kind, day=target, year=target.year, month=target.month)
        except InvalidRange as exc:
            raise CommandError(str(exc))

        last = end - datetime.timedelta(days=1)
        self.stdout.write(f"Agenda for {owner} from {start} to {last}:")
        occurrences = list_occurrences_in_range(owner, start, end)
        if not occurrences:
            self.stdout.write("  (nothing scheduled)")
        for occurrence in occurrences:
            mark = "x" if occurrence.completed else " "
            self.stdout.write(
                f"  [{mark}] {occurrence.date} {occurrence.task.title} "
                f"({occurrence.task.priority})"
            )

        done = sum(1 for occurrence in occurrences if occurrence.completed)
        self.stdout.write(self.style.SUCCESS(f"{done}/{len(occurrences)} completed."))

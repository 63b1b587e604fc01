"""
next_occurrences.py
-------------------
Print the next projected occurrence of every recurring, non-cancelled booking.
Read-only: nothing is written.

Usage:
    python manage.py next_occurrences
    python manage.py next_occurrences --from 2024-03-01
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_date

from booking.models import Booking
from booking.services.recurrence import next_scheduled_occurrence


class Command(BaseCommand):
    help = "Show the next occurrence of each recurring booking."

    def add_arguments(self, parser):
        parser.add_argument(
            "--from",
            dest="reference",
            default=None,
            help="Reference date (YYYY-MM-DD). Defaults to today.",
        )

    def handle(self, *args, **options):
        reference = None
        if options["reference"]:
            reference = parse_date(options["reference"])
            if reference is None:
                raise CommandError("--from must be a date in YYYY-MM-DD format.")

        bookings = (
            Booking.objects.filter(booking_type=Booking.TYPE_RECURRING)
            .exclude(status=Booking.STATUS_CANCELED)
            .prefetch_related("month_schedules")
            .order_by("id")
        )

        count = 0
        for booking in bookings:
            upcoming = next_scheduled_occurrence(booking.month_schedules.all(), reference)
            label = upcoming.isoformat() if upcoming else "none"
            self.stdout.write(f"Booking #{booking.pk}: {label}")
            count += 1

        self.stdout.write(self.style.SUCCESS(f"Listed {count} recurring booking(s)."))

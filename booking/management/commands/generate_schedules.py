"""
generate_schedules.py
---------------------
Create Schedule rows for recurring bookings over the next N days.
Meant to run once a day (cron); days that already have a schedule for a
booking are skipped, so repeated runs are safe.

Usage:
    python manage.py generate_schedules
    python manage.py generate_schedules --days 30
    python manage.py generate_schedules --booking 42
"""

from django.core.management.base import BaseCommand, CommandError

from booking.models import Booking
from booking.services.booking_manager import BookingManager
from booking.services.errors import ValidationError


class Command(BaseCommand):
    help = "Generate concrete schedules for recurring bookings."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=60,
            help="Horizon in days, starting today (default 60).",
        )
        parser.add_argument(
            "--booking",
            type=int,
            default=None,
            help="Only generate for this booking id.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        if days < 0:
            raise CommandError("--days must not be negative.")

        manager = BookingManager()
        if options["booking"] is not None:
            booking = Booking.objects.filter(pk=options["booking"]).select_related("service").first()
            if booking is None:
                raise CommandError(f"Booking {options['booking']} not found.")
            try:
                results = {booking.pk: manager.generate_schedules_for_booking(booking, days)}
            except ValidationError as exc:
                raise CommandError(" ".join(exc.messages))
        else:
            results = manager.generate_due_schedules(days)

        total = 0
        for booking_id, created in results.items():
            if created:
                self.stdout.write(f"Booking #{booking_id}: {len(created)} schedule(s)")
            total += len(created)

        self.stdout.write(self.style.SUCCESS(f"Generated {total} schedule(s) for {len(results)} booking(s)."))

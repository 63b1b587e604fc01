"""
booking_manager.py
------------------
Coordinates bookings with the scheduling core.

- create_booking: picks a free staff member, creates the booking and its
  primary schedule in one transaction.
- add_month_schedules: stores recurrence rules for a recurring booking,
  all or nothing.
- generate_schedules_for_booking / generate_due_schedules: turn recurrence
  rules into concrete Schedule rows over a horizon of days.
- start_booking / complete_booking: status changes that record the actual
  start/end on the primary schedule.
- reschedule_booking: moves the next upcoming schedule of a booking.
- cancel_booking: cutoff policy, then cancels the booking and its open schedules.

The manager only depends downward on ScheduleRegistry and AvailabilityEngine;
neither of them knows about bookings beyond a reference id.

Staff locks are per StaffLocks instance. Callers that share staff with the
API (commands, other services) should pass the same registry or locks the
views use, otherwise their check-then-write steps only serialize among
themselves.
"""

import logging
from datetime import datetime, timedelta

from django.db import transaction
from django.utils import timezone

from ..models import Booking, MonthSchedule, Schedule
from .availability_engine import AvailabilityEngine
from .config import scheduling_setting
from .errors import ConflictError, NotFoundError, ValidationError
from .recurrence import next_scheduled_occurrence, occurrences_between
from .schedule_registry import ScheduleRegistry
from .slot_utils import parse_hhmm, to_aware, to_datetime

logger = logging.getLogger(__name__)


class BookingManager:
    def __init__(self, registry=None, engine=None, locks=None):
        self.registry = registry or ScheduleRegistry(locks=locks)
        self.availability = engine or AvailabilityEngine()

    @property
    def locks(self):
        return self.registry.locks

    def pick_staff(self, service, start_time, preferred=None):
        """
        Return `preferred` when free, otherwise the first free staff member by
        priority, otherwise None.
        """
        end_time = start_time + timedelta(minutes=service.duration_minutes)
        if preferred is not None and self.availability.is_staff_available(preferred, start_time, end_time):
            return preferred
        return self.availability.free_staff(start_time, end_time).first()

    def create_booking(self, customer, service, start_time, staff=None,
                       booking_type=Booking.TYPE_ONE_TIME, notes=""):
        """
        Create a CONFIRMED booking with its primary schedule.

        The chosen staff member's lock is held until the booking transaction
        commits, so a concurrent request for the same staff sees the committed
        schedule and fails with ConflictError.

        Raises:
            ValidationError: inactive service.
            ConflictError: no staff member is free for the requested time, or
                the chosen one was taken concurrently (the booking is rolled back).
        """
        if not service.active:
            raise ValidationError("This service is not currently available.")

        start_time = to_datetime(start_time)
        chosen = self.pick_staff(service, start_time, preferred=staff)
        if chosen is None:
            raise ConflictError("No staff available for that time.")

        with self.locks.hold(chosen.pk), transaction.atomic():
            booking = Booking.objects.create(
                customer=customer,
                service=service,
                booking_type=booking_type,
                start_time=start_time,
                notes=notes,
                status=Booking.STATUS_CONFIRMED,
            )
            schedule = self.registry.create_schedule(
                staff_id=chosen.pk,
                start_time=start_time,
                end_time=start_time + timedelta(minutes=service.duration_minutes),
                booking_id=booking.pk,
            )
            booking.primary_schedule = schedule
            booking.save(update_fields=["primary_schedule"])

        logger.info("Booking %s confirmed with staff %s at %s", booking.pk, chosen.pk, start_time)
        return booking

    def add_month_schedules(self, booking, rules):
        """
        Store recurrence rules ({"week_of_month", "day_of_week", "time"}) for a
        recurring booking. Every rule is validated before any is written.
        """
        if not booking.is_recurring:
            raise ValidationError("Month schedules can only be added to recurring bookings.")

        pending = []
        for index, rule in enumerate(rules):
            try:
                week = int(rule["week_of_month"])
                day = int(rule["day_of_week"])
                hhmm = rule["time"]
            except (KeyError, TypeError, ValueError):
                raise ValidationError(f"Rule #{index + 1} needs week_of_month, day_of_week and time.")
            if not 1 <= week <= 5:
                raise ValidationError(f"Rule #{index + 1}: week_of_month must be between 1 and 5.")
            if not 0 <= day <= 6:
                raise ValidationError(f"Rule #{index + 1}: day_of_week must be between 0 and 6.")
            parse_hhmm(hhmm)
            pending.append(MonthSchedule(booking=booking, week_of_month=week, day_of_week=day, time=hhmm))

        if not pending:
            raise ValidationError("At least one rule is required.")

        with transaction.atomic():
            created = MonthSchedule.objects.bulk_create(pending)
        logger.info("Added %d month schedule(s) to booking %s", len(created), booking.pk)
        return created

    def next_occurrence_for(self, booking, reference_date=None):
        return next_scheduled_occurrence(booking.month_schedules.all(), reference_date)

    def _primary_schedule(self, booking):
        if booking.primary_schedule_id is None:
            raise NotFoundError(f"Booking {booking.pk} has no primary schedule")
        return booking.primary_schedule_id

    @transaction.atomic
    def start_booking(self, booking):
        schedule_id = self._primary_schedule(booking)
        self.registry.set_status(schedule_id, Schedule.STATUS_IN_PROGRESS)
        booking.status = Booking.STATUS_IN_PROGRESS
        booking.save(update_fields=["status"])
        return booking

    @transaction.atomic
    def complete_booking(self, booking):
        schedule_id = self._primary_schedule(booking)
        self.registry.set_status(schedule_id, Schedule.STATUS_COMPLETED)
        booking.status = Booking.STATUS_COMPLETED
        booking.save(update_fields=["status"])
        return booking

    def next_schedule_for(self, booking):
        return (
            Schedule.objects.filter(
                booking=booking,
                status=Schedule.STATUS_SCHEDULED,
                start_time__gt=timezone.now(),
            )
            .order_by("start_time", "id")
            .first()
        )

    def generate_schedules_for_booking(self, booking, horizon_days=60, reference_date=None):
        """
        Create Schedule rows for the occurrences of a recurring booking's
        non-skipped rules between reference_date (today by default) and
        reference_date + horizon_days.

        - days on which the booking already has a schedule are left alone,
        - occurrences already in the past are not created,
        - each occurrence gets the first free staff member by priority; an
          occurrence with nobody free is skipped with a warning.

        Writes are all or nothing. Returns the created schedules.
        """
        if not booking.is_recurring:
            raise ValidationError("Only recurring bookings generate schedules.")
        if booking.status in (Booking.STATUS_CANCELED, Booking.STATUS_PENDING):
            raise ValidationError("Schedules are only generated for confirmed bookings.")
        if horizon_days < 0:
            raise ValidationError("horizon_days must not be negative.")

        if reference_date is None:
            reference_date = timezone.localdate()
        end_date = reference_date + timedelta(days=horizon_days)
        occurrences = occurrences_between(list(booking.month_schedules.all()), reference_date, end_date)
        if not occurrences:
            return []

        duration = timedelta(minutes=booking.service.duration_minutes)
        now = timezone.now()
        staff_ids = list(self.availability.staff_directory.active_staff().values_list("id", flat=True))

        created = []
        with self.locks.hold(*staff_ids), transaction.atomic():
            scheduled_days = {
                timezone.localdate(start)
                for start in booking.schedules.values_list("start_time", flat=True)
            }
            for day, rule in occurrences:
                if day in scheduled_days:
                    continue
                start = to_aware(datetime.combine(day, parse_hhmm(rule.time)))
                if start <= now:
                    continue
                staff = self.availability.free_staff(start, start + duration).first()
                if staff is None:
                    logger.warning("No available staff for booking %s on %s", booking.pk, start)
                    continue
                created.append(self.registry.create_schedule(
                    staff_id=staff.pk,
                    start_time=start,
                    end_time=start + duration,
                    booking_id=booking.pk,
                ))

        logger.info("Generated %d schedule(s) for booking %s up to %s", len(created), booking.pk, end_date)
        return created

    def generate_due_schedules(self, horizon_days=60, reference_date=None):
        """Run generate_schedules_for_booking for every confirmed recurring booking."""
        bookings = (
            Booking.objects.filter(booking_type=Booking.TYPE_RECURRING, month_schedules__is_skipped=False)
            .exclude(status__in=[Booking.STATUS_CANCELED, Booking.STATUS_PENDING])
            .select_related("service")
            .distinct()
            .order_by("id")
        )
        results = {}
        for booking in bookings:
            results[booking.pk] = self.generate_schedules_for_booking(booking, horizon_days, reference_date)
        return results

    def reschedule_booking(self, booking, new_start, month_schedule=None):
        """
        Move the next upcoming schedule of the booking to new_start.
        When month_schedule is given, that rule is marked skipped so the
        superseded occurrence is not projected again.
        """
        new_start = to_datetime(new_start)
        notice_days = scheduling_setting("RESCHEDULE_MIN_NOTICE_DAYS")
        if new_start < timezone.now() + timedelta(days=notice_days):
            raise ValidationError(f"New schedule must be at least {notice_days} days in the future")
        if month_schedule is not None and month_schedule.booking_id != booking.pk:
            raise ValidationError("Month schedule belongs to another booking.")

        upcoming = self.next_schedule_for(booking)
        if upcoming is None:
            raise NotFoundError("No upcoming schedule found for this booking")

        with self.locks.hold(upcoming.staff_id), transaction.atomic():
            old, new = self.registry.reschedule(upcoming.pk, new_start)
            if booking.primary_schedule_id == old.pk:
                booking.primary_schedule = new
                booking.save(update_fields=["primary_schedule"])

            if month_schedule is not None:
                month_schedule.is_skipped = True
                month_schedule.save(update_fields=["is_skipped"])

        return old, new

    @transaction.atomic
    def cancel_booking(self, booking):
        """
        Cancel a booking if outside the cutoff window. Its SCHEDULED schedules
        become CANCELED.
        """
        if booking.status == Booking.STATUS_CANCELED:
            raise ValidationError("This booking is already cancelled.")

        cutoff = scheduling_setting("CANCELLATION_CUTOFF_MINUTES")
        now = timezone.now()
        if booking.start_time - now <= timedelta(minutes=cutoff):
            raise ValidationError(f"Cannot cancel within {cutoff} minutes of the booking start.")

        booking.status = Booking.STATUS_CANCELED
        booking.cancellation_time = now
        booking.save(update_fields=["status", "cancellation_time"])
        count = booking.schedules.filter(status=Schedule.STATUS_SCHEDULED).update(
            status=Schedule.STATUS_CANCELED
        )
        logger.info("Booking %s cancelled (%d schedule(s) released)", booking.pk, count)
        return booking

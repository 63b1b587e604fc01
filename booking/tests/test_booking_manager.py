from datetime import date, datetime, timedelta, timezone as dt_timezone
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import CommandError, call_command
from django.test import TestCase
from django.utils import timezone

from booking.models import Booking, MonthSchedule, Schedule
from booking.services.booking_manager import BookingManager
from booking.services.errors import ConflictError, NotFoundError
from booking.services.slot_utils import day_of_week

from .factories import add_availability, at, make_customer, make_service, make_staff


class BookingManagerTestCase(TestCase):
    def setUp(self):
        self.manager = BookingManager()
        self.customer = make_customer()
        self.service = make_service(duration_minutes=120)
        self.day = (timezone.now() + timedelta(days=10)).date()
        self.ana = make_staff("Ana", priority=10)
        self.ben = make_staff("Ben", priority=20)
        for member in (self.ana, self.ben):
            add_availability(member, day_of_week(self.day), start="08:00", end="18:00")

    def book(self, hhmm="10:00", **kwargs):
        return self.manager.create_booking(self.customer, self.service, at(self.day, hhmm), **kwargs)


class CreateBookingTests(BookingManagerTestCase):
    def test_booking_gets_primary_schedule(self):
        booking = self.book()
        self.assertEqual(booking.status, Booking.STATUS_CONFIRMED)
        schedule = booking.primary_schedule
        self.assertEqual(schedule.staff, self.ana)
        self.assertEqual(schedule.booking, booking)
        self.assertEqual(schedule.end_time - schedule.start_time, timedelta(minutes=120))

    def test_preferred_staff_is_used_when_free(self):
        booking = self.book(staff=self.ben)
        self.assertEqual(booking.primary_schedule.staff, self.ben)

    def test_busy_preferred_staff_falls_back(self):
        self.book(staff=self.ben)
        booking = self.book("11:00", staff=self.ben)
        self.assertEqual(booking.primary_schedule.staff, self.ana)

    def test_no_free_staff_rolls_back(self):
        self.book()
        self.book()
        with self.assertRaises(ConflictError):
            self.book("11:00")
        self.assertEqual(Booking.objects.count(), 2)

    def test_inactive_service_is_rejected(self):
        self.service.active = False
        self.service.save()
        with self.assertRaises(ValidationError):
            self.book()


class LifecycleTests(BookingManagerTestCase):
    def test_start_and_complete_record_actual_times(self):
        booking = self.book()
        self.manager.start_booking(booking)
        schedule = Schedule.objects.get(pk=booking.primary_schedule_id)
        self.assertEqual(booking.status, Booking.STATUS_IN_PROGRESS)
        self.assertEqual(schedule.status, Schedule.STATUS_IN_PROGRESS)
        self.assertIsNotNone(schedule.actual_start_time)

        self.manager.complete_booking(booking)
        schedule.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_COMPLETED)
        self.assertIsNotNone(schedule.actual_end_time)

    def test_start_without_primary_schedule(self):
        booking = Booking.objects.create(customer=self.customer, service=self.service, start_time=at(self.day, "10:00"))
        with self.assertRaises(NotFoundError):
            self.manager.start_booking(booking)

    def test_cancel_releases_open_schedules(self):
        booking = self.book()
        self.manager.cancel_booking(booking)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_CANCELED)
        self.assertIsNotNone(booking.cancellation_time)
        self.assertEqual(booking.primary_schedule.status, Schedule.STATUS_CANCELED)

        with self.assertRaises(ValidationError):
            self.manager.cancel_booking(booking)

    def test_cancel_within_cutoff_is_rejected(self):
        booking = self.book()
        booking.start_time = timezone.now() + timedelta(minutes=30)
        booking.save()
        with self.assertRaises(ValidationError):
            self.manager.cancel_booking(booking)


class RescheduleTests(BookingManagerTestCase):
    def test_reschedule_moves_primary_schedule(self):
        booking = self.book()
        old, new = self.manager.reschedule_booking(booking, at(self.day + timedelta(days=7), "10:00"))
        booking.refresh_from_db()
        self.assertEqual(old.status, Schedule.STATUS_RESCHEDULED)
        self.assertEqual(booking.primary_schedule_id, new.pk)
        self.assertEqual(new.staff_id, old.staff_id)

    def test_minimum_notice(self):
        booking = self.book()
        with self.assertRaises(ValidationError):
            self.manager.reschedule_booking(booking, timezone.now() + timedelta(days=1))

    def test_nothing_upcoming(self):
        booking = self.book()
        self.manager.registry.set_status(booking.primary_schedule_id, Schedule.STATUS_COMPLETED)
        with self.assertRaises(NotFoundError):
            self.manager.reschedule_booking(booking, at(self.day + timedelta(days=7), "10:00"))

    def test_superseded_rule_is_skipped(self):
        booking = self.book(booking_type=Booking.TYPE_RECURRING)
        self.manager.add_month_schedules(booking, [{"week_of_month": 2, "day_of_week": 1, "time": "10:00"}])
        rule = MonthSchedule.objects.get(booking=booking)
        self.manager.reschedule_booking(booking, at(self.day + timedelta(days=7), "10:00"), month_schedule=rule)
        rule.refresh_from_db()
        self.assertTrue(rule.is_skipped)


class MonthScheduleTests(BookingManagerTestCase):
    def test_rules_need_recurring_booking(self):
        booking = self.book()
        with self.assertRaises(ValidationError):
            self.manager.add_month_schedules(booking, [{"week_of_month": 1, "day_of_week": 1, "time": "10:00"}])

    def test_batch_is_all_or_nothing(self):
        booking = self.book(booking_type=Booking.TYPE_RECURRING)
        rules = [
            {"week_of_month": 1, "day_of_week": 1, "time": "10:00"},
            {"week_of_month": 6, "day_of_week": 1, "time": "10:00"},
        ]
        with self.assertRaises(ValidationError):
            self.manager.add_month_schedules(booking, rules)
        self.assertFalse(MonthSchedule.objects.filter(booking=booking).exists())

        with self.assertRaises(ValidationError):
            self.manager.add_month_schedules(booking, [{"week_of_month": 1, "day_of_week": 1, "time": "7pm"}])
        with self.assertRaises(ValidationError):
            self.manager.add_month_schedules(booking, [])

    def test_next_occurrence_for_booking(self):
        booking = self.book(booking_type=Booking.TYPE_RECURRING)
        self.manager.add_month_schedules(booking, [
            {"week_of_month": 2, "day_of_week": 1, "time": "09:00"},
            {"week_of_month": 4, "day_of_week": 3, "time": "15:00"},
        ])
        upcoming = self.manager.next_occurrence_for(booking, date(2024, 3, 1))
        self.assertEqual(upcoming, datetime(2024, 3, 11, 9, 0, tzinfo=dt_timezone.utc))


# 2030-03-01 is a Friday: the 2nd Mondays in the next 60 days are March 11 and April 8.
GENERATION_START = date(2030, 3, 1)
SECOND_MONDAYS = [date(2030, 3, 11), date(2030, 4, 8)]


class GenerateSchedulesTests(BookingManagerTestCase):
    def setUp(self):
        super().setUp()
        for member in (self.ana, self.ben):
            add_availability(member, 1, start="08:00", end="18:00")
        self.booking = self.book(booking_type=Booking.TYPE_RECURRING)
        self.manager.add_month_schedules(self.booking, [{"week_of_month": 2, "day_of_week": 1, "time": "10:00"}])

    def generate(self, booking=None, days=60):
        return self.manager.generate_schedules_for_booking(
            booking or self.booking, horizon_days=days, reference_date=GENERATION_START
        )

    def test_one_schedule_per_occurrence(self):
        created = self.generate()
        self.assertEqual([s.start_time for s in created], [at(d, "10:00") for d in SECOND_MONDAYS])
        for schedule in created:
            self.assertEqual(schedule.staff, self.ana)
            self.assertEqual(schedule.booking, self.booking)
            self.assertEqual(schedule.end_time - schedule.start_time, timedelta(minutes=120))

    def test_horizon_limits_the_window(self):
        self.assertEqual(len(self.generate(days=20)), 1)
        self.assertEqual(self.generate(days=0), [])

    def test_second_run_creates_nothing(self):
        self.generate()
        self.assertEqual(self.generate(), [])
        self.assertEqual(Schedule.objects.filter(booking=self.booking).count(), 3)

    def test_day_with_a_schedule_is_left_alone(self):
        self.manager.registry.create_schedule(
            self.ben.pk, at(SECOND_MONDAYS[0], "15:00"), at(SECOND_MONDAYS[0], "17:00"), booking_id=self.booking.pk
        )
        created = self.generate()
        self.assertEqual([s.start_time for s in created], [at(SECOND_MONDAYS[1], "10:00")])

    def test_skipped_rules_generate_nothing(self):
        MonthSchedule.objects.filter(booking=self.booking).update(is_skipped=True)
        self.assertEqual(self.generate(), [])
        self.assertEqual(Schedule.objects.filter(booking=self.booking).count(), 1)

    def test_occurrence_without_free_staff_is_skipped(self):
        for member in (self.ana, self.ben):
            self.manager.registry.create_schedule(
                member.pk, at(SECOND_MONDAYS[0], "09:00"), at(SECOND_MONDAYS[0], "11:00")
            )
        with self.assertLogs("booking.services.booking_manager", level="WARNING"):
            created = self.generate()
        self.assertEqual([s.start_time for s in created], [at(SECOND_MONDAYS[1], "10:00")])

    def test_busy_first_choice_falls_back_by_priority(self):
        self.manager.registry.create_schedule(
            self.ana.pk, at(SECOND_MONDAYS[0], "11:00"), at(SECOND_MONDAYS[0], "12:00")
        )
        created = self.generate()
        self.assertEqual([s.staff for s in created], [self.ben, self.ana])

    def test_only_confirmed_recurring_bookings(self):
        with self.assertRaises(ValidationError):
            self.generate(booking=self.book("14:00"))

        self.booking.status = Booking.STATUS_CANCELED
        self.booking.save()
        with self.assertRaises(ValidationError):
            self.generate()

    def test_due_bookings_are_all_generated(self):
        self.book("14:00")
        results = self.manager.generate_due_schedules(horizon_days=60, reference_date=GENERATION_START)
        self.assertEqual(list(results), [self.booking.pk])
        self.assertEqual(len(results[self.booking.pk]), 2)


class GenerateSchedulesCommandTests(BookingManagerTestCase):
    def test_reports_a_summary(self):
        booking = self.book(booking_type=Booking.TYPE_RECURRING)
        self.manager.add_month_schedules(booking, [{"week_of_month": 2, "day_of_week": 1, "time": "10:00"}])
        out = StringIO()
        call_command("generate_schedules", "--days", "60", stdout=out)
        self.assertIn("for 1 booking(s).", out.getvalue())

    def test_bad_arguments(self):
        booking = self.book()
        with self.assertRaises(CommandError):
            call_command("generate_schedules", "--days", "-1", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("generate_schedules", "--booking", str(booking.pk + 100), stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("generate_schedules", "--booking", str(booking.pk), stdout=StringIO())

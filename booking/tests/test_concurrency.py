import threading
from datetime import timedelta

from django.db import connection
from django.test import SimpleTestCase, TransactionTestCase
from django.utils import timezone

from booking.models import Booking, Schedule
from booking.services.booking_manager import BookingManager
from booking.services.errors import ConflictError
from booking.services.locks import StaffLocks
from booking.services.schedule_registry import ScheduleRegistry
from booking.services.slot_utils import day_of_week

from .factories import MONDAY, add_availability, at, make_customer, make_service, make_staff


def race(*calls):
    """Run the calls in parallel threads released together; return sorted outcomes."""
    barrier = threading.Barrier(len(calls))
    outcomes = []

    def attempt(call):
        barrier.wait()
        try:
            call()
            outcome = "created"
        except ConflictError:
            outcome = "conflict"
        except Exception as exc:
            outcome = repr(exc)
        finally:
            connection.close()
        outcomes.append(outcome)

    threads = [threading.Thread(target=attempt, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return sorted(outcomes)


class ConcurrentCreateTests(TransactionTestCase):
    def test_only_one_of_two_overlapping_creates_succeeds(self):
        staff = make_staff()
        registry = ScheduleRegistry()

        outcomes = race(
            lambda: registry.create_schedule(staff.pk, at(MONDAY, "10:00"), at(MONDAY, "11:00")),
            lambda: registry.create_schedule(staff.pk, at(MONDAY, "10:30"), at(MONDAY, "11:30")),
        )

        self.assertEqual(outcomes, ["conflict", "created"])
        self.assertEqual(Schedule.objects.filter(staff=staff).count(), 1)

    def test_racing_bookings_for_one_staff_member(self):
        staff = make_staff()
        customer = make_customer()
        service = make_service(duration_minutes=60)
        day = (timezone.now() + timedelta(days=10)).date()
        add_availability(staff, day_of_week(day), start="08:00", end="18:00")
        manager = BookingManager()

        outcomes = race(
            lambda: manager.create_booking(customer, service, at(day, "10:00")),
            lambda: manager.create_booking(customer, service, at(day, "10:30")),
        )

        self.assertEqual(outcomes, ["conflict", "created"])
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(Schedule.objects.filter(staff=staff).count(), 1)


class StaffLocksTests(SimpleTestCase):
    def test_lock_can_be_taken_again_by_its_holder(self):
        locks = StaffLocks()
        with locks.hold(1, 2):
            with locks.hold(2):
                pass

    def test_other_threads_wait_for_the_holder(self):
        locks = StaffLocks()
        acquired = threading.Event()

        def contender():
            with locks.hold(7):
                acquired.set()

        with locks.hold(7):
            thread = threading.Thread(target=contender)
            thread.start()
            self.assertFalse(acquired.wait(timeout=0.2))
        thread.join(timeout=5)
        self.assertTrue(acquired.is_set())

    def test_manager_passes_locks_to_its_registry(self):
        locks = StaffLocks()
        manager = BookingManager(locks=locks)
        self.assertIs(manager.registry.locks, locks)
        self.assertIs(manager.locks, locks)

        registry = ScheduleRegistry(locks=locks)
        self.assertIs(BookingManager(registry=registry).locks, locks)

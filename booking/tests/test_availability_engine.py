from django.test import TestCase

from booking.models import Staff
from booking.services.availability_engine import AvailabilityEngine
from booking.services.errors import NotFoundError
from booking.services.schedule_registry import ScheduleRegistry
from configmgr.models import SystemSetting

from .factories import MONDAY, TUESDAY, add_availability, at, make_service, make_staff


class AvailableStaffTests(TestCase):
    """Staff S works Monday 09:00-17:00 and is booked 10:00-11:00."""

    def setUp(self):
        self.engine = AvailabilityEngine()
        self.service = make_service(duration_minutes=60)
        self.staff = make_staff("Ana")
        self.slot = add_availability(self.staff, day_of_week=1, start="09:00", end="17:00")
        ScheduleRegistry().create_schedule(self.staff.pk, at(MONDAY, "10:00"), at(MONDAY, "11:00"))

    def ids(self, start):
        return [s.pk for s in self.engine.get_available_staff(start, self.service.pk)]

    def test_overlapping_request_excludes_staff(self):
        self.assertEqual(self.ids(at(MONDAY, "10:30")), [])

    def test_touching_request_includes_staff(self):
        self.assertEqual(self.ids(at(MONDAY, "11:00")), [self.staff.pk])

    def test_iso_string_is_accepted(self):
        self.assertEqual(self.ids("2024-03-11T11:00:00Z"), [self.staff.pk])

    def test_window_must_fit_inside_slot(self):
        self.assertEqual(self.ids(at(MONDAY, "16:30")), [])
        self.assertEqual(self.ids(at(MONDAY, "08:30")), [])
        self.assertEqual(self.ids(at(MONDAY, "16:00")), [self.staff.pk])

    def test_other_weekday_has_no_slot(self):
        self.assertEqual(self.ids(at(TUESDAY, "11:00")), [])

    def test_disabled_slot_is_ignored(self):
        self.slot.is_available = False
        self.slot.save()
        self.assertEqual(self.ids(at(MONDAY, "11:00")), [])

    def test_inactive_staff_is_ignored(self):
        self.staff.status = Staff.STATUS_INACTIVE
        self.staff.save()
        self.assertEqual(self.ids(at(MONDAY, "11:00")), [])

    def test_results_follow_priority(self):
        first = make_staff("Ben", priority=10)
        add_availability(first, day_of_week=1, start="08:00", end="18:00")
        self.assertEqual(self.ids(at(MONDAY, "11:00")), [first.pk, self.staff.pk])

    def test_window_past_midnight_matches_nobody(self):
        late = make_staff("Cal")
        add_availability(late, day_of_week=1, start="20:00", end="23:59")
        self.assertEqual(self.ids(at(MONDAY, "23:30")), [])
        self.assertEqual(self.ids(at(MONDAY, "22:00")), [late.pk])

    def test_unknown_service(self):
        with self.assertRaises(NotFoundError):
            self.engine.get_available_staff(at(MONDAY, "11:00"), 9999)

    def test_is_staff_available(self):
        self.assertTrue(self.engine.is_staff_available(self.staff, at(MONDAY, "11:00"), at(MONDAY, "12:00")))
        self.assertFalse(self.engine.is_staff_available(self.staff, at(MONDAY, "10:59"), at(MONDAY, "11:30")))


class TimeSlotGridTests(TestCase):
    def setUp(self):
        SystemSetting.objects.create(key="BUSINESS_OPEN", value="09:00")
        SystemSetting.objects.create(key="BUSINESS_CLOSE", value="12:00")
        self.engine = AvailabilityEngine()
        self.service = make_service(duration_minutes=60)
        self.staff = make_staff("Ana")
        add_availability(self.staff, day_of_week=1, start="09:00", end="17:00")
        ScheduleRegistry().create_schedule(self.staff.pk, at(MONDAY, "10:00"), at(MONDAY, "11:00"))

    def test_grid_marks_busy_starts(self):
        result = self.engine.find_available_slots(self.service, at(MONDAY, "00:00"))
        flags = [slot["is_available"] for slot in result["slots"]]
        self.assertEqual(flags, [True, False, False, False, True])
        self.assertEqual(result["slots"][0]["staff_ids"], [self.staff.pk])
        self.assertEqual(result["slots"][0]["start_time"], at(MONDAY, "09:00").isoformat())

    def test_grid_can_be_limited_to_given_staff(self):
        other = make_staff("Ben")
        add_availability(other, day_of_week=1)
        only_other = Staff.objects.filter(pk=other.pk)
        result = self.engine.find_available_slots(self.service, at(MONDAY, "00:00"), staff_queryset=only_other)
        self.assertTrue(all(slot["staff_ids"] == [other.pk] for slot in result["slots"]))

    def test_service_longer_than_opening_hours_has_no_slots(self):
        long_service = make_service("Move Out", duration_minutes=240)
        self.assertEqual(self.engine.find_available_slots(long_service, at(MONDAY, "00:00")), {"slots": []})

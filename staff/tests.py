from datetime import time

from django.contrib.auth.models import User
from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from booking.models import Staff
from booking.services.errors import ConflictError, NotFoundError
from booking.tests.factories import make_staff

from .models import StaffAvailability
from .services.availability_store import AvailabilityStore, SlotChanges


class AvailabilityStoreTests(TestCase):
    def setUp(self):
        self.store = AvailabilityStore()
        self.staff = make_staff("Ana")

    def test_create_slot(self):
        slot = self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        self.assertEqual(slot.start_time, time(9, 0))
        self.assertEqual(slot.end_time, time(12, 0))
        self.assertTrue(slot.is_available)

    def test_overlapping_slot_is_rejected(self):
        self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        with self.assertRaises(ConflictError):
            self.store.create_slot(self.staff.pk, 1, "11:00", "13:00")
        self.assertEqual(StaffAvailability.objects.filter(staff=self.staff).count(), 1)

    def test_touching_slots_are_allowed(self):
        self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        self.store.create_slot(self.staff.pk, 1, "12:00", "15:00")

    def test_same_window_on_other_day_or_staff(self):
        self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        self.store.create_slot(self.staff.pk, 2, "09:00", "12:00")
        self.store.create_slot(make_staff("Ben").pk, 1, "09:00", "12:00")

    def test_input_is_validated(self):
        cases = [
            (7, "09:00", "12:00"),
            (-1, "09:00", "12:00"),
            ("1", "09:00", "12:00"),
            (1, "12:00", "09:00"),
            (1, "09:00", "09:00"),
            (1, "9am", "12:00"),
        ]
        for day, start, end in cases:
            with self.subTest(day=day, start=start, end=end):
                with self.assertRaises(ValidationError):
                    self.store.create_slot(self.staff.pk, day, start, end)

    def test_aware_timestamps_are_stored_as_utc_time_of_day(self):
        slot = self.store.create_slot(self.staff.pk, 1, "2024-03-11T11:00:00+02:00", "2024-03-11T15:00:00+02:00")
        self.assertEqual((slot.start_time, slot.end_time), (time(9, 0), time(13, 0)))

    def test_unknown_or_non_staff_identity(self):
        admin = make_staff("Root", role=Staff.ROLE_ADMIN)
        with self.assertRaises(NotFoundError):
            self.store.create_slot(9999, 1, "09:00", "12:00")
        with self.assertRaises(NotFoundError):
            self.store.create_slot(admin.pk, 1, "09:00", "12:00")

    def test_update_merges_provided_fields(self):
        slot = self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        updated = self.store.update_slot(slot.pk, SlotChanges(end_time="13:00", is_available=False))
        self.assertEqual(updated.start_time, time(9, 0))
        self.assertEqual(updated.end_time, time(13, 0))
        self.assertFalse(updated.is_available)

    def test_update_into_overlap_is_rejected(self):
        self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        afternoon = self.store.create_slot(self.staff.pk, 1, "13:00", "17:00")
        with self.assertRaises(ConflictError):
            self.store.update_slot(afternoon.pk, SlotChanges(start_time="11:30"))

        moved = self.store.update_slot(afternoon.pk, SlotChanges(day_of_week=2, start_time="11:30"))
        self.assertEqual(moved.day_of_week, 2)

    def test_update_checks_range_against_kept_boundary(self):
        slot = self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        with self.assertRaises(ValidationError):
            self.store.update_slot(slot.pk, SlotChanges(end_time="08:00"))
        with self.assertRaises(ValidationError):
            self.store.update_slot(slot.pk, SlotChanges(day_of_week=9))

    def test_remove_slot(self):
        slot = self.store.create_slot(self.staff.pk, 1, "09:00", "12:00")
        self.store.remove_slot(slot.pk)
        with self.assertRaises(NotFoundError):
            self.store.remove_slot(slot.pk)
        with self.assertRaises(NotFoundError):
            self.store.update_slot(slot.pk, SlotChanges(is_available=False))

    def test_list_for_staff_is_ordered_and_repeatable(self):
        self.store.create_slot(self.staff.pk, 3, "09:00", "12:00")
        self.store.create_slot(self.staff.pk, 1, "13:00", "17:00")
        self.store.create_slot(self.staff.pk, 1, "08:00", "12:00")
        first = self.store.list_for_staff(self.staff.pk)
        self.assertEqual([(s.day_of_week, s.start_time) for s in first], [(1, time(8)), (1, time(13)), (3, time(9))])
        self.assertEqual(first, self.store.list_for_staff(self.staff.pk))


class StaffApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        user = User.objects.create_user(username="dispatcher", password="testpass123", is_staff=True)
        self.client.force_authenticate(user=user)
        self.staff = make_staff("Ana")

    def test_create_list_and_conflict(self):
        url = "/api/staff/availability/"
        payload = {"staff": self.staff.pk, "day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}
        resp = self.client.post(url, payload, format="json")
        self.assertEqual(resp.status_code, 201)

        payload.update(start_time="11:00", end_time="13:00")
        resp = self.client.post(url, payload, format="json")
        self.assertEqual(resp.status_code, 409)

        resp = APIClient().get(url, {"staff": self.staff.pk})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]["start_time"], "09:00:00")

    def test_validation_and_missing_rows(self):
        url = "/api/staff/availability/"
        resp = self.client.post(url, {"staff": self.staff.pk, "day_of_week": 8, "start_time": "09:00", "end_time": "12:00"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(url, {"staff": 9999, "day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}, format="json")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.client.patch(f"{url}9999/", {"is_available": False}, format="json").status_code, 404)
        self.assertEqual(self.client.get(url, {"staff": "ana"}).status_code, 400)

    def test_update_and_delete(self):
        url = "/api/staff/availability/"
        slot_id = self.client.post(
            url, {"staff": self.staff.pk, "day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}, format="json"
        ).data["id"]
        resp = self.client.patch(f"{url}{slot_id}/", {"end_time": "14:00"}, format="json")
        self.assertEqual(resp.data["end_time"], "14:00:00")
        self.assertEqual(self.client.delete(f"{url}{slot_id}/").status_code, 204)

    def test_anonymous_cannot_write(self):
        resp = APIClient().post(
            "/api/staff/availability/",
            {"staff": self.staff.pk, "day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 403)

    def test_members_endpoint(self):
        resp = APIClient().get("/api/staff/members/")
        self.assertEqual([m["id"] for m in resp.data], [self.staff.pk])

"""
availability_store.py
---------------------
Create/update/delete of weekly StaffAvailability slots.

Slots of one staff member on one weekday never overlap. Touching slots
(09:00-12:00 and 12:00-15:00) are allowed. Times are compared as times of
day placed on a fixed UTC reference date.
"""

import logging
from dataclasses import dataclass, fields
from datetime import time

from django.db import transaction

from booking.services.directory import StaffDirectory
from booking.services.errors import ConflictError, NotFoundError, ValidationError
from booking.services.locks import StaffLocks
from booking.services.overlap import intervals_overlap, on_reference_day
from booking.services.slot_utils import to_time_of_day

from ..models import StaffAvailability

logger = logging.getLogger(__name__)


@dataclass
class SlotChanges:
    """Fields of a slot that may be changed; None means "keep"."""
    day_of_week: int | None = None
    start_time: time | str | None = None
    end_time: time | str | None = None
    is_available: bool | None = None

    def provided(self):
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def _check_day(day_of_week):
    if not isinstance(day_of_week, int) or isinstance(day_of_week, bool) or not 0 <= day_of_week <= 6:
        raise ValidationError("day_of_week must be an integer between 0 (Sunday) and 6 (Saturday).")


def _check_range(start: time, end: time):
    if on_reference_day(end) <= on_reference_day(start):
        raise ValidationError("End time must be after start time")


class AvailabilityStore:
    def __init__(self, staff_directory=None, locks=None):
        self.staff_directory = staff_directory or StaffDirectory()
        self.locks = locks or StaffLocks()

    def _get(self, slot_id) -> StaffAvailability:
        try:
            return StaffAvailability.objects.select_related("staff").get(pk=slot_id)
        except (StaffAvailability.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Availability slot not found")

    def _assert_no_overlap(self, staff_id, day_of_week, start: time, end: time, exclude_id=None):
        siblings = StaffAvailability.objects.filter(staff_id=staff_id, day_of_week=day_of_week)
        if exclude_id is not None:
            siblings = siblings.exclude(pk=exclude_id)

        new_start, new_end = on_reference_day(start), on_reference_day(end)
        for slot in siblings:
            if intervals_overlap(on_reference_day(slot.start_time), on_reference_day(slot.end_time), new_start, new_end):
                logger.warning(
                    "Rejected availability for staff %s day %s %s-%s: overlaps slot %s",
                    staff_id, day_of_week, start, end, slot.pk,
                )
                raise ConflictError("Availability slot overlaps an existing slot for this day")

    def create_slot(self, staff_id, day_of_week, start_time, end_time, is_available=True) -> StaffAvailability:
        _check_day(day_of_week)
        start, end = to_time_of_day(start_time), to_time_of_day(end_time)
        _check_range(start, end)
        staff = self.staff_directory.get_staff(staff_id)

        with self.locks.hold(staff.pk), transaction.atomic():
            self.staff_directory.lock_staff(staff.pk)
            self._assert_no_overlap(staff.pk, day_of_week, start, end)
            slot = StaffAvailability.objects.create(
                staff=staff,
                day_of_week=day_of_week,
                start_time=start,
                end_time=end,
                is_available=is_available,
            )

        logger.info("Created availability slot %s for staff %s", slot.pk, staff.pk)
        return slot

    def update_slot(self, slot_id, changes: SlotChanges) -> StaffAvailability:
        slot = self._get(slot_id)
        data = changes.provided()

        if "day_of_week" in data:
            _check_day(data["day_of_week"])
        for key in ("start_time", "end_time"):
            if key in data:
                data[key] = to_time_of_day(data[key])

        with self.locks.hold(slot.staff_id), transaction.atomic():
            self.staff_directory.lock_staff(slot.staff_id)
            slot = StaffAvailability.objects.select_for_update().get(pk=slot.pk)

            day = data.get("day_of_week", slot.day_of_week)
            start = data.get("start_time", slot.start_time)
            end = data.get("end_time", slot.end_time)
            _check_range(start, end)
            self._assert_no_overlap(slot.staff_id, day, start, end, exclude_id=slot.pk)

            for key, value in data.items():
                setattr(slot, key, value)
            slot.save()

        logger.info("Updated availability slot %s (%s)", slot.pk, ", ".join(sorted(data)))
        return slot

    def remove_slot(self, slot_id):
        slot = self._get(slot_id)
        slot.delete()
        logger.info("Deleted availability slot %s", slot_id)
        return {"message": "Availability slot deleted successfully"}

    def get(self, slot_id) -> StaffAvailability:
        return self._get(slot_id)

    def list_all(self):
        return list(StaffAvailability.objects.order_by("staff_id", "day_of_week", "start_time", "id"))

    def list_for_staff(self, staff_id):
        return list(
            StaffAvailability.objects.filter(staff_id=staff_id).order_by("day_of_week", "start_time", "id")
        )

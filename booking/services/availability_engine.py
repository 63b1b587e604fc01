"""
availability_engine.py
----------------------
Answers "which staff members are free for this service at this time?".

A staff member is free for [start, start + service duration) when
1) one of their weekly StaffAvailability slots for that weekday is enabled and
   covers the window's time of day (slot start <= start, slot end >= end), and
2) none of their schedules overlaps the window (absolute timestamps, same
   three-clause test as the registry).

Times of day and weekdays are taken in UTC, the same reference the weekly
slots are stored in. A window that runs past midnight cannot be covered by a
single weekly slot, so nobody is returned for it.
"""

import logging
from datetime import timedelta

from staff.models import StaffAvailability

from .directory import ServiceCatalog, StaffDirectory
from .overlap import overlap_q
from .schedule_registry import blocking_schedules
from .slot_utils import day_of_week, generate_slots_for_day, to_datetime, to_utc

logger = logging.getLogger(__name__)


class AvailabilityEngine:
    def __init__(self, staff_directory=None, service_catalog=None):
        self.staff_directory = staff_directory or StaffDirectory()
        self.service_catalog = service_catalog or ServiceCatalog()

    def _covering_slots(self, start, end):
        """Enabled weekly slots covering [start, end), or None for a cross-midnight window."""
        start_utc, end_utc = to_utc(start), to_utc(end)
        if end_utc.date() != start_utc.date():
            return None
        return StaffAvailability.objects.filter(
            day_of_week=day_of_week(start_utc),
            is_available=True,
            start_time__lte=start_utc.time(),
            end_time__gte=end_utc.time(),
        )

    def _busy_staff_ids(self, start, end):
        return blocking_schedules().filter(overlap_q(start, end)).values("staff_id")

    def free_staff(self, start, end, staff_queryset=None):
        """Staff (from staff_queryset, active staff by default) free for [start, end)."""
        qs = self.staff_directory.active_staff() if staff_queryset is None else staff_queryset
        slots = self._covering_slots(start, end)
        if slots is None:
            logger.debug("Window %s - %s crosses midnight; no staff can cover it", start, end)
            return qs.none()
        return (
            qs.filter(pk__in=slots.values("staff_id"))
            .exclude(pk__in=self._busy_staff_ids(start, end))
            .order_by("priority", "id")
        )

    def is_staff_available(self, staff, start, end) -> bool:
        start, end = to_datetime(start), to_datetime(end)
        return self.free_staff(start, end).filter(pk=staff.pk).exists()

    def get_available_staff(self, date, service_id):
        """
        Staff free for the given service starting at `date`.
        Raises NotFoundError if the service does not exist.
        """
        service = self.service_catalog.get_service(service_id)
        start = to_datetime(date)
        end = start + timedelta(minutes=service.duration_minutes)

        staff = list(self.free_staff(start, end))
        logger.debug(
            "Available staff for service %s at %s: %s", service.pk, start, [s.pk for s in staff]
        )
        return staff

    def find_available_slots(self, service, date_start, staff_queryset=None):
        """
        Candidate starts of the day (business hours, SLOT_INTERVAL_MINUTES apart)
        with the ids of the staff free for the whole service at each start.
        """
        duration = timedelta(minutes=service.duration_minutes)
        slots = generate_slots_for_day(date_start, duration_minutes=service.duration_minutes)

        results = []
        for start in slots:
            free_ids = list(
                self.free_staff(start, start + duration, staff_queryset).values_list("id", flat=True)
            )
            results.append({
                "start_time": start.isoformat(),
                "staff_ids": free_ids,
                "is_available": bool(free_ids),
            })
        return {"slots": results}

"""
schedule_registry.py
--------------------
Authoritative list of staff assignments (Schedule rows).

Invariant: two schedules of the same staff member never overlap on
[start_time, end_time). Every write that can break it runs under the staff
member's lock (StaffLocks in-process, select_for_update on the Staff row in
the database) and re-reads the conflicting rows inside the same transaction.

Conflict detection counts every existing schedule of the staff member,
whatever its status, unless SCHEDULING["RELEASE_INACTIVE_SCHEDULES"] is on,
in which case canceled, rescheduled and skipped schedules are ignored.
"""

import logging
from dataclasses import dataclass, fields
from datetime import datetime

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..models import Schedule
from .config import scheduling_setting
from .directory import BookingDirectory, StaffDirectory
from .errors import ConflictError, NotFoundError, ValidationError
from .locks import StaffLocks
from .overlap import overlap_q
from .slot_utils import to_datetime

logger = logging.getLogger(__name__)


@dataclass
class ScheduleChanges:
    """Fields of a schedule that may be changed; None means "keep"."""
    start_time: datetime | None = None
    end_time: datetime | None = None
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    staff_id: int | None = None
    booking_id: int | None = None

    def provided(self):
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def blocking_schedules(queryset=None):
    """Schedules that take part in conflict detection."""
    qs = Schedule.objects.all() if queryset is None else queryset
    if scheduling_setting("RELEASE_INACTIVE_SCHEDULES"):
        qs = qs.exclude(status__in=Schedule.INACTIVE_STATUSES).exclude(is_skipped=True)
    return qs


class ScheduleRegistry:
    def __init__(self, staff_directory=None, booking_directory=None, locks=None):
        self.staff_directory = staff_directory or StaffDirectory()
        self.booking_directory = booking_directory or BookingDirectory()
        self.locks = locks or StaffLocks()

    # -------------------- reads --------------------
    def get_by_id(self, schedule_id) -> Schedule:
        try:
            return Schedule.objects.select_related("staff", "booking").get(pk=schedule_id)
        except (Schedule.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Schedule not found")

    def list(self, staff_id=None, booking_id=None, start=None, end=None, status=None):
        """
        Schedules ordered by start_time. start/end bound start_time inclusively.
        """
        qs = Schedule.objects.select_related("staff", "booking")
        try:
            if staff_id is not None:
                qs = qs.filter(staff_id=int(staff_id))
            if booking_id is not None:
                qs = qs.filter(booking_id=int(booking_id))
        except (TypeError, ValueError):
            raise ValidationError("staff and booking filters must be numeric ids.")
        if start is not None:
            qs = qs.filter(start_time__gte=to_datetime(start))
        if end is not None:
            qs = qs.filter(start_time__lte=to_datetime(end))
        if status:
            qs = qs.filter(status=status)
        return list(qs.order_by("start_time", "id"))

    def conflicts_for(self, staff_id, start_time, end_time, exclude_id=None):
        qs = blocking_schedules().filter(Q(staff_id=staff_id) & overlap_q(start_time, end_time))
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs

    # -------------------- writes --------------------
    def create_schedule(self, staff_id, start_time, end_time, booking_id=None) -> Schedule:
        staff = self.staff_directory.get_staff(staff_id)
        booking = self.booking_directory.get_booking(booking_id) if booking_id is not None else None

        start_time = to_datetime(start_time)
        end_time = to_datetime(end_time)
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")

        with self.locks.hold(staff.pk), transaction.atomic():
            self.staff_directory.lock_staff(staff.pk)
            if self.conflicts_for(staff.pk, start_time, end_time).exists():
                logger.warning(
                    "Rejected schedule for staff %s %s-%s: conflict", staff.pk, start_time, end_time
                )
                raise ConflictError("Schedule conflicts with an existing schedule")

            schedule = Schedule.objects.create(
                staff=staff,
                booking=booking,
                start_time=start_time,
                end_time=end_time,
                status=Schedule.STATUS_SCHEDULED,
            )

        logger.info("Created schedule %s for staff %s (%s - %s)", schedule.pk, staff.pk, start_time, end_time)
        return schedule

    def update_schedule(self, schedule_id, changes: ScheduleChanges) -> Schedule:
        schedule = self.get_by_id(schedule_id)
        data = changes.provided()

        for key in ("start_time", "end_time", "actual_start_time", "actual_end_time"):
            if key in data:
                data[key] = to_datetime(data[key])

        # Validate the range against the retained boundary when only one side moves.
        if "start_time" in data and "end_time" in data:
            if data["end_time"] <= data["start_time"]:
                raise ValidationError("End time must be after start time")
        elif "start_time" in data:
            if data["start_time"] >= schedule.end_time:
                raise ValidationError("Start time must be before end time")
        elif "end_time" in data:
            if schedule.start_time >= data["end_time"]:
                raise ValidationError("End time must be after start time")

        if "staff_id" in data:
            data["staff_id"] = self.staff_directory.get_staff(data["staff_id"]).pk
        if "booking_id" in data:
            data["booking_id"] = self.booking_directory.get_booking(data["booking_id"]).pk

        new_staff_id = data.get("staff_id", schedule.staff_id)
        time_changed = "start_time" in data or "end_time" in data
        staff_changed = new_staff_id != schedule.staff_id

        with self.locks.hold(schedule.staff_id, new_staff_id), transaction.atomic():
            self.staff_directory.lock_staff(schedule.staff_id, new_staff_id)
            schedule = Schedule.objects.select_for_update().get(pk=schedule.pk)
            if time_changed or staff_changed:
                new_start = data.get("start_time", schedule.start_time)
                new_end = data.get("end_time", schedule.end_time)
                if self.conflicts_for(new_staff_id, new_start, new_end, exclude_id=schedule.pk).exists():
                    logger.warning("Rejected update of schedule %s: conflict", schedule.pk)
                    raise ConflictError("Schedule conflicts with an existing schedule")

            for key, value in data.items():
                setattr(schedule, key, value)
            schedule.save()

        logger.info("Updated schedule %s (%s)", schedule.pk, ", ".join(sorted(data)))
        return self.get_by_id(schedule.pk)

    def remove_schedule(self, schedule_id):
        schedule = self.get_by_id(schedule_id)
        schedule.delete()
        logger.info("Deleted schedule %s", schedule_id)
        return {"message": "Schedule deleted successfully"}

    def set_status(self, schedule_id, status: str) -> Schedule:
        """
        Move a schedule to another status. Entering IN_PROGRESS records the
        actual start and entering COMPLETED the actual end, unless already set.
        """
        if status not in dict(Schedule.STATUS_CHOICES):
            raise ValidationError(f"Unknown schedule status: {status}")
        schedule = self.get_by_id(schedule_id)

        now = timezone.now()
        schedule.status = status
        if status == Schedule.STATUS_IN_PROGRESS and schedule.actual_start_time is None:
            schedule.actual_start_time = now
        if status == Schedule.STATUS_COMPLETED and schedule.actual_end_time is None:
            schedule.actual_end_time = now
        schedule.save(update_fields=["status", "actual_start_time", "actual_end_time"])
        return schedule

    def reschedule(self, schedule_id, new_start):
        """
        Move a schedule to new_start keeping its duration and staff member.
        The old row stays as RESCHEDULED (and skipped) and a new SCHEDULED row
        is created. Returns (old, new).
        """
        schedule = self.get_by_id(schedule_id)
        new_start = to_datetime(new_start)
        new_end = new_start + (schedule.end_time - schedule.start_time)

        with self.locks.hold(schedule.staff_id), transaction.atomic():
            self.staff_directory.lock_staff(schedule.staff_id)
            # The row being moved never blocks its own new interval.
            if self.conflicts_for(schedule.staff_id, new_start, new_end, exclude_id=schedule.pk).exists():
                logger.warning("Rejected reschedule of schedule %s to %s: conflict", schedule.pk, new_start)
                raise ConflictError("Staff is unavailable at the new time")

            schedule.status = Schedule.STATUS_RESCHEDULED
            schedule.is_skipped = True
            schedule.save(update_fields=["status", "is_skipped"])

            moved = Schedule.objects.create(
                staff_id=schedule.staff_id,
                booking_id=schedule.booking_id,
                start_time=new_start,
                end_time=new_end,
                status=Schedule.STATUS_SCHEDULED,
            )

        logger.info("Rescheduled schedule %s to %s as %s", schedule.pk, new_start, moved.pk)
        return schedule, moved

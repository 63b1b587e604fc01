from django.db import models

from booking.models import DAY_OF_WEEK_VALIDATORS


class StaffAvailability(models.Model):
    """
    Weekly window when a staff member is available (e.g. Monday 09:00-17:00).
    Points to booking.Staff to avoid having two Staff models.

    start_time/end_time are wall-clock UTC times of day. Slots of the same
    staff member and weekday never overlap (enforced by AvailabilityStore).
    """
    staff = models.ForeignKey(
        "booking.Staff",
        on_delete=models.CASCADE,
        related_name="availabilities",
    )
    day_of_week = models.PositiveSmallIntegerField(validators=DAY_OF_WEEK_VALIDATORS)  # 0=Sunday
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ["staff_id", "day_of_week", "start_time"]
        verbose_name_plural = "staff availabilities"

    def __str__(self):
        return f"{self.staff.name}: day {self.day_of_week} {self.start_time:%H:%M} - {self.end_time:%H:%M}"

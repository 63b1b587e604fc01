# booking/models.py
#
# Purpose:
# - Domain models for the cleaning-service booking platform.
#
# Design highlights:
# - Customer: person who books a cleaning job.
#   • clean() prevents duplicates by (name/email case-insensitive + phone exact).
# - Service: cleaning service catalog entry; duration_minutes drives schedule length.
# - Staff: cleaner identity. Only role=STAFF members can be scheduled; the
#   availability search also requires status=ACTIVE. Lower priority is picked first.
# - Booking: a customer's job. primary_schedule points at the schedule that
#   tracks actual start/end for the job.
# - Schedule: a concrete, dated assignment of one staff member. No two schedules
#   of the same staff member may overlap (enforced by ScheduleRegistry).
# - MonthSchedule: a recurrence rule ("2nd Tuesday at 10:00") for recurring bookings.
#   Concrete dates are derived on demand in services/recurrence.py.
#
# Notes for developers:
# - Do not write Schedule rows directly; go through services.schedule_registry so
#   the per-staff lock and the overlap check run.
#

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models


DAY_OF_WEEK_VALIDATORS = [MinValueValidator(0), MaxValueValidator(6)]  # 0=Sunday
HHMM_VALIDATOR = RegexValidator(r"^([01]\d|2[0-3]):[0-5]\d$", "Time must be in HH:mm format.")


# -------------------------
# Customer (person who books)
# -------------------------
class Customer(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20)

    def __str__(self):
        return self.name

    def clean(self):
        """
        Disallow another customer with the same name/email (case-insensitive)
        and the same phone.
        """
        name = (self.name or "").strip()
        email = (self.email or "").strip()
        phone = (self.phone or "").strip()
        if not name or not email or not phone:
            return

        qs = Customer.objects.filter(name__iexact=name, email__iexact=email, phone=phone)
        if self.pk:
            qs = qs.exclude(pk=self.pk)
        if qs.exists():
            raise ValidationError("A customer with the same name, email, and phone already exists.")


# -------------------------
# Service catalog item
# -------------------------
class Service(models.Model):
    """
    A cleaning service offered by the business.

    Rules:
    - duration_minutes must be >= 1 (it sizes the schedule)
    - price must be > 0
    - active controls visibility and bookability
    """
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"


# -------------------------
# Staff member / Cleaner
# -------------------------
class Staff(models.Model):
    ROLE_STAFF = "STAFF"
    ROLE_ADMIN = "ADMIN"
    ROLE_CHOICES = [
        (ROLE_STAFF, "Staff"),
        (ROLE_ADMIN, "Admin"),
    ]

    STATUS_ACTIVE = "ACTIVE"
    STATUS_INACTIVE = "INACTIVE"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
    ]

    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STAFF)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    priority = models.PositiveIntegerField(default=100, help_text="Lower values are assigned first.")

    class Meta:
        ordering = ["priority", "id"]

    def __str__(self):
        return self.name


# -------------------------
# Booking record
# -------------------------
class Booking(models.Model):
    """
    A cleaning job booked by a customer.

    primary_schedule replaces the "first schedule of the booking" convention:
    actual start/end of the job are recorded on that schedule.
    """
    TYPE_ONE_TIME = "ONE_TIME"
    TYPE_RECURRING = "RECURRING"
    TYPE_CHOICES = [
        (TYPE_ONE_TIME, "One time"),
        (TYPE_RECURRING, "Recurring"),
    ]

    STATUS_PENDING = "PENDING"
    STATUS_CONFIRMED = "CONFIRMED"
    STATUS_IN_PROGRESS = "IN_PROGRESS"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_CANCELED = "CANCELED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELED, "Canceled"),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="bookings")
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name="bookings")
    booking_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_ONE_TIME)
    status = models.CharField(
        max_length=12,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        help_text="Booking lifecycle status",
    )
    start_time = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    notes = models.TextField(blank=True)
    cancellation_time = models.DateTimeField(null=True, blank=True)
    primary_schedule = models.OneToOneField(
        "Schedule",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="primary_for",
    )

    def __str__(self):
        return f"{self.customer.name} → {self.service.name} on {self.start_time}"

    @property
    def is_recurring(self):
        return self.booking_type == self.TYPE_RECURRING


# -------------------------
# Concrete staff assignment
# -------------------------
class Schedule(models.Model):
    STATUS_SCHEDULED = "SCHEDULED"
    STATUS_IN_PROGRESS = "IN_PROGRESS"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_CANCELED = "CANCELED"
    STATUS_RESCHEDULED = "RESCHEDULED"
    STATUS_MISSED = "MISSED"
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_IN_PROGRESS, "In progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELED, "Canceled"),
        (STATUS_RESCHEDULED, "Rescheduled"),
        (STATUS_MISSED, "Missed"),
    ]
    # Statuses ignored by conflict detection when RELEASE_INACTIVE_SCHEDULES is on.
    INACTIVE_STATUSES = (STATUS_CANCELED, STATUS_RESCHEDULED)

    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="schedules")
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="schedules",
        null=True,
        blank=True,
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    actual_start_time = models.DateTimeField(null=True, blank=True)
    actual_end_time = models.DateTimeField(null=True, blank=True)
    is_skipped = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["start_time", "id"]
        indexes = [models.Index(fields=["staff", "start_time"], name="schedule_staff_start_idx")]

    def __str__(self):
        return f"{self.staff.name}: {self.start_time} - {self.end_time} [{self.status}]"


# -------------------------
# Monthly recurrence rule
# -------------------------
class MonthSchedule(models.Model):
    """
    "Nth weekday of the month at HH:mm" rule for a recurring booking.
    is_skipped is set when a reschedule supersedes the rule.
    """
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="month_schedules")
    week_of_month = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    day_of_week = models.PositiveSmallIntegerField(validators=DAY_OF_WEEK_VALIDATORS)
    time = models.CharField(max_length=5, validators=[HHMM_VALIDATOR])
    is_skipped = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["booking_id", "id"]

    def __str__(self):
        return f"Booking #{self.booking_id}: week {self.week_of_month}, day {self.day_of_week} at {self.time}"

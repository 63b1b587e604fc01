from rest_framework import serializers
from django.utils import timezone

from .models import Booking, Customer, MonthSchedule, Schedule, Service, Staff
from .services.schedule_registry import ScheduleChanges


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "email", "phone"]


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "name", "description", "duration_minutes", "price", "active"]


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ["id", "name", "email", "role", "status", "priority"]


class StaffSummarySerializer(serializers.ModelSerializer):
    """Public fields returned by the available-staff search."""
    class Meta:
        model = Staff
        fields = ["id", "name", "email"]


class ScheduleSerializer(serializers.ModelSerializer):
    staff = StaffSummarySerializer(read_only=True)

    class Meta:
        model = Schedule
        fields = [
            "id",
            "staff",
            "booking",
            "start_time",
            "end_time",
            "status",
            "actual_start_time",
            "actual_end_time",
            "is_skipped",
        ]
        read_only_fields = fields


class ScheduleCreateSerializer(serializers.Serializer):
    # Plain ids: the registry resolves them and reports unknown ones as 404.
    staff = serializers.IntegerField()
    booking = serializers.IntegerField(required=False, allow_null=True)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()


class ScheduleUpdateSerializer(serializers.Serializer):
    staff = serializers.IntegerField(required=False)
    booking = serializers.IntegerField(required=False)
    start_time = serializers.DateTimeField(required=False)
    end_time = serializers.DateTimeField(required=False)
    actual_start_time = serializers.DateTimeField(required=False)
    actual_end_time = serializers.DateTimeField(required=False)

    def to_changes(self) -> ScheduleChanges:
        data = self.validated_data
        return ScheduleChanges(
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            actual_start_time=data.get("actual_start_time"),
            actual_end_time=data.get("actual_end_time"),
            staff_id=data.get("staff"),
            booking_id=data.get("booking"),
        )


class ScheduleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Schedule.STATUS_CHOICES)


class MonthScheduleSerializer(serializers.ModelSerializer):
    class Meta:
        model = MonthSchedule
        fields = ["id", "week_of_month", "day_of_week", "time", "is_skipped"]
        read_only_fields = ["is_skipped"]


class BookingSerializer(serializers.ModelSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    # Preferred staff member; another free one is picked when busy or missing.
    staff = serializers.PrimaryKeyRelatedField(
        queryset=Staff.objects.filter(role=Staff.ROLE_STAFF),
        allow_null=True,
        required=False,
        write_only=True,
    )
    primary_schedule = ScheduleSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "customer",
            "service",
            "staff",
            "booking_type",
            "start_time",
            "created_at",
            "notes",
            "status",
            "cancellation_time",
            "primary_schedule",
        ]
        read_only_fields = ["created_at", "status", "cancellation_time"]

    def validate(self, attrs):
        start_time = attrs.get("start_time")
        if start_time and start_time <= timezone.now():
            raise serializers.ValidationError("Start time must be in the future.")
        return attrs


class RescheduleSerializer(serializers.Serializer):
    new_date = serializers.DateField()
    time = serializers.RegexField(r"^\d{2}:\d{2}$", error_messages={"invalid": "Time must be in HH:mm format"})
    month_schedule = serializers.IntegerField(required=False)

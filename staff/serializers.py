from rest_framework import serializers

from .models import StaffAvailability
from .services.availability_store import SlotChanges


class StaffAvailabilitySerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffAvailability
        fields = ["id", "staff", "day_of_week", "start_time", "end_time", "is_available"]
        read_only_fields = fields


class SlotCreateSerializer(serializers.Serializer):
    # Range checks (day 0-6, end after start, overlaps) are done by AvailabilityStore.
    staff = serializers.IntegerField()
    day_of_week = serializers.IntegerField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    is_available = serializers.BooleanField(required=False, default=True)


class SlotUpdateSerializer(serializers.Serializer):
    day_of_week = serializers.IntegerField(required=False)
    start_time = serializers.CharField(required=False)
    end_time = serializers.CharField(required=False)
    is_available = serializers.BooleanField(required=False)

    def to_changes(self) -> SlotChanges:
        return SlotChanges(**self.validated_data)

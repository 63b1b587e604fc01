from rest_framework import status, viewsets
from rest_framework.response import Response

from booking.models import Staff
from booking.serializers import StaffSerializer
from booking.views import IsStaffOrReadOnly, ScheduleViewSet, SchedulingErrorsMixin

from .serializers import SlotCreateSerializer, SlotUpdateSerializer, StaffAvailabilitySerializer
from .services.availability_store import AvailabilityStore


class StaffMemberViewSet(viewsets.ModelViewSet):
    queryset = Staff.objects.all().order_by("priority", "id")
    serializer_class = StaffSerializer
    permission_classes = [IsStaffOrReadOnly]


class StaffAvailabilityViewSet(SchedulingErrorsMixin, viewsets.ViewSet):
    """
    Weekly availability slots, managed through AvailabilityStore.
    GET /api/staff/availability/?staff=ID lists one staff member's slots.
    """
    permission_classes = [IsStaffOrReadOnly]
    # Same StaffLocks as the schedule and booking endpoints.
    store = AvailabilityStore(locks=ScheduleViewSet.registry.locks)

    def list(self, request):
        staff_id = (request.query_params.get("staff") or "").strip()
        if staff_id:
            if not staff_id.isdigit():
                return Response({"detail": "staff must be a numeric id."}, status=status.HTTP_400_BAD_REQUEST)
            slots = self.store.list_for_staff(int(staff_id))
        else:
            slots = self.store.list_all()
        return Response(StaffAvailabilitySerializer(slots, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(StaffAvailabilitySerializer(self.store.get(pk)).data)

    def create(self, request):
        serializer = SlotCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        slot = self.store.create_slot(
            staff_id=data["staff"],
            day_of_week=data["day_of_week"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            is_available=data["is_available"],
        )
        return Response(StaffAvailabilitySerializer(slot).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = SlotUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        slot = self.store.update_slot(pk, serializer.to_changes())
        return Response(StaffAvailabilitySerializer(slot).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        self.store.remove_slot(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

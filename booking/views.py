# booking/views.py
#
# Purpose:
# - Service catalog API (read for everyone, write for staff users).
# - Schedule API backed by ScheduleRegistry (no direct ORM writes here).
# - Available-staff search and day time-slot grid backed by AvailabilityEngine.
# - Booking API backed by BookingManager (create, cancel, reschedule, start,
#   complete, recurrence rules, next occurrence).
#
# Errors raised by the scheduling core are mapped to responses in
# SchedulingErrorsMixin: ValidationError -> 400, NotFoundError -> 404,
# ConflictError -> 409.
#
from datetime import datetime

from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, BasePermission
from rest_framework.response import Response

from .models import Booking, MonthSchedule, Service
from .serializers import (
    BookingSerializer,
    MonthScheduleSerializer,
    RescheduleSerializer,
    ScheduleCreateSerializer,
    ScheduleSerializer,
    ScheduleStatusSerializer,
    ScheduleUpdateSerializer,
    ServiceSerializer,
    StaffSummarySerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.booking_manager import BookingManager
from .services.errors import ConflictError, NotFoundError
from .services.schedule_registry import ScheduleRegistry
from .services.slot_utils import date_to_range, to_aware, to_datetime


# -------------------- Permissions --------------------
class IsStaffOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: staff only
    """
    def has_permission(self, request, view):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return bool(request.user and request.user.is_staff)


class IsStaffOnly(BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)


# -------------------- Error mapping --------------------
def error_response(exc):
    if isinstance(exc, NotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConflictError):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"detail": " ".join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)


class SchedulingErrorsMixin:
    def handle_exception(self, exc):
        if isinstance(exc, (NotFoundError, ConflictError, ValidationError)):
            return error_response(exc)
        return super().handle_exception(exc)


def _query_param(request, name, required=False):
    value = (request.query_params.get(name) or "").strip()
    if required and not value:
        raise ValidationError(f"Missing '{name}'.")
    return value or None


# -------------------- ViewSets --------------------
class ServiceViewSet(viewsets.ModelViewSet):
    """
    Service catalog:
    - Anyone can list active services.
    - Only staff can create/update/delete services.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        user = getattr(self.request, "user", None)
        qs = Service.objects.all().order_by("id")
        if user and user.is_authenticated and user.is_staff:
            return qs
        return qs.filter(active=True)


class ScheduleViewSet(SchedulingErrorsMixin, viewsets.ViewSet):
    """
    Endpoints:
    - GET    /api/schedules/?staff=&booking=&start=&end=&status=
    - POST   /api/schedules/                     create (409 on overlap)
    - GET    /api/schedules/{id}/
    - PATCH  /api/schedules/{id}/                update (409 on overlap)
    - DELETE /api/schedules/{id}/
    - POST   /api/schedules/{id}/status/         status transition
    - GET    /api/schedules/available-staff/?date=ISO&service=ID
    - GET    /api/schedules/time-slots/?date=YYYY-MM-DD&service=ID
    """
    permission_classes = [IsStaffOrReadOnly]
    registry = ScheduleRegistry()
    engine = AvailabilityEngine()

    def list(self, request):
        schedules = self.registry.list(
            staff_id=_query_param(request, "staff"),
            booking_id=_query_param(request, "booking"),
            start=_query_param(request, "start"),
            end=_query_param(request, "end"),
            status=_query_param(request, "status"),
        )
        return Response(ScheduleSerializer(schedules, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(ScheduleSerializer(self.registry.get_by_id(pk)).data)

    def create(self, request):
        serializer = ScheduleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        schedule = self.registry.create_schedule(
            staff_id=data["staff"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            booking_id=data.get("booking"),
        )
        return Response(ScheduleSerializer(schedule).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = ScheduleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        schedule = self.registry.update_schedule(pk, serializer.to_changes())
        return Response(ScheduleSerializer(schedule).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        self.registry.remove_schedule(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        serializer = ScheduleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        schedule = self.registry.set_status(pk, serializer.validated_data["status"])
        return Response(ScheduleSerializer(schedule).data)

    @action(detail=False, methods=["get"], url_path="available-staff", permission_classes=[AllowAny])
    def available_staff(self, request):
        date_raw = _query_param(request, "date", required=True)
        service_id = _query_param(request, "service", required=True)
        staff = self.engine.get_available_staff(to_datetime(date_raw), service_id)
        return Response({"staff": StaffSummarySerializer(staff, many=True).data})

    @action(detail=False, methods=["get"], url_path="time-slots", permission_classes=[AllowAny])
    def time_slots(self, request):
        """
        Accepts a date, or a timestamp whose date part is used.
        """
        date_raw = _query_param(request, "date", required=True)
        service_id = _query_param(request, "service", required=True)
        date_str = date_raw.split("T", 1)[0].split(" ", 1)[0]

        service = self.engine.service_catalog.get_service(service_id)
        day_start, _day_end = date_to_range(date_str)
        return Response(self.engine.find_available_slots(service, day_start))


class BookingViewSet(SchedulingErrorsMixin, mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    """
    Endpoints:
    - POST /api/bookings/                          create + primary schedule
    - POST /api/bookings/{id}/cancel/              cancel with cutoff
    - POST /api/bookings/{id}/reschedule/          move the next upcoming schedule
    - POST /api/bookings/{id}/start/               staff: job started
    - POST /api/bookings/{id}/complete/            staff: job completed
    - GET|POST /api/bookings/{id}/month-schedules/ recurrence rules
    - GET  /api/bookings/{id}/next-occurrence/     next projected occurrence
    """
    queryset = Booking.objects.select_related("primary_schedule__staff").order_by("-start_time")
    serializer_class = BookingSerializer
    manager = BookingManager(registry=ScheduleViewSet.registry, engine=ScheduleViewSet.engine)

    def get_permissions(self):
        if self.action in ("start", "complete"):
            return [IsStaffOnly()]
        if self.action == "month_schedules" and self.request.method == "POST":
            return [IsStaffOnly()]
        return [AllowAny()]

    def create(self, request, *args, **kwargs):
        """
        Requires: customer (PK), service (PK), start_time (ISO).
        Optional: staff (PK), booking_type, notes.
        """
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = self.manager.create_booking(
            customer=data["customer"],
            service=data["service"],
            start_time=data["start_time"],
            staff=data.get("staff"),
            booking_type=data.get("booking_type", Booking.TYPE_ONE_TIME),
            notes=data.get("notes", ""),
        )
        booking.refresh_from_db()
        out = BookingSerializer(booking)
        headers = self.get_success_headers(out.data)
        return Response(out.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking = self.manager.cancel_booking(self.get_object())
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):
        booking = self.get_object()
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        hours, minutes = map(int, data["time"].split(":"))
        try:
            new_start = to_aware(datetime(data["new_date"].year, data["new_date"].month,
                                          data["new_date"].day, hours, minutes))
        except ValueError:
            raise ValidationError("Invalid date or time")

        month_schedule = None
        if data.get("month_schedule") is not None:
            month_schedule = get_object_or_404(MonthSchedule, pk=data["month_schedule"], booking=booking)

        old, new = self.manager.reschedule_booking(booking, new_start, month_schedule=month_schedule)
        return Response({
            "message": "Booking successfully rescheduled",
            "rescheduled": ScheduleSerializer(old).data,
            "new_schedule": ScheduleSerializer(new).data,
        })

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        booking = self.manager.start_booking(self.get_object())
        booking.refresh_from_db()
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        booking = self.manager.complete_booking(self.get_object())
        booking.refresh_from_db()
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["get", "post"], url_path="month-schedules")
    def month_schedules(self, request, pk=None):
        booking = self.get_object()
        if request.method == "POST":
            rules = request.data.get("rules") if isinstance(request.data, dict) else request.data
            if not isinstance(rules, list):
                raise ValidationError("Expected a list of rules.")
            created = self.manager.add_month_schedules(booking, rules)
            return Response(MonthScheduleSerializer(created, many=True).data, status=status.HTTP_201_CREATED)
        return Response(MonthScheduleSerializer(booking.month_schedules.all(), many=True).data)

    @action(detail=True, methods=["get"], url_path="next-occurrence")
    def next_occurrence(self, request, pk=None):
        booking = self.get_object()
        upcoming = self.manager.next_occurrence_for(booking)
        return Response({"next_occurrence": upcoming.isoformat() if upcoming else None})

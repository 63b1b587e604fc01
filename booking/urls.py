# booking/urls.py
#
# Purpose:
# - Expose the REST API endpoints of the booking app via a DRF router.
#
# Notes for developers:
# - Schedules are not a ModelViewSet: every write goes through ScheduleRegistry
#   (see booking/views.py), so the router only sees plain ViewSet actions.
# - Staff members and their weekly availability live under /api/staff/
#   (staff/urls.py).

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BookingViewSet, ScheduleViewSet, ServiceViewSet

router = DefaultRouter()
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"schedules", ScheduleViewSet, basename="schedule")
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]

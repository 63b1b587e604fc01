from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import StaffAvailabilityViewSet, StaffMemberViewSet

router = DefaultRouter()
router.register(r"availability", StaffAvailabilityViewSet, basename="staff-availability")
router.register(r"members", StaffMemberViewSet, basename="staff-member")

urlpatterns = [path("", include(router.urls))]

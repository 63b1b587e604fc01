# cleaning_platform/urls.py
#
# Purpose:
# - Project URL router.
# - All JSON APIs live under /api/; staff members and availability under /api/staff/.
#
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("booking.urls")),
    path("api/staff/", include("staff.urls")),
]

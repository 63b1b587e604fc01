from django.contrib import admin
from .models import Booking, Customer, MonthSchedule, Schedule, Service, Staff

@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "price", "duration_minutes", "active")
    list_filter = ("active",)
    search_fields = ("name",)
    list_editable = ("price", "duration_minutes", "active")

@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "phone")
    search_fields = ("name", "email", "phone")

@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "role", "status", "priority")
    list_filter = ("role", "status")

class MonthScheduleInline(admin.TabularInline):
    model = MonthSchedule
    extra = 0

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "service", "booking_type", "start_time", "status")
    list_filter = ("status", "booking_type", "service")
    search_fields = ("customer__name", "service__name")
    inlines = [MonthScheduleInline]

# Schedules are read-only here: edits must go through the API so the overlap check runs.
@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ("id", "staff", "booking", "start_time", "end_time", "status", "is_skipped")
    list_filter = ("status", "staff")
    readonly_fields = ("staff", "booking", "start_time", "end_time", "status",
                       "actual_start_time", "actual_end_time", "is_skipped", "created_at")

    def has_add_permission(self, request):
        return False

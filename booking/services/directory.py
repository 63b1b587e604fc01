"""
directory.py
------------
Lookups of the identities the scheduling core references but does not own:
staff members, bookings and catalog services.

The registry, the availability store and the availability engine receive
these objects in their constructors, so tests or other storage backends can
substitute their own.
"""

from ..models import Booking, Service, Staff
from .errors import NotFoundError


def _first(model, pk, **filters):
    try:
        return model.objects.filter(pk=pk, **filters).first()
    except (TypeError, ValueError):
        # Non-numeric ids never resolve.
        return None


class StaffDirectory:
    def get_staff(self, staff_id) -> Staff:
        """Resolve a schedulable staff identity (role=STAFF) or raise NotFoundError."""
        staff = _first(Staff, staff_id, role=Staff.ROLE_STAFF)
        if staff is None:
            raise NotFoundError(f"Staff with ID {staff_id} not found or user is not staff")
        return staff

    def lock_staff(self, *staff_ids):
        """
        Take row locks on the given staff records for the current transaction.
        Must be called inside transaction.atomic().
        """
        ids = sorted({int(s) for s in staff_ids if s is not None})
        return list(Staff.objects.select_for_update().filter(pk__in=ids).order_by("pk"))

    def active_staff(self):
        return Staff.objects.filter(
            role=Staff.ROLE_STAFF,
            status=Staff.STATUS_ACTIVE,
        ).order_by("priority", "id")


class BookingDirectory:
    def get_booking(self, booking_id) -> Booking:
        booking = _first(Booking, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking with ID {booking_id} not found")
        return booking


class ServiceCatalog:
    def get_service(self, service_id) -> Service:
        service = _first(Service, service_id)
        if service is None:
            raise NotFoundError(f"Service with ID {service_id} not found")
        return service

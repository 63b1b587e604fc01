"""
errors.py
---------
Error taxonomy of the scheduling core.

- ValidationError: malformed input (Django's own exception class is reused so
  model validators and service code raise the same type).
- ConflictError: the requested interval overlaps existing data.
- NotFoundError: a staff/booking/service/slot/schedule id does not resolve.

All are raised where detected and propagate unchanged to the API layer,
which maps them to 400/409/404.
"""

from django.core.exceptions import ObjectDoesNotExist, ValidationError

__all__ = ["SchedulingError", "ConflictError", "NotFoundError", "ValidationError"]


class SchedulingError(Exception):
    """Base class for scheduling failures that are not input validation."""


class ConflictError(SchedulingError):
    pass


class NotFoundError(SchedulingError, ObjectDoesNotExist):
    pass

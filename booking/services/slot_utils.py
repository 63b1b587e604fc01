"""
slot_utils.py
-------------
Date/time helpers for the scheduler:
- parsing "HH:mm" strings, times of day and ISO timestamps,
- Sunday=0 weekday numbering,
- converting a date into a timezone-aware day window,
- generating candidate appointment starts within business hours.
"""

import logging
from datetime import datetime, time, timedelta, timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_time

from .config import scheduling_setting
from .errors import ValidationError

logger = logging.getLogger(__name__)


def parse_hhmm(value: str) -> time:
    """Strict "HH:mm" parser used by recurrence rules and business hours."""
    if not isinstance(value, str):
        raise ValidationError(f"Time must be in HH:mm format, got {value!r}.")
    try:
        h, m = value.strip().split(":")
        if len(h) != 2 or len(m) != 2:
            raise ValueError(value)
        return time(int(h), int(m))
    except ValueError:
        raise ValidationError(f"Time must be in HH:mm format, got {value!r}.")


def to_aware(dt: datetime) -> datetime:
    """
    Return an aware datetime. Naive values are interpreted in Django's
    current timezone.
    """
    if timezone.is_aware(dt):
        return dt
    return timezone.make_aware(dt, timezone.get_current_timezone())


def to_datetime(value) -> datetime:
    """Accept a datetime or an ISO-8601 string; always return an aware datetime."""
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"Invalid timestamp: {value!r}.")
        value = parsed
    if not isinstance(value, datetime):
        raise ValidationError(f"Invalid timestamp: {value!r}.")
    return to_aware(value)


def to_time_of_day(value) -> time:
    """
    Normalize a slot boundary to a naive UTC wall-clock time.

    Accepts a time, a datetime (aware values are converted to UTC first) or a
    string ("HH:MM", "HH:MM:SS" or a full ISO timestamp).
    """
    if isinstance(value, str):
        raw = value.strip()
        try:
            parsed = parse_time(raw) if "T" not in raw and " " not in raw else None
        except ValueError:
            raise ValidationError(f"Invalid time of day: {value!r}.")
        if parsed is not None:
            value = parsed
        else:
            value = to_datetime(raw)
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = value.astimezone(dt_timezone.utc)
        return value.time().replace(tzinfo=None)
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    raise ValidationError(f"Invalid time of day: {value!r}.")


def to_utc(dt: datetime) -> datetime:
    return to_aware(dt).astimezone(dt_timezone.utc)


def day_of_week(d) -> int:
    """0=Sunday .. 6=Saturday (Python's weekday() has Monday=0)."""
    return (d.weekday() + 1) % 7


def get_business_hours():
    """
    Return (open_time, close_time) as time objects.
    SystemSetting rows win over settings.SCHEDULING; a malformed row is
    ignored with a warning.
    """
    default_open = parse_hhmm(scheduling_setting("BUSINESS_OPEN"))
    default_close = parse_hhmm(scheduling_setting("BUSINESS_CLOSE"))

    from configmgr.models import SystemSetting

    open_raw = SystemSetting.get_value(SystemSetting.BUSINESS_OPEN)
    close_raw = SystemSetting.get_value(SystemSetting.BUSINESS_CLOSE)
    if open_raw is None or close_raw is None:
        return default_open, default_close
    try:
        return parse_hhmm(open_raw), parse_hhmm(close_raw)
    except ValidationError:
        logger.warning("Ignoring malformed business hours %r-%r", open_raw, close_raw)
        return default_open, default_close


def date_to_range(date_str: str):
    """
    Convert 'YYYY-MM-DD' into a timezone-aware day window [start, end).
    """
    date_str = (date_str or "").strip()
    try:
        y, m, d = map(int, date_str.split("-"))
        day_start_naive = datetime(y, m, d, 0, 0, 0)
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD.")

    day_start = to_aware(day_start_naive)
    return day_start, day_start + timedelta(days=1)


def generate_slots_for_day(
    date_start,
    open_time: time | None = None,
    close_time: time | None = None,
    step_minutes: int | None = None,
    duration_minutes: int = 0,
):
    """
    Generate candidate start times between open and close hours, stepping by
    step_minutes, keeping only starts whose [start, start + duration) fits
    before closing. Returned datetimes are timezone-aware.
    """
    if open_time is None or close_time is None:
        open_time, close_time = get_business_hours()
    if step_minutes is None:
        step_minutes = scheduling_setting("SLOT_INTERVAL_MINUTES")

    step = timedelta(minutes=step_minutes)
    duration = timedelta(minutes=duration_minutes)

    day = date_start.date() if isinstance(date_start, datetime) else date_start
    day_open = to_aware(datetime.combine(day, open_time))
    day_close = to_aware(datetime.combine(day, close_time))

    slots = []
    current = day_open
    while current < day_close and current + duration <= day_close:
        slots.append(current)
        current += step
    return slots

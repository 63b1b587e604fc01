"""
config.py
---------
Scheduler tunables. Values come from settings.SCHEDULING and fall back to
the defaults below when a key is missing.
"""

from django.conf import settings

DEFAULTS = {
    "BUSINESS_OPEN": "08:00",
    "BUSINESS_CLOSE": "18:00",
    "SLOT_INTERVAL_MINUTES": 30,
    "RESCHEDULE_MIN_NOTICE_DAYS": 3,
    "CANCELLATION_CUTOFF_MINUTES": 120,
    "RELEASE_INACTIVE_SCHEDULES": False,
}


def scheduling_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown scheduling setting: {name}")
    overrides = getattr(settings, "SCHEDULING", None) or {}
    return overrides.get(name, DEFAULTS[name])

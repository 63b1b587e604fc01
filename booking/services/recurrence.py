"""
recurrence.py
-------------
Projects "Nth weekday of the month" rules (MonthSchedule) onto calendar dates.

- date_in_month(2024, 2, 5, 2) -> None   (February 2024 has no 5th Tuesday)
- next_occurrence(2, 1, date(2024, 3, 1)) -> date(2024, 3, 11)
- occurrences_between(rules, start, end) -> every (date, rule) in a date window

Months are 1-indexed, weekdays are 0=Sunday .. 6=Saturday. Everything here
is a pure computation: rules are read, never modified.
"""

import calendar
from datetime import date, datetime

from django.utils import timezone

from .errors import ValidationError
from .slot_utils import day_of_week as sunday_based_weekday
from .slot_utils import parse_hhmm, to_aware


def _check_rule(week_of_month: int, day_of_week: int):
    if not 1 <= week_of_month <= 5:
        raise ValidationError("week_of_month must be between 1 and 5.")
    if not 0 <= day_of_week <= 6:
        raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday).")


def date_in_month(year: int, month: int, week_of_month: int, day_of_week: int) -> date | None:
    """
    Date of the week_of_month-th day_of_week in the given month, or None when
    that month does not have one (e.g. a 5th Tuesday in a short month).
    """
    _check_rule(week_of_month, day_of_week)
    first_weekday = sunday_based_weekday(date(year, month, 1))
    offset = (day_of_week - first_weekday + 7) % 7
    day = 1 + offset + (week_of_month - 1) * 7

    _, days_in_month = calendar.monthrange(year, month)
    if day > days_in_month:
        return None
    return date(year, month, day)


def next_occurrence(week_of_month: int, day_of_week: int, reference_date: date | None = None) -> date | None:
    """
    First date on or after reference_date (today by default) matching the rule.
    Only the reference month and the following one are considered, so the
    result can still be None.
    """
    if reference_date is None:
        reference_date = timezone.localdate()
    elif isinstance(reference_date, datetime):
        reference_date = timezone.localdate(to_aware(reference_date))

    candidate = date_in_month(reference_date.year, reference_date.month, week_of_month, day_of_week)
    if candidate is None or candidate < reference_date:
        year, month = reference_date.year, reference_date.month + 1
        if month > 12:
            year, month = year + 1, 1
        candidate = date_in_month(year, month, week_of_month, day_of_week)
    return candidate


def nth_weekday_of_month(d: date) -> int:
    """Ordinal of d's weekday within its month: the 15th of a month is its 3rd such weekday."""
    return (d.day - 1) // 7 + 1


def next_scheduled_occurrence(rules, reference_date: date | None = None) -> datetime | None:
    """
    Earliest upcoming occurrence across the non-skipped rules of a booking,
    combined with each rule's HH:mm time in the current timezone.
    """
    upcoming = []
    for rule in rules:
        if rule.is_skipped:
            continue
        day = next_occurrence(rule.week_of_month, rule.day_of_week, reference_date)
        if day is None:
            continue
        upcoming.append(to_aware(datetime.combine(day, parse_hhmm(rule.time))))
    return min(upcoming, default=None)


def occurrences_between(rules, start_date: date, end_date: date):
    """
    (date, rule) pairs for every non-skipped rule falling within
    [start_date, end_date], ordered by date then rule time.
    """
    found = []
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        for rule in rules:
            if rule.is_skipped:
                continue
            day = date_in_month(year, month, rule.week_of_month, rule.day_of_week)
            if day is not None and start_date <= day <= end_date:
                found.append((day, rule))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    found.sort(key=lambda pair: (pair[0], pair[1].time))
    return found

"""
overlap.py
----------
Interval conflict detection shared by the schedule registry, the
availability store and the availability search.

Intervals are half-open [start, end). Two intervals conflict when
1) B starts during A, 2) B ends during A, or 3) A lies inside B.
An interval ending at T does not conflict with one starting at T.
"""

from datetime import date, datetime, time, timezone as dt_timezone

from django.db.models import Q

# Fixed day used to compare times of day as datetimes.
REFERENCE_DATE = date(1970, 1, 1)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    starts_inside = a_start <= b_start and b_start < a_end
    ends_inside = a_start < b_end and b_end <= a_end
    a_within_b = b_start <= a_start and a_end <= b_end
    return starts_inside or ends_inside or a_within_b


def overlap_q(start, end, start_field: str = "start_time", end_field: str = "end_time") -> Q:
    """
    The same three clauses as intervals_overlap, with the stored row as A and
    the candidate [start, end) as B, for filtering a queryset.
    """
    return (
        Q(**{f"{start_field}__lte": start, f"{end_field}__gt": start})
        | Q(**{f"{start_field}__lt": end, f"{end_field}__gte": end})
        | Q(**{f"{start_field}__gte": start, f"{end_field}__lte": end})
    )


def on_reference_day(t: time) -> datetime:
    """Place a time of day on REFERENCE_DATE in UTC so only hour/minute matter."""
    return datetime.combine(REFERENCE_DATE, t.replace(tzinfo=None), tzinfo=dt_timezone.utc)

from datetime import date, datetime, timezone as dt_timezone

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from booking.models import MonthSchedule
from booking.services.recurrence import (
    date_in_month,
    next_occurrence,
    next_scheduled_occurrence,
    nth_weekday_of_month,
    occurrences_between,
)


class DateInMonthTests(SimpleTestCase):
    def test_fifth_tuesday_of_february_2024_does_not_exist(self):
        self.assertIsNone(date_in_month(2024, 2, 5, 2))

    def test_fifth_thursday_of_leap_february(self):
        self.assertEqual(date_in_month(2024, 2, 5, 4), date(2024, 2, 29))

    def test_second_monday(self):
        self.assertEqual(date_in_month(2024, 3, 2, 1), date(2024, 3, 11))

    def test_first_weekday_matching_the_first_of_the_month(self):
        # March 1st 2024 is a Friday
        self.assertEqual(date_in_month(2024, 3, 1, 5), date(2024, 3, 1))

    def test_rule_is_validated(self):
        with self.assertRaises(ValidationError):
            date_in_month(2024, 3, 6, 1)
        with self.assertRaises(ValidationError):
            date_in_month(2024, 3, 1, 7)


class NextOccurrenceTests(SimpleTestCase):
    def test_reference_before_occurrence_stays_in_month(self):
        self.assertEqual(next_occurrence(2, 1, date(2024, 3, 1)), date(2024, 3, 11))

    def test_reference_on_occurrence_day_returns_it(self):
        self.assertEqual(next_occurrence(2, 1, date(2024, 3, 11)), date(2024, 3, 11))

    def test_reference_after_occurrence_moves_to_next_month(self):
        self.assertEqual(next_occurrence(2, 1, date(2024, 3, 12)), date(2024, 4, 8))

    def test_missing_occurrence_resolves_against_next_month(self):
        # No 5th Friday in February 2024; March 2024 has one.
        self.assertEqual(next_occurrence(5, 5, date(2024, 2, 10)), date(2024, 3, 29))

    def test_missing_in_both_months_returns_none(self):
        # Neither February nor March 2024 has a 5th Tuesday.
        self.assertIsNone(next_occurrence(5, 2, date(2024, 2, 1)))
        self.assertEqual(next_occurrence(5, 2, date(2024, 3, 1)), None)
        self.assertEqual(next_occurrence(5, 2, date(2024, 4, 1)), date(2024, 4, 30))

    def test_december_rolls_into_next_year(self):
        self.assertEqual(next_occurrence(1, 0, date(2024, 12, 2)), date(2025, 1, 5))

    def test_datetime_reference_is_accepted(self):
        reference = datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(next_occurrence(2, 1, reference), date(2024, 3, 11))


class ScheduledOccurrenceTests(SimpleTestCase):
    def test_nth_weekday_of_month(self):
        self.assertEqual(nth_weekday_of_month(date(2024, 3, 1)), 1)
        self.assertEqual(nth_weekday_of_month(date(2024, 3, 15)), 3)
        self.assertEqual(nth_weekday_of_month(date(2024, 3, 29)), 5)

    def test_earliest_non_skipped_rule_wins(self):
        rules = [
            MonthSchedule(week_of_month=3, day_of_week=1, time="09:00"),
            MonthSchedule(week_of_month=2, day_of_week=1, time="14:30"),
            MonthSchedule(week_of_month=1, day_of_week=1, time="08:00", is_skipped=True),
        ]
        upcoming = next_scheduled_occurrence(rules, date(2024, 3, 1))
        self.assertEqual(upcoming, datetime(2024, 3, 11, 14, 30, tzinfo=dt_timezone.utc))

    def test_no_rules_means_no_occurrence(self):
        self.assertIsNone(next_scheduled_occurrence([], date(2024, 3, 1)))


class OccurrencesBetweenTests(SimpleTestCase):
    def test_window_spans_months_in_date_order(self):
        late = MonthSchedule(week_of_month=2, day_of_week=1, time="15:00")
        early = MonthSchedule(week_of_month=2, day_of_week=1, time="09:00")
        friday = MonthSchedule(week_of_month=1, day_of_week=5, time="10:00")
        found = occurrences_between([late, early, friday], date(2024, 3, 5), date(2024, 4, 30))
        self.assertEqual(
            [(day, rule.time) for day, rule in found],
            [
                (date(2024, 3, 11), "09:00"),
                (date(2024, 3, 11), "15:00"),
                (date(2024, 4, 5), "10:00"),
                (date(2024, 4, 8), "09:00"),
                (date(2024, 4, 8), "15:00"),
            ],
        )

    def test_skipped_rules_and_missing_days_are_left_out(self):
        rules = [
            MonthSchedule(week_of_month=5, day_of_week=2, time="10:00"),
            MonthSchedule(week_of_month=1, day_of_week=1, time="10:00", is_skipped=True),
        ]
        # Only April has a 5th Tuesday.
        found = occurrences_between(rules, date(2024, 2, 1), date(2024, 4, 30))
        self.assertEqual([day for day, _ in found], [date(2024, 4, 30)])

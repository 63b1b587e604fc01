from datetime import time

from django.test import SimpleTestCase

from booking.services.overlap import intervals_overlap, on_reference_day

from .factories import MONDAY, at


class IntervalOverlapTests(SimpleTestCase):
    def test_overlap_is_symmetric(self):
        cases = [
            (("10:00", "11:00"), ("10:30", "11:30")),
            (("10:00", "11:00"), ("11:00", "12:00")),
            (("09:00", "17:00"), ("10:00", "11:00")),
            (("08:00", "09:00"), ("13:00", "14:00")),
            (("10:00", "11:00"), ("10:00", "11:00")),
        ]
        for a, b in cases:
            a_start, a_end = at(MONDAY, a[0]), at(MONDAY, a[1])
            b_start, b_end = at(MONDAY, b[0]), at(MONDAY, b[1])
            with self.subTest(a=a, b=b):
                self.assertEqual(
                    intervals_overlap(a_start, a_end, b_start, b_end),
                    intervals_overlap(b_start, b_end, a_start, a_end),
                )

    def test_touching_intervals_do_not_overlap(self):
        self.assertFalse(intervals_overlap(
            at(MONDAY, "10:00"), at(MONDAY, "11:00"), at(MONDAY, "11:00"), at(MONDAY, "12:00"),
        ))

    def test_one_minute_overlap_is_detected(self):
        self.assertTrue(intervals_overlap(
            at(MONDAY, "10:00"), at(MONDAY, "11:00"), at(MONDAY, "10:59"), at(MONDAY, "11:30"),
        ))

    def test_contained_interval_is_detected(self):
        self.assertTrue(intervals_overlap(
            at(MONDAY, "09:00"), at(MONDAY, "17:00"), at(MONDAY, "10:00"), at(MONDAY, "11:00"),
        ))
        self.assertTrue(intervals_overlap(
            at(MONDAY, "10:00"), at(MONDAY, "11:00"), at(MONDAY, "09:00"), at(MONDAY, "17:00"),
        ))

    def test_times_of_day_compare_on_reference_day(self):
        self.assertTrue(intervals_overlap(
            on_reference_day(time(9)), on_reference_day(time(12)),
            on_reference_day(time(11)), on_reference_day(time(13)),
        ))
        self.assertEqual(on_reference_day(time(9, 30)).isoformat(), "1970-01-01T09:30:00+00:00")

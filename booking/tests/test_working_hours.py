# booking/tests/test_working_hours.py

import random
from datetime import datetime, time, timedelta

from django.test import SimpleTestCase, TestCase

from booking.services.slot_utils import coerce_date, overlaps
from booking.services.working_hours import WorkingHoursResolver
from configmgr.models import SystemSetting
from staff.models import StaffSchedule

from .helpers import SalonFixtureMixin, at, make_staff


class OverlapTests(SimpleTestCase):
    def test_back_to_back_intervals_do_not_overlap(self):
        base = datetime(2030, 1, 7, 10, 0)
        self.assertFalse(overlaps(base, base + timedelta(hours=1), base + timedelta(hours=1), base + timedelta(hours=2)))

    def test_overlap_matches_minute_sets(self):
        """Half-open overlap agrees with intersecting the minute sets of both intervals."""
        rng = random.Random(1234)
        base = datetime(2030, 1, 7, 0, 0)
        for _ in range(500):
            s1, s2 = rng.randrange(0, 600), rng.randrange(0, 600)
            e1, e2 = s1 + rng.randrange(1, 120), s2 + rng.randrange(1, 120)
            expected = bool(set(range(s1, e1)) & set(range(s2, e2)))
            got = overlaps(
                base + timedelta(minutes=s1),
                base + timedelta(minutes=e1),
                base + timedelta(minutes=s2),
                base + timedelta(minutes=e2),
            )
            self.assertEqual(got, expected, (s1, e1, s2, e2))
            self.assertEqual(got, overlaps(
                base + timedelta(minutes=s2),
                base + timedelta(minutes=e2),
                base + timedelta(minutes=s1),
                base + timedelta(minutes=e1),
            ))

    def test_coerce_date_trims_time_part(self):
        self.assertEqual(coerce_date("2030-01-07T10:00:00").isoformat(), "2030-01-07")
        self.assertEqual(coerce_date("2030-01-07 10:00").isoformat(), "2030-01-07")
        self.assertIsNone(coerce_date("07/01/2030"))


class WorkingHoursResolverTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.resolver = WorkingHoursResolver()

    def test_recurring_schedule_with_break(self):
        hours = self.resolver.resolve(self.stylist, self.monday)
        self.assertTrue(hours.is_working_day)
        self.assertEqual((hours.start_time, hours.end_time), (time(9), time(18)))
        self.assertEqual([(b.start, b.end) for b in hours.breaks], [(time(13), time(14))])
        self.assertEqual(hours.source, "recurring")

    def test_no_schedule_means_not_working(self):
        tuesday = self.monday + timedelta(days=1)
        hours = self.resolver.resolve(self.stylist, tuesday)
        self.assertFalse(hours.is_working_day)
        self.assertIsNone(hours.window())

    def test_override_wins_over_recurring(self):
        StaffSchedule.objects.create(
            staff=self.stylist,
            specific_date=self.monday,
            start_time=time(12),
            end_time=time(16),
        )
        hours = self.resolver.resolve(self.stylist, self.monday)
        self.assertEqual((hours.start_time, hours.end_time), (time(12), time(16)))
        self.assertEqual(hours.breaks, ())
        self.assertEqual(hours.source, "override")

    def test_inactive_override_falls_back_to_recurring(self):
        StaffSchedule.objects.create(
            staff=self.stylist,
            specific_date=self.monday,
            start_time=time(12),
            end_time=time(16),
            is_active=False,
        )
        hours = self.resolver.resolve(self.stylist, self.monday)
        self.assertEqual(hours.source, "recurring")
        self.assertEqual(hours.start_time, time(9))

    def test_inactive_recurring_is_ignored(self):
        self.schedule.is_active = False
        self.schedule.save()
        self.assertFalse(self.resolver.resolve(self.stylist, self.monday).is_working_day)

    def test_default_hours_only_for_staff_without_any_schedule(self):
        SystemSetting.objects.create(key="DEFAULT_WORK_START", value="10:00")
        SystemSetting.objects.create(key="DEFAULT_WORK_END", value="16:00")
        newcomer = make_staff(self.tenant, self.salon, "Newcomer")

        hours = self.resolver.resolve(newcomer, self.monday + timedelta(days=2))
        self.assertTrue(hours.is_working_day)
        self.assertEqual(hours.source, "default")
        self.assertEqual((hours.start_time, hours.end_time), (time(10), time(16)))

        # Maria has a Monday row, so her Tuesday stays off.
        self.assertFalse(self.resolver.resolve(self.stylist, self.monday + timedelta(days=1)).is_working_day)

    def test_fits_checks_window_and_break(self):
        hours = self.resolver.resolve(self.stylist, self.monday)
        self.assertTrue(hours.fits(at(self.monday, 9), at(self.monday, 10)))
        self.assertTrue(hours.fits(at(self.monday, 17), at(self.monday, 18)))
        self.assertTrue(hours.fits(at(self.monday, 12), at(self.monday, 13)))
        self.assertFalse(hours.fits(at(self.monday, 8, 30), at(self.monday, 9, 30)))
        self.assertFalse(hours.fits(at(self.monday, 17, 30), at(self.monday, 18, 30)))
        self.assertFalse(hours.fits(at(self.monday, 12, 30), at(self.monday, 13, 30)))

    def test_window_for(self):
        start, end = self.resolver.window_for(self.stylist, self.monday)
        self.assertEqual((start, end), (at(self.monday, 9), at(self.monday, 18)))

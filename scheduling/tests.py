from datetime import time

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APITestCase

from booking.tests.helpers import MONDAY, make_salon, make_staff, make_user
from scheduling.models import Break, ClosureModification, OperatingSchedule


class RuleModelTests(TestCase):
    def setUp(self):
        self.salon = make_salon(opening=None)

    def test_zero_length_day_is_invalid(self):
        schedule = OperatingSchedule(salon=self.salon, opening_time=time(9), closing_time=time(9))
        with self.assertRaises(ValidationError):
            schedule.clean()

    def test_overnight_schedule(self):
        schedule = OperatingSchedule(salon=self.salon, opening_time=time(22), closing_time=time(2))
        schedule.clean()
        self.assertTrue(schedule.is_overnight)

    def test_hours_the_overnight_convention_cannot_express(self):
        for opening, closing in ((time(22), time(8)), (time(22), time(7)), (time(5), time(14)), (time(0), time(6))):
            with self.subTest(opening=opening, closing=closing):
                schedule = OperatingSchedule(salon=self.salon, opening_time=opening, closing_time=closing)
                with self.assertRaises(ValidationError):
                    schedule.clean()

        OperatingSchedule(salon=self.salon, opening_time=time(20), closing_time=time(6, 59)).clean()
        OperatingSchedule(salon=self.salon, opening_time=time(7), closing_time=time(0)).clean()

    def test_interval_closure_needs_ordered_times(self):
        closure = ClosureModification(
            salon=self.salon, kind=ClosureModification.ONCE, date=MONDAY,
            closure_type=ClosureModification.INTERVAL, interval_start=time(13), interval_end=time(12),
        )
        with self.assertRaises(ValidationError):
            closure.clean()

        # 23:00-01:00 is ordered under the overnight convention
        closure.interval_start, closure.interval_end = time(23), time(1)
        closure.clean()

    def test_full_day_closure_carries_no_times_or_staff(self):
        (anna,) = make_staff(self.salon, "Anna")
        closure = ClosureModification(
            salon=self.salon, kind=ClosureModification.ONCE, date=MONDAY,
            closure_type=ClosureModification.FULL_DAY, interval_start=time(9),
        )
        with self.assertRaises(ValidationError):
            closure.clean()

        closure.interval_start = None
        closure.staff = anna
        with self.assertRaises(ValidationError):
            closure.clean()

    def test_recurrence_shapes(self):
        once = ClosureModification(kind=ClosureModification.ONCE, date=MONDAY)
        weekly = ClosureModification(kind=ClosureModification.RECURRING, weekday_index=1)
        self.assertTrue(once.recurrence.matches(MONDAY, 1))
        self.assertTrue(weekly.recurrence.matches(MONDAY, 1))
        self.assertFalse(weekly.recurrence.matches(MONDAY, 2))

        with self.assertRaises(ValidationError):
            ClosureModification(
                salon=self.salon, kind=ClosureModification.RECURRING, weekday_index=7,
                closure_type=ClosureModification.FULL_DAY,
            ).clean()

    def test_break_scope(self):
        (anna,) = make_staff(self.salon, "Anna")
        everyone = Break(salon=self.salon, start_time=time(13), end_time=time(14))
        personal = Break(salon=self.salon, staff=anna, start_time=time(13), end_time=time(14))
        self.assertTrue(everyone.scope.applies_to(None))
        self.assertTrue(everyone.scope.applies_to(anna.pk))
        self.assertFalse(personal.scope.applies_to(None))
        self.assertTrue(personal.scope.applies_to(anna.pk))

        with self.assertRaises(ValidationError):
            Break(salon=self.salon, start_time=time(14), end_time=time(13)).clean()


class SchedulingApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.salon = make_salon(owner=self.owner, opening=None)
        self.url = f"/api/scheduling/schedule/{self.salon.pk}/"

    def test_owner_upserts_schedule(self):
        self.client.force_authenticate(self.owner)
        resp = self.client.put(
            self.url, {"opening_time": "09:00", "closing_time": "18:00", "closed_weekdays": [6]}, format="json"
        )
        self.assertEqual(resp.status_code, 201)

        resp = self.client.put(
            self.url, {"opening_time": "22:00", "closing_time": "02:00", "closed_weekdays": []}, format="json"
        )
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["is_overnight"])
        self.assertEqual(OperatingSchedule.objects.filter(salon=self.salon).count(), 1)

        self.client.force_authenticate(None)
        resp = self.client.get(self.url)
        self.assertEqual(resp.data["opening_time"], "22:00")

    def test_invalid_schedules(self):
        self.client.force_authenticate(self.owner)
        same = {"opening_time": "09:00", "closing_time": "09:00", "closed_weekdays": []}
        self.assertEqual(self.client.put(self.url, same, format="json").status_code, 400)
        bad_day = {"opening_time": "09:00", "closing_time": "18:00", "closed_weekdays": [7]}
        self.assertEqual(self.client.put(self.url, bad_day, format="json").status_code, 400)
        past_dawn = {"opening_time": "22:00", "closing_time": "08:00", "closed_weekdays": []}
        self.assertEqual(self.client.put(self.url, past_dawn, format="json").status_code, 400)
        self.assertFalse(OperatingSchedule.objects.filter(salon=self.salon).exists())

    def test_only_owner_sets_schedule(self):
        self.client.force_authenticate(make_user("stranger"))
        resp = self.client.put(self.url, {"opening_time": "09:00", "closing_time": "18:00"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_closures(self):
        (anna,) = make_staff(self.salon, "Anna")
        self.client.force_authenticate(self.owner)

        resp = self.client.post("/api/scheduling/closures/", {
            "salon": self.salon.pk, "kind": "once", "date": "2030-01-07", "closure_type": "full_day", "staff": anna.pk,
        }, format="json")
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post("/api/scheduling/closures/", {
            "salon": self.salon.pk, "kind": "recurring", "weekday_index": 1, "closure_type": "interval",
            "interval_start": "12:00", "interval_end": "13:00", "staff": anna.pk,
        }, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["reason"], "Manual block")

        resp = self.client.get("/api/scheduling/closures/", {"salon": self.salon.pk})
        self.assertEqual(len(resp.data), 1)

    def test_break_staff_must_belong_to_salon(self):
        other = make_salon(name="Other", opening=None)
        (stranger,) = make_staff(other, "Stranger")
        self.client.force_authenticate(self.owner)

        resp = self.client.post("/api/scheduling/breaks/", {
            "salon": self.salon.pk, "staff": stranger.pk, "start_time": "13:00", "end_time": "13:30",
        }, format="json")
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post("/api/scheduling/breaks/", {
            "salon": self.salon.pk, "start_time": "13:00", "end_time": "13:30", "reason": "Lunch",
        }, format="json")
        self.assertEqual(resp.status_code, 201)

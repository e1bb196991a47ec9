# booking/tests/test_booking_manager.py

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from booking.exceptions import (
    AlreadyFinalized,
    BookingValidationError,
    NoStaffAvailable,
    NotAllowed,
    SlotUnavailable,
)
from booking.models import Appointment, ClientProfile
from booking.services.booking_manager import BookingManager
from booking.services.staff_allocator import StaffAllocator
from booking.signals import booking_cancelled, booking_created, status_updated

from .helpers import at, make_appointment, make_salon, make_service, make_staff, make_user

NOW = at(7, 0)


def lines(*services):
    return [{"service": service, "price": None} for service in services]


class BookTests(TestCase):
    def setUp(self):
        self.manager = BookingManager()
        self.user = make_user()
        self.salon = make_salon()
        self.cut = make_service(self.salon, "Cut", minutes=30, price="100.00")
        self.wash = make_service(self.salon, "Wash", minutes=15, price="40.00")
        self.anna, self.ben = make_staff(self.salon, "Anna", "Ben")

    def book(self, start, end, staff=None, services=None, **kwargs):
        return self.manager.book(
            salon=self.salon,
            user=self.user,
            staff=staff,
            service_lines=lines(self.cut) if services is None else services,
            start_time=start,
            end_time=end,
            now=kwargs.pop("now", NOW),
            **kwargs,
        )

    def test_books_a_scheduled_appointment_with_lines(self):
        appt = self.book(at(10), at(10, 45), staff=self.anna, services=lines(self.cut, self.wash))

        self.assertEqual(appt.status, Appointment.SCHEDULED)
        self.assertEqual(appt.staff, self.anna)
        self.assertEqual(appt.service, self.cut)
        self.assertEqual(appt.price, Decimal("140.00"))
        self.assertEqual(
            sorted(appt.lines.values_list("service__name", flat=True)),
            ["Cut", "Wash"],
        )

    def test_line_prices_override_catalog(self):
        services = [{"service": self.cut, "price": Decimal("80.00")}, {"service": self.wash, "price": None}]
        appt = self.book(at(10), at(10, 45), services=services, total_price=Decimal("120.00"))
        self.assertEqual(appt.price, Decimal("120.00"))

    def test_total_price_must_match_lines(self):
        with self.assertRaises(BookingValidationError):
            self.book(at(10), at(10, 30), total_price=Decimal("99.00"))
        self.assertFalse(Appointment.objects.exists())

    def test_duration_mismatch_writes_nothing(self):
        with self.assertRaises(SlotUnavailable) as ctx:
            self.book(at(10), at(10, 30), services=lines(self.cut, self.wash))
        self.assertEqual(ctx.exception.code, "duration_mismatch")
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertFalse(Appointment.objects.exists())

    def test_rejects_bad_service_selection(self):
        other = make_salon(name="Other")
        foreign = make_service(other, "Foreign")
        hidden = make_service(self.salon, "Hidden", active=False)

        for services in (lines(foreign), lines(hidden), lines(self.cut, self.cut), []):
            with self.subTest(services=services):
                with self.assertRaises(BookingValidationError):
                    self.book(at(10), at(10, 30), services=services)

    def test_rejects_staff_from_another_salon(self):
        other = make_salon(name="Other")
        (stranger,) = make_staff(other, "Stranger")
        with self.assertRaises(BookingValidationError):
            self.book(at(10), at(10, 30), staff=stranger)

    def test_any_staff_is_assigned_in_roster_order(self):
        first = self.book(at(10), at(10, 30))
        second = self.book(at(10), at(10, 30))
        self.assertEqual(first.staff, self.anna)
        self.assertEqual(second.staff, self.ben)

        with self.assertRaises(SlotUnavailable) as ctx:
            self.book(at(10), at(10, 30))
        self.assertEqual(ctx.exception.code, "no_capacity")
        self.assertEqual(Appointment.objects.count(), 2)

    def test_capacity_with_an_unassigned_booking(self):
        make_appointment(self.salon, self.user, self.cut, at(10), at(10, 30))

        accepted = self.book(at(10), at(10, 30))
        self.assertEqual(accepted.staff, self.anna)

        with self.assertRaises(SlotUnavailable) as ctx:
            self.book(at(10), at(10, 30))
        self.assertEqual(ctx.exception.code, "no_capacity")

    def test_allocator_finding_nobody_rolls_back(self):
        with mock.patch.object(StaffAllocator, "pick_free_staff", return_value=None):
            with self.assertRaises(NoStaffAvailable):
                self.book(at(10), at(10, 30))
        self.assertFalse(Appointment.objects.exists())

    def test_salon_without_roster_keeps_staff_empty(self):
        solo = make_salon(name="Solo")
        service = make_service(solo, minutes=30)
        appt = self.manager.book(solo, self.user, None, lines(service), at(10), at(10, 30), now=NOW)
        self.assertIsNone(appt.staff)

    def test_no_two_scheduled_appointments_overlap_for_one_staff(self):
        self.book(at(10), at(10, 30), staff=self.anna)
        for start in (at(10), at(10, 15), at(9, 45)):
            with self.subTest(start=start):
                with self.assertRaises(SlotUnavailable):
                    self.book(start, start + timedelta(minutes=30), staff=self.anna)

        booked = list(Appointment.objects.filter(staff=self.anna, status=Appointment.SCHEDULED))
        for a in booked:
            for b in booked:
                if a.pk != b.pk:
                    self.assertFalse(a.start_time < b.end_time and a.end_time > b.start_time)

    def test_booking_created_event_after_commit(self):
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs)

        booking_created.connect(handler)
        self.addCleanup(booking_created.disconnect, handler)

        with self.captureOnCommitCallbacks(execute=True):
            appt = self.book(at(10), at(10, 30))

        self.assertEqual(len(received), 1)
        event = received[0]
        self.assertEqual(event["appointment_id"], appt.pk)
        self.assertEqual(event["salon_id"], self.salon.pk)
        self.assertEqual(event["staff_name"], "Anna")
        self.assertEqual(event["services_count"], 1)
        self.assertTrue(event["push"])

    def test_future_day_booking_is_not_pushed(self):
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs)

        booking_created.connect(handler)
        self.addCleanup(booking_created.disconnect, handler)

        with self.captureOnCommitCallbacks(execute=True):
            self.book(at(10), at(10, 30), now=NOW - timedelta(days=1))
        self.assertFalse(received[0]["push"])

    def test_failing_receiver_does_not_undo_the_booking(self):
        def broken(sender, **kwargs):
            raise RuntimeError("socket gone")

        booking_created.connect(broken)
        self.addCleanup(booking_created.disconnect, broken)

        with self.captureOnCommitCallbacks(execute=True):
            appt = self.book(at(10), at(10, 30))
        self.assertTrue(Appointment.objects.filter(pk=appt.pk, status=Appointment.SCHEDULED).exists())


class CancelTests(TestCase):
    def setUp(self):
        self.manager = BookingManager()
        self.user = make_user()
        self.salon = make_salon()
        self.cut = make_service(self.salon, minutes=30)
        self.appt = make_appointment(self.salon, self.user, self.cut, at(12), at(12, 30))

    def strikes(self):
        profile = ClientProfile.objects.filter(user=self.user).first()
        return profile.strikes if profile else 0

    def test_late_cancellation_issues_a_strike(self):
        now = self.appt.start_time - timedelta(hours=2, minutes=59)
        result = self.manager.cancel(self.appt, self.user, now=now)

        self.assertTrue(result.cancelled)
        self.assertTrue(result.strike_issued)
        self.assertEqual(result.new_strike_count, 1)
        self.assertEqual(self.strikes(), 1)
        self.appt.refresh_from_db()
        self.assertEqual(self.appt.status, Appointment.CANCELLED)
        self.assertEqual(self.appt.cancellation_time, now)

    def test_cancellation_with_notice_is_free(self):
        now = self.appt.start_time - timedelta(hours=3, minutes=1)
        result = self.manager.cancel(self.appt, self.user, now=now)
        self.assertTrue(result.cancelled)
        self.assertFalse(result.strike_issued)
        self.assertIsNone(result.new_strike_count)
        self.assertEqual(self.strikes(), 0)

    def test_exactly_three_hours_is_not_late(self):
        result = self.manager.cancel(self.appt, self.user, now=self.appt.start_time - timedelta(hours=3))
        self.assertFalse(result.strike_issued)

    def test_strikes_accumulate(self):
        ClientProfile.objects.create(user=self.user, strikes=1)
        result = self.manager.cancel(self.appt, self.user, now=self.appt.start_time - timedelta(hours=1))
        self.assertEqual(result.new_strike_count, 2)

    def test_only_the_owner_can_cancel(self):
        stranger = make_user("stranger")
        with self.assertRaises(NotAllowed):
            self.manager.cancel(self.appt, stranger, now=NOW)
        self.appt.refresh_from_db()
        self.assertEqual(self.appt.status, Appointment.SCHEDULED)

    def test_terminal_status_always_rejects(self):
        for status in (Appointment.COMPLETED, Appointment.CANCELLED, Appointment.ABSENT):
            Appointment.objects.filter(pk=self.appt.pk).update(status=status)
            with self.subTest(status=status):
                with self.assertRaises(AlreadyFinalized) as ctx:
                    self.manager.cancel(self.appt, self.user, now=NOW)
                self.assertEqual(ctx.exception.current_status, status)
                self.appt.refresh_from_db()
                self.assertEqual(self.appt.status, status)
                self.assertIsNone(self.appt.cancellation_time)
        self.assertEqual(self.strikes(), 0)

    def test_booking_cancelled_event(self):
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs)

        booking_cancelled.connect(handler)
        self.addCleanup(booking_cancelled.disconnect, handler)

        with self.captureOnCommitCallbacks(execute=True):
            self.manager.cancel(self.appt, self.user, now=self.appt.start_time - timedelta(hours=1))

        self.assertEqual(received[0]["appointment_id"], self.appt.pk)
        self.assertTrue(received[0]["late"])
        self.assertEqual(received[0]["strikes"], 1)
        self.assertTrue(received[0]["push"])


class StatusUpdateTests(TestCase):
    def setUp(self):
        self.manager = BookingManager()
        self.user = make_user()
        self.salon = make_salon()
        self.cut = make_service(self.salon, minutes=30)
        self.appt = make_appointment(self.salon, self.user, self.cut, at(12), at(12, 30))

    def test_completed(self):
        result = self.manager.update_status(self.appt, Appointment.COMPLETED)
        self.assertEqual(result.appointment.status, Appointment.COMPLETED)
        self.assertFalse(result.strike_issued)

    def test_absent_issues_a_strike(self):
        result = self.manager.update_status(self.appt, Appointment.ABSENT)
        self.assertTrue(result.strike_issued)
        self.assertEqual(result.new_strike_count, 1)
        self.assertEqual(ClientProfile.objects.get(user=self.user).strikes, 1)

    def test_salon_cancellation_sets_cancellation_time(self):
        self.manager.update_status(self.appt, Appointment.CANCELLED)
        self.appt.refresh_from_db()
        self.assertIsNotNone(self.appt.cancellation_time)

    def test_never_back_to_scheduled(self):
        with self.assertRaises(BookingValidationError):
            self.manager.update_status(self.appt, Appointment.SCHEDULED)

    def test_second_transition_names_current_status(self):
        self.manager.update_status(self.appt, Appointment.COMPLETED)
        with self.assertRaises(AlreadyFinalized) as ctx:
            self.manager.update_status(self.appt, Appointment.ABSENT)
        self.assertIn("Completed", str(ctx.exception))
        self.appt.refresh_from_db()
        self.assertEqual(self.appt.status, Appointment.COMPLETED)
        self.assertFalse(ClientProfile.objects.filter(user=self.user).exists())

    def test_status_updated_event(self):
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs)

        status_updated.connect(handler)
        self.addCleanup(status_updated.disconnect, handler)

        with self.captureOnCommitCallbacks(execute=True):
            self.manager.update_status(self.appt, Appointment.COMPLETED)
        self.assertEqual(received[0]["status"], Appointment.COMPLETED)
        self.assertEqual(received[0]["user_id"], self.user.pk)


class EndToEndTests(TestCase):
    """Book, collide, then cancel late."""

    def test_book_conflict_then_late_cancel(self):
        manager = BookingManager()
        user = make_user()
        salon = make_salon(closed=())
        service = make_service(salon, minutes=30)
        (staff_a,) = make_staff(salon, "A")
        ClientProfile.objects.create(user=user, strikes=1)

        appt = manager.book(salon, user, staff_a, lines(service), at(10), at(10, 30), now=NOW)
        self.assertEqual(appt.status, Appointment.SCHEDULED)

        with self.assertRaises(SlotUnavailable) as ctx:
            manager.book(salon, user, staff_a, lines(service), at(10, 15), at(10, 45), now=NOW)
        self.assertEqual(ctx.exception.code, "staff_unavailable")

        result = manager.cancel(appt, user, now=appt.start_time - timedelta(hours=1))
        self.assertTrue(result.cancelled)
        self.assertTrue(result.strike_issued)
        self.assertEqual(result.new_strike_count, 2)

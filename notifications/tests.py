from datetime import timedelta
from smtplib import SMTPException
from unittest import mock

from django.core import mail
from django.test import TestCase
from rest_framework.test import APITestCase

from booking.models import Appointment
from booking.services.booking_manager import BookingManager
from booking.tests.helpers import at, make_appointment, make_salon, make_service, make_user
from notifications.models import Notification

NOW = at(7, 0)


class NotificationTests(TestCase):
    def setUp(self):
        self.manager = BookingManager()
        self.user = make_user()
        self.salon = make_salon()
        self.cut = make_service(self.salon, minutes=30)

    def book(self, now=NOW):
        with self.captureOnCommitCallbacks(execute=True):
            return self.manager.book(
                self.salon, self.user, None, [{"service": self.cut, "price": None}], at(10), at(10, 30), now=now
            )

    def test_same_day_booking_is_pushed(self):
        appt = self.book()

        live = Notification.objects.get(salon=self.salon, channel=Notification.LIVE)
        self.assertEqual(live.event_type, "booking_created")
        self.assertEqual(live.payload["appointment_id"], appt.pk)

        push = Notification.objects.get(salon=self.salon, channel=Notification.PUSH)
        self.assertTrue(push.sent)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["salon@example.com"])

    def test_future_booking_only_reaches_the_live_feed(self):
        self.book(now=NOW - timedelta(days=2))
        self.assertEqual(Notification.objects.filter(channel=Notification.PUSH).count(), 0)
        self.assertEqual(Notification.objects.filter(channel=Notification.LIVE).count(), 1)
        self.assertEqual(len(mail.outbox), 0)

    def test_salon_without_push_audience(self):
        self.salon.email = ""
        self.salon.save()
        self.book()
        self.assertFalse(Notification.objects.filter(channel=Notification.PUSH).exists())
        self.assertEqual(len(mail.outbox), 0)

    def test_delivery_failure_is_recorded_not_raised(self):
        with mock.patch("notifications.signals.send_mail", side_effect=SMTPException("down")):
            appt = self.book()

        self.assertTrue(Appointment.objects.filter(pk=appt.pk).exists())
        push = Notification.objects.get(channel=Notification.PUSH)
        self.assertFalse(push.sent)

    def test_late_cancellation_is_labelled(self):
        appt = make_appointment(self.salon, self.user, self.cut, at(10), at(10, 30))
        with self.captureOnCommitCallbacks(execute=True):
            self.manager.cancel(appt, self.user, now=at(9))

        live = Notification.objects.get(event_type="booking_cancelled", channel=Notification.LIVE)
        self.assertIn("Late cancellation", live.message)
        self.assertTrue(live.payload["late"])
        self.assertEqual(len(mail.outbox), 1)

    def test_status_update_reaches_salon_and_customer(self):
        appt = make_appointment(self.salon, self.user, self.cut, at(10), at(10, 30))
        with self.captureOnCommitCallbacks(execute=True):
            self.manager.update_status(appt, Appointment.COMPLETED)

        self.assertTrue(Notification.objects.filter(salon=self.salon, event_type="status_updated").exists())
        self.assertTrue(Notification.objects.filter(user=self.user, event_type="status_updated").exists())


class NotificationFeedApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.salon = make_salon(owner=self.owner)
        Notification.objects.create(salon=self.salon, event_type="booking_created", message="New booking", sent=True)

    def test_owner_reads_salon_feed(self):
        self.client.force_authenticate(self.owner)
        resp = self.client.get("/api/notifications/", {"salon": self.salon.pk})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 1)

    def test_others_see_nothing(self):
        self.client.force_authenticate(make_user("stranger"))
        resp = self.client.get("/api/notifications/", {"salon": self.salon.pk})
        self.assertEqual(resp.data, [])

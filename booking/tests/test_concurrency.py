# booking/tests/test_concurrency.py

import threading

from django.db import connection
from django.test import TransactionTestCase
from rest_framework.test import APIClient

from booking.models import Appointment

from .helpers import make_salon, make_service, make_staff, make_user


class ConcurrentBookingTests(TransactionTestCase):
    """Two customers race for the last free specialist in the same slot."""

    def setUp(self):
        self.salon = make_salon()
        self.cut = make_service(self.salon, minutes=30)
        make_staff(self.salon, "Anna")
        self.customers = [make_user("first"), make_user("second")]

    def test_second_simultaneous_booking_is_rejected_not_failed(self):
        start = threading.Barrier(len(self.customers))
        results = []

        def attempt(user):
            client = APIClient()
            client.force_authenticate(user)
            try:
                start.wait()
                resp = client.post("/api/appointments/", {
                    "salon": self.salon.pk,
                    "staff": 0,
                    "services": [{"id": self.cut.pk}],
                    "start_time": "2030-01-07T10:00:00",
                    "end_time": "2030-01-07T10:30:00",
                }, format="json")
                results.append((resp.status_code, resp.data.get("code")))
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt, args=(user,)) for user in self.customers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(code for code, _ in results), [201, 409])
        self.assertIn((409, "no_capacity"), results)
        self.assertEqual(Appointment.objects.filter(status=Appointment.SCHEDULED).count(), 1)

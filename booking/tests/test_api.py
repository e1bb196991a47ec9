# booking/tests/test_api.py

from decimal import Decimal

from rest_framework.test import APITestCase

from booking.models import Appointment, ClientProfile

from .helpers import MONDAY, make_appointment, make_salon, make_service, make_staff, make_user, at


class BookingApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.customer = make_user("customer")
        self.salon = make_salon(owner=self.owner)
        self.cut = make_service(self.salon, "Cut", minutes=30, price="100.00")
        self.color = make_service(self.salon, "Color", minutes=60, price="250.00")
        self.anna, self.ben = make_staff(self.salon, "Anna", "Ben")

    def book(self, **overrides):
        payload = {
            "salon": self.salon.pk,
            "staff": self.anna.pk,
            "services": [{"id": self.cut.pk}],
            "start_time": "2030-01-07T10:00:00",
            "end_time": "2030-01-07T10:30:00",
        }
        payload.update(overrides)
        return self.client.post("/api/appointments/", payload, format="json")

    def test_book_returns_the_appointment(self):
        self.client.force_authenticate(self.customer)
        resp = self.book()

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["status"], Appointment.SCHEDULED)
        self.assertEqual(resp.data["staff_name"], "Anna")
        self.assertEqual(resp.data["services_count"], 1)
        appt = Appointment.objects.get(pk=resp.data["appointment_id"])
        self.assertEqual(appt.user, self.customer)

    def test_book_multiple_services_with_any_staff(self):
        self.client.force_authenticate(self.customer)
        resp = self.book(
            staff=0,
            services=[{"id": self.cut.pk}, {"id": self.color.pk, "price": "200.00"}],
            end_time="2030-01-07T11:30:00",
            price="300.00",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Decimal(resp.data["price"]), Decimal("300.00"))
        self.assertEqual(resp.data["services_names"], "Cut + Color")
        self.assertEqual(resp.data["staff_name"], "Anna")

    def test_legacy_single_service_form(self):
        self.client.force_authenticate(self.customer)
        resp = self.book(services=[], service=self.cut.pk, price="100.00", staff=None)
        self.assertEqual(resp.status_code, 201)

    def test_conflict_is_reported_with_its_reason(self):
        make_appointment(self.salon, self.owner, self.cut, at(10), at(10, 30), staff=self.anna)
        self.client.force_authenticate(self.customer)

        resp = self.book(start_time="2030-01-07T10:15:00", end_time="2030-01-07T10:45:00")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "staff_unavailable")

    def test_duration_mismatch(self):
        self.client.force_authenticate(self.customer)
        resp = self.book(end_time="2030-01-07T10:45:00")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "duration_mismatch")

    def test_bad_range_and_unknown_staff_are_validation_errors(self):
        self.client.force_authenticate(self.customer)
        self.assertEqual(self.book(end_time="2030-01-07T09:00:00").status_code, 400)
        self.assertEqual(self.book(staff=999999).status_code, 400)
        self.assertEqual(self.book(services=[]).status_code, 400)

    def test_booking_requires_login(self):
        resp = self.book()
        self.assertIn(resp.status_code, (401, 403))
        self.assertFalse(Appointment.objects.exists())


class AppointmentActionApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.customer = make_user("customer")
        self.salon = make_salon(owner=self.owner)
        self.cut = make_service(self.salon, minutes=30)
        self.appt = make_appointment(self.salon, self.customer, self.cut, at(10), at(10, 30))

    def test_customer_cancels(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.post(f"/api/appointments/{self.appt.pk}/cancel/")

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["cancelled"])
        self.assertFalse(resp.data["strike_issued"])

        again = self.client.post(f"/api/appointments/{self.appt.pk}/cancel/")
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.data["code"], "already_finalized")

    def test_someone_else_cannot_cancel(self):
        self.client.force_authenticate(make_user("stranger"))
        resp = self.client.post(f"/api/appointments/{self.appt.pk}/cancel/")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data["code"], "not_allowed")

    def test_owner_marks_absent(self):
        self.client.force_authenticate(self.owner)
        resp = self.client.post(f"/api/appointments/{self.appt.pk}/status/", {"status": "Absent"}, format="json")

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["ok"])
        self.assertEqual(resp.data["new_strike_count"], 1)
        self.assertEqual(ClientProfile.objects.get(user=self.customer).strikes, 1)

    def test_status_rejects_unknown_values_and_customers(self):
        self.client.force_authenticate(self.owner)
        resp = self.client.post(f"/api/appointments/{self.appt.pk}/status/", {"status": "Scheduled"}, format="json")
        self.assertEqual(resp.status_code, 400)

        self.client.force_authenticate(self.customer)
        resp = self.client.post(f"/api/appointments/{self.appt.pk}/status/", {"status": "Completed"}, format="json")
        self.assertEqual(resp.status_code, 403)

    def test_listing_filters(self):
        make_appointment(self.salon, self.customer, self.cut, at(11), at(11, 30), status=Appointment.COMPLETED)

        self.client.force_authenticate(self.customer)
        resp = self.client.get("/api/appointments/", {"filter": "upcoming"})
        self.assertEqual([row["id"] for row in resp.data], [self.appt.pk])

        self.client.force_authenticate(self.owner)
        resp = self.client.get("/api/appointments/", {"salon": self.salon.pk, "filter": "completed"})
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]["status"], Appointment.COMPLETED)

        resp = self.client.get("/api/appointments/", {"salon": self.salon.pk, "filter": "bogus"})
        self.assertEqual(resp.status_code, 400)

    def test_salon_listing_is_owner_only(self):
        self.client.force_authenticate(self.customer)
        resp = self.client.get("/api/appointments/", {"salon": self.salon.pk})
        self.assertEqual(resp.data, [])


class PublicApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.salon = make_salon(owner=self.owner)
        self.cut = make_service(self.salon, minutes=60)

    def test_availability(self):
        resp = self.client.get(
            "/api/appointments/availability/",
            {"salon": self.salon.pk, "date": MONDAY.isoformat(), "services": str(self.cut.pk)},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["duration_minutes"], 60)
        self.assertEqual(resp.data["slots"][0]["start_time"], "2030-01-07T09:00:00")
        self.assertEqual(resp.data["slots"][-1]["start_time"], "2030-01-07T17:00:00")

    def test_availability_validates_its_query(self):
        resp = self.client.get("/api/appointments/availability/", {"salon": self.salon.pk, "date": "soon"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(
            "/api/appointments/availability/",
            {"salon": self.salon.pk, "date": "2030-02-30", "services": str(self.cut.pk)},
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(
            "/api/appointments/availability/",
            {"salon": self.salon.pk, "date": "2030-01-07", "services": "999999"},
        )
        self.assertEqual(resp.status_code, 400)

    def test_salon_status(self):
        resp = self.client.get(f"/api/salons/{self.salon.pk}/status/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(resp.data["status"], ("open", "closing_soon", "opening_soon", "closed"))

    def test_only_owner_edits_catalog(self):
        stranger = make_user("stranger")
        self.client.force_authenticate(stranger)
        resp = self.client.patch(f"/api/services/{self.cut.pk}/", {"price": "1.00"}, format="json")
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.owner)
        resp = self.client.patch(f"/api/services/{self.cut.pk}/", {"price": "120.00"}, format="json")
        self.assertEqual(resp.status_code, 200)

    def test_owner_adds_staff(self):
        self.client.force_authenticate(make_user("stranger"))
        resp = self.client.post("/api/staff/", {"salon": self.salon.pk, "name": "Dana"}, format="json")
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.owner)
        resp = self.client.post("/api/staff/", {"salon": self.salon.pk, "name": "Dana"}, format="json")
        self.assertEqual(resp.status_code, 201)
        resp = self.client.get("/api/staff/", {"salon": self.salon.pk})
        self.assertEqual([row["name"] for row in resp.data], ["Dana"])

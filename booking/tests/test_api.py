# booking/tests/test_api.py

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from booking.models import Appointment, AppointmentStatus, ClientProfile

from .helpers import SalonFixtureMixin, at, book, make_business, make_staff, weekly


class AppointmentApiTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def payload(self, hour=10, minute=0):
        return {
            "salon": self.salon.pk,
            "service": self.service.pk,
            "staff": self.stylist.pk,
            "customer": self.customer.pk,
            "start_time": at(self.monday, hour, minute).isoformat(),
            "customer_notes": "first time here",
        }

    def test_public_booking_then_conflict(self):
        resp = self.client.post("/api/appointments/", self.payload(), format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["status"], "PENDING")
        self.assertEqual(resp.data["service_name"], "Haircut")
        self.assertEqual(resp.data["total_price"], "40.00")

        resp = self.client.post("/api/appointments/", self.payload(10, 30), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "slot_unavailable")
        self.assertIn("start_time", resp.data)
        self.assertEqual(Appointment.objects.count(), 1)

    def test_bad_payloads(self):
        data = self.payload()
        data["start_time"] = "tomorrow"
        self.assertEqual(self.client.post("/api/appointments/", data, format="json").status_code, 400)

        data = self.payload()
        del data["customer"]
        resp = self.client.post("/api/appointments/", data, format="json")
        self.assertEqual(resp.status_code, 400)

        data = self.payload(12, 30)  # runs into the lunch break
        resp = self.client.post("/api/appointments/", data, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "outside_working_hours")

        data = self.payload()
        data["staff"] = 999999
        self.assertEqual(self.client.post("/api/appointments/", data, format="json").status_code, 404)

    def test_logged_in_client_books_for_themselves(self):
        user = User.objects.create_user(username="ann", password="pass12345")
        self.customer.user = user
        self.customer.save()
        self.client.force_authenticate(user)
        data = self.payload()
        del data["customer"]
        resp = self.client.post("/api/appointments/", data, format="json")
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["customer"], self.customer.pk)

    def test_listing_is_staff_only_and_filtered(self):
        book(self.stylist, self.service, self.customer, at(self.monday, 10))
        book(self.stylist, self.service, self.customer, at(self.monday, 15), status=AppointmentStatus.CANCELLED)

        resp = self.client.get("/api/appointments/", {"staff": self.stylist.pk})
        self.assertIn(resp.status_code, (401, 403))

        self.client.force_authenticate(self.stylist_user)
        resp = self.client.get("/api/appointments/", {"staff": self.stylist.pk})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get("/api/appointments/", {"salon": self.salon.pk, "status": "CANCELLED"})
        self.assertEqual([a["status"] for a in resp.data], ["CANCELLED"])

        resp = self.client.get(
            "/api/appointments/",
            {"staff": self.stylist.pk, "start": self.monday.isoformat(), "end": at(self.monday, 12).isoformat()},
        )
        self.assertEqual(len(resp.data), 1)

        self.assertEqual(self.client.get("/api/appointments/").status_code, 400)

    def test_status_changes(self):
        appt = book(self.stylist, self.service, self.customer, at(self.monday, 10), status=AppointmentStatus.PENDING)
        self.client.force_authenticate(self.manager_user)

        resp = self.client.post(f"/api/appointments/{appt.pk}/status/", {"status": "CONFIRMED"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["status"], "CONFIRMED")

        resp = self.client.post(f"/api/appointments/{appt.pk}/status/", {"status": "COMPLETED"}, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "invalid_transition")

        resp = self.client.post(f"/api/appointments/{appt.pk}/status/", {"status": "DONE"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_other_tenant_staff_sees_not_found(self):
        appt = book(self.stylist, self.service, self.customer, at(self.monday, 10))
        other_tenant, other_salon, _ = make_business("other")
        outsider_user = User.objects.create_user(username="outsider", password="pass12345")
        make_staff(other_tenant, other_salon, "Outsider", role="OWNER", user=outsider_user)
        self.client.force_authenticate(outsider_user)
        resp = self.client.post(f"/api/appointments/{appt.pk}/status/", {"status": "CANCELLED"}, format="json")
        self.assertEqual(resp.status_code, 404)

    def test_reschedule(self):
        appt = book(self.stylist, self.service, self.customer, at(self.monday, 10))
        self.client.force_authenticate(self.stylist_user)
        resp = self.client.post(
            f"/api/appointments/{appt.pk}/reschedule/",
            {"start_time": at(self.monday, 16).isoformat()},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["status"], "PENDING")
        appt.refresh_from_db()
        self.assertEqual(appt.start_time, at(self.monday, 16))

    def test_customer_cancels_own_appointment_only(self):
        appt = book(self.stylist, self.service, self.customer, at(self.monday, 10))
        owner = User.objects.create_user(username="ann", password="pass12345")
        self.customer.user = owner
        self.customer.save()
        stranger = User.objects.create_user(username="bob", password="pass12345")
        ClientProfile.objects.create(user=stranger, name="Bob", email="bob@example.com", phone="5550000000")

        self.client.force_authenticate(stranger)
        resp = self.client.post(f"/api/appointments/{appt.pk}/cancel/", {"reason": "x"}, format="json")
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(owner)
        resp = self.client.post(f"/api/appointments/{appt.pk}/cancel/", {"reason": "can't make it"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], "CANCELLED")
        self.assertEqual(resp.data["cancellation_reason"], "can't make it")

        resp = self.client.post(f"/api/appointments/{appt.pk}/cancel/", {}, format="json")
        self.assertEqual(resp.status_code, 409)


class AvailabilityApiTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def test_slots_by_duration_or_service(self):
        book(self.stylist, self.service, self.customer, at(self.monday, 10))
        resp = self.client.get(
            "/api/availability/slots/", {"staff": self.stylist.pk, "date": self.monday.isoformat(), "duration": 60}
        )
        self.assertEqual(resp.status_code, 200)
        got = [s["start_time"] for s in resp.data["slots"]]
        self.assertEqual(got[:2], ["09:00", "11:00"])

        resp = self.client.get(
            "/api/availability/slots/",
            {"staff": self.stylist.pk, "date": f"{self.monday.isoformat()}T00:00:00", "service": self.service.pk},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["start_time"] for s in resp.data["slots"]], got)

    def test_slots_input_errors(self):
        resp = self.client.get("/api/availability/slots/", {"staff": self.stylist.pk, "duration": 60})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "invalid")
        resp = self.client.get(
            "/api/availability/slots/", {"staff": self.stylist.pk, "date": "01/02/2030", "duration": 60}
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(
            "/api/availability/slots/", {"staff": self.stylist.pk, "date": self.monday.isoformat(), "duration": -5}
        )
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get("/api/availability/slots/", {"staff": 999999, "date": self.monday.isoformat(), "duration": 60})
        self.assertEqual(resp.status_code, 404)

    def test_salon_availability(self):
        resp = self.client.get(
            "/api/availability/salon/",
            {"salon": self.salon.pk, "service": self.service.pk, "date": self.monday.isoformat()},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["staff"] for row in resp.data["staff"]], [self.stylist.pk])
        self.assertTrue(resp.data["staff"][0]["slots"])

    def test_working_hours(self):
        resp = self.client.get("/api/availability/working-hours/", {"staff": self.stylist.pk, "date": self.monday.isoformat()})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["is_working_day"])
        self.assertEqual(resp.data["start_time"], "09:00")
        self.assertEqual(resp.data["breaks"][0]["start"], "13:00")

    def test_staff_free_at_a_start_time(self):
        dana = make_staff(self.tenant, self.salon, "Dana")
        weekly(dana, break_start=None, break_end=None)
        book(self.stylist, self.service, self.customer, at(self.monday, 10))
        params = {"salon": self.salon.pk, "service": self.service.pk}

        resp = self.client.get("/api/availability/staff/", {**params, "start": at(self.monday, 10, 30).isoformat()})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s["id"] for s in resp.data["staff"]], [dana.pk])
        self.assertEqual(resp.data["staff"][0]["name"], "Dana")

        resp = self.client.get("/api/availability/staff/", {**params, "start": at(self.monday, 13).isoformat()})
        self.assertEqual([s["id"] for s in resp.data["staff"]], [dana.pk])

        resp = self.client.get("/api/availability/staff/", {**params, "start": at(self.monday, 11).isoformat()})
        self.assertEqual([s["id"] for s in resp.data["staff"]], [self.stylist.pk, dana.pk])

    def test_staff_free_input_errors(self):
        params = {"salon": self.salon.pk, "service": self.service.pk}
        self.assertEqual(self.client.get("/api/availability/staff/", params).status_code, 400)
        resp = self.client.get("/api/availability/staff/", {**params, "start": "next monday"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(
            "/api/availability/staff/", {**params, "service": 999999, "start": at(self.monday, 10).isoformat()}
        )
        self.assertEqual(resp.status_code, 404)

    def test_check_one_staff_member(self):
        book(self.stylist, self.service, self.customer, at(self.monday, 10))
        body = {"staff": self.stylist.pk, "start_time": at(self.monday, 10, 30).isoformat(), "duration_minutes": 30}

        self.assertIn(self.client.post("/api/availability/check/", body, format="json").status_code, (401, 403))

        self.client.force_authenticate(self.manager_user)
        resp = self.client.post("/api/availability/check/", body, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["available"])

        resp = self.client.post(
            "/api/availability/check/",
            {"staff": self.stylist.pk, "start_time": at(self.monday, 11).isoformat(), "service": self.service.pk},
            format="json",
        )
        self.assertTrue(resp.data["available"])
        self.assertEqual(resp.data["end_time"], at(self.monday, 12).isoformat())

        resp = self.client.post(
            "/api/availability/check/", {"staff": self.stylist.pk, "start_time": body["start_time"]}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_check_is_limited_to_own_business(self):
        other_tenant, other_salon, _ = make_business("other")
        outsider = make_staff(other_tenant, other_salon, "Outsider")
        self.client.force_authenticate(self.manager_user)
        resp = self.client.post(
            "/api/availability/check/",
            {"staff": outsider.pk, "start_time": at(self.monday, 10).isoformat(), "duration_minutes": 30},
            format="json",
        )
        self.assertEqual(resp.status_code, 404)


class ClientApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_create_or_reuse_client(self):
        data = {"name": "Ann", "email": "ann@example.com", "phone": "5551234567"}
        first = self.client.post("/api/clients/", data, format="json")
        self.assertEqual(first.status_code, 201)
        again = self.client.post("/api/clients/", {**data, "name": " ann "}, format="json")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.data["id"], first.data["id"])

    def test_phone_rule(self):
        resp = self.client.post("/api/clients/", {"name": "A", "email": "a@example.com", "phone": "12-34"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_service_catalog(self):
        tenant, salon, service = make_business()
        resp = self.client.get("/api/services/", {"salon": salon.pk})
        self.assertEqual([s["id"] for s in resp.data], [service.pk])
        self.assertEqual(self.client.get(f"/api/services/{service.pk}/").data["name"], "Haircut")

from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from booking.tests.helpers import SalonFixtureMixin, make_business, make_staff
from staff.models import StaffSchedule, TimeOffRequest


class ScheduleApiTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.stylist_user)

    def test_anonymous_is_refused(self):
        self.client.force_authenticate(None)
        resp = self.client.get("/api/staff/schedules/")
        self.assertIn(resp.status_code, (401, 403))

    def test_create_and_list_own_schedule(self):
        resp = self.client.post(
            "/api/staff/schedules/",
            {"day_of_week": 3, "start_time": "10:00", "end_time": "16:00",
             "breaks": [{"start": "12:00", "end": "12:30"}]},
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["staff"], self.stylist.pk)
        self.assertEqual(resp.data["breaks"], [{"start": "12:00", "end": "12:30"}])

        resp = self.client.get("/api/staff/schedules/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(sorted(row["day_of_week"] for row in resp.data), [1, 3])

    def test_duplicate_day_and_bad_range(self):
        resp = self.client.post(
            "/api/staff/schedules/", {"day_of_week": 1, "start_time": "10:00", "end_time": "16:00"}, format="json"
        )
        self.assertEqual(resp.status_code, 409)
        resp = self.client.post(
            "/api/staff/schedules/", {"day_of_week": 2, "start_time": "16:00", "end_time": "10:00"}, format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_colleague_cannot_edit_but_manager_can(self):
        colleague_user = User.objects.create_user(username="colleague", password="pass12345")
        make_staff(self.tenant, self.salon, "Colleague", user=colleague_user)
        self.client.force_authenticate(colleague_user)
        resp = self.client.patch(f"/api/staff/schedules/{self.schedule.pk}/", {"end_time": "17:00"}, format="json")
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.manager_user)
        resp = self.client.patch(f"/api/staff/schedules/{self.schedule.pk}/", {"end_time": "17:00"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data["end_time"], "17:00:00")

    def test_delete_deactivates_and_reactivate_restores(self):
        resp = self.client.delete(f"/api/staff/schedules/{self.schedule.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["is_active"])
        self.assertTrue(StaffSchedule.objects.filter(pk=self.schedule.pk).exists())

        self.assertEqual(self.client.get("/api/staff/schedules/").data, [])
        resp = self.client.get("/api/staff/schedules/", {"include_inactive": "1"})
        self.assertEqual(len(resp.data), 1)

        resp = self.client.post(f"/api/staff/schedules/{self.schedule.pk}/reactivate/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["is_active"])

    def test_other_tenant_schedule_is_not_found(self):
        other_tenant, other_salon, _ = make_business("other")
        outsider_user = User.objects.create_user(username="outsider", password="pass12345")
        make_staff(other_tenant, other_salon, "Outsider", role="OWNER", user=outsider_user)
        self.client.force_authenticate(outsider_user)
        self.assertEqual(self.client.delete(f"/api/staff/schedules/{self.schedule.pk}/").status_code, 404)
        resp = self.client.get("/api/staff/schedules/", {"staff": self.stylist.pk})
        self.assertEqual(resp.status_code, 404)


class TimeOffApiTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(self.stylist_user)

    def file_request(self, start=None, end=None):
        start = start or self.monday
        end = end or self.monday + timedelta(days=2)
        return self.client.post(
            "/api/staff/time-off/",
            {"type": "VACATION", "start_date": start.isoformat(), "end_date": end.isoformat(), "reason": "trip"},
            format="json",
        )

    def test_file_and_list(self):
        resp = self.file_request()
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["status"], "PENDING")
        self.assertEqual(resp.data["days_requested"], 3)

        resp = self.client.get("/api/staff/time-off/")
        self.assertEqual([r["staff"] for r in resp.data], [self.stylist.pk])

        resp = self.file_request(start=self.monday + timedelta(days=1))
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["code"], "time_off_overlap")

    def test_manager_approves_from_pending_queue(self):
        req_id = self.file_request().data["id"]

        resp = self.client.post(f"/api/staff/time-off/{req_id}/approve/")
        self.assertEqual(resp.status_code, 403)

        self.client.force_authenticate(self.manager_user)
        pending = self.client.get("/api/staff/time-off/pending/")
        self.assertEqual([r["id"] for r in pending.data], [req_id])

        resp = self.client.post(f"/api/staff/time-off/{req_id}/approve/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], "APPROVED")
        self.assertEqual(resp.data["approved_by"], self.manager.pk)
        self.assertEqual(self.client.get("/api/staff/time-off/pending/").data, [])

        # Approved leave hides the day from availability.
        slots = self.client.get(
            "/api/availability/slots/", {"staff": self.stylist.pk, "date": self.monday.isoformat(), "duration": 30}
        )
        self.assertEqual(slots.data["slots"], [])

    def test_reject_needs_reason(self):
        req_id = self.file_request().data["id"]
        self.client.force_authenticate(self.manager_user)
        resp = self.client.post(f"/api/staff/time-off/{req_id}/reject/", {"reason": ""}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(f"/api/staff/time-off/{req_id}/reject/", {"reason": "Busy week"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["rejection_reason"], "Busy week")

        resp = self.client.post(f"/api/staff/time-off/{req_id}/approve/")
        self.assertEqual(resp.status_code, 409)

    def test_cancel_own_request(self):
        req_id = self.file_request().data["id"]
        resp = self.client.post(f"/api/staff/time-off/{req_id}/cancel/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(TimeOffRequest.objects.get(pk=req_id).status, TimeOffRequest.Status.CANCELLED)

    def test_superuser_without_staff_profile_cannot_decide(self):
        req_id = self.file_request().data["id"]
        admin = User.objects.create_superuser(username="root", password="pass12345", email="root@salon.test")
        self.client.force_authenticate(admin)

        resp = self.client.post(f"/api/staff/time-off/{req_id}/approve/")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data["code"], "unauthorized")
        self.assertEqual(TimeOffRequest.objects.get(pk=req_id).status, TimeOffRequest.Status.PENDING)

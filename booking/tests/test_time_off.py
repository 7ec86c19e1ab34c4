# booking/tests/test_time_off.py

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from booking.exceptions import ConflictError, InvalidTransitionError, NotFoundError, UnauthorizedError, ValidationError
from booking.services.time_off import TimeOffLedger
from booking.signals import EventKind
from staff.models import TimeOffRequest

from .helpers import RecordingNotifier, SalonFixtureMixin, at, book, make_business, make_staff

Status = TimeOffRequest.Status
Type = TimeOffRequest.Type


class TimeOffLedgerTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.notifier = RecordingNotifier()
        self.ledger = TimeOffLedger(notifier=self.notifier)
        self.start = self.monday
        self.end = self.monday + timedelta(days=4)

    def request(self, start=None, end=None, actor="self", **kwargs):
        actor = self.stylist if actor == "self" else actor
        return self.ledger.request_time_off(
            self.stylist.pk, kwargs.pop("type", Type.VACATION), start or self.start, end or self.end,
            actor=actor, **kwargs
        )

    def test_request_is_pending(self):
        req = self.request(reason="family trip")
        self.assertEqual(req.status, Status.PENDING)
        self.assertEqual(req.tenant_id, self.tenant.pk)
        self.assertEqual(req.days_requested, 5)

    def test_date_validation(self):
        with self.assertRaises(ValidationError):
            self.request(start=self.end, end=self.start)
        with self.assertRaises(ValidationError):
            self.request(start=timezone.localdate() - timedelta(days=1), end=self.end)
        with self.assertRaises(ValidationError):
            self.request(type="HOLIDAY")

    def test_overlap_with_pending_or_approved_is_rejected(self):
        first = self.request()
        with self.assertRaises(ConflictError) as ctx:
            self.request(start=self.end, end=self.end + timedelta(days=2))
        self.assertEqual(ctx.exception.code, "time_off_overlap")

        self.ledger.reject(first.pk, self.manager, "busy week")
        second = self.request()
        self.ledger.approve(second.pk, self.manager)
        with self.assertRaises(ConflictError):
            self.request(start=self.start + timedelta(days=1), end=self.start + timedelta(days=1))

    def test_has_approved_overlap_uses_inclusive_dates(self):
        req = self.request()
        self.assertFalse(self.ledger.has_approved_overlap(self.stylist, self.end))
        self.ledger.approve(req.pk, self.manager)
        self.assertTrue(self.ledger.has_approved_overlap(self.stylist, self.end))
        self.assertTrue(self.ledger.has_approved_overlap(self.stylist, self.start - timedelta(days=3), self.start))
        self.assertFalse(self.ledger.has_approved_overlap(self.stylist, self.end + timedelta(days=1)))

    def test_approve_by_manager_notifies(self):
        req = self.ledger.approve(self.request().pk, self.manager.pk)
        self.assertEqual(req.status, Status.APPROVED)
        self.assertEqual(req.approved_by, self.manager)
        self.assertIsNotNone(req.approved_at)
        self.assertEqual(self.notifier.events, [(EventKind.TIME_OFF_APPROVED, req.pk, {})])

    def test_approve_logs_booked_appointments(self):
        book(self.stylist, self.service, self.customer, at(self.monday, 10))
        req = self.request()
        with self.assertLogs("booking.services.time_off", level="WARNING") as logs:
            self.ledger.approve(req.pk, self.manager)
        self.assertIn("1 booked appointment", logs.output[0])

    def test_only_managers_of_the_tenant_decide(self):
        req = self.request()
        with self.assertRaises(UnauthorizedError):
            self.ledger.approve(req.pk, self.stylist)
        other_tenant, other_salon, _ = make_business("other")
        outsider = make_staff(other_tenant, other_salon, "Outsider", role="OWNER")
        with self.assertRaises(NotFoundError):
            self.ledger.approve(req.pk, outsider)

    def test_decisions_need_a_named_approver(self):
        req = self.request()
        with self.assertRaises(UnauthorizedError):
            self.ledger.approve(req.pk, None)
        with self.assertRaises(UnauthorizedError):
            self.ledger.reject(req.pk, None, "short staffed")
        req.refresh_from_db()
        self.assertEqual(req.status, Status.PENDING)
        self.assertIsNone(req.approved_by)

    def test_reject_requires_reason(self):
        req = self.request()
        with self.assertRaises(ValidationError):
            self.ledger.reject(req.pk, self.manager, "  ")
        req = self.ledger.reject(req.pk, self.manager, "short staffed")
        self.assertEqual(req.status, Status.REJECTED)
        self.assertEqual(req.rejection_reason, "short staffed")
        self.assertEqual(self.notifier.events[-1][0], EventKind.TIME_OFF_REJECTED)

    def test_decisions_only_from_pending(self):
        req = self.ledger.approve(self.request().pk, self.manager)
        with self.assertRaises(InvalidTransitionError):
            self.ledger.approve(req.pk, self.manager)
        with self.assertRaises(InvalidTransitionError):
            self.ledger.reject(req.pk, self.manager, "changed my mind")

    def test_cancel_before_start(self):
        req = self.ledger.approve(self.request().pk, self.manager)
        req = self.ledger.cancel(req.pk, actor=self.stylist)
        self.assertEqual(req.status, Status.CANCELLED)
        # Cancelled leave no longer blocks a new request.
        self.request()

    def test_cancel_after_start_is_refused(self):
        req = self.request()
        with self.assertRaises(InvalidTransitionError):
            self.ledger.cancel(req.pk, actor=self.stylist, today=self.start)
        with self.assertRaises(InvalidTransitionError):
            self.ledger.cancel(req.pk, actor=self.stylist, today=self.start + timedelta(days=1))

    def test_rejected_cannot_be_cancelled(self):
        req = self.ledger.reject(self.request().pk, self.manager, "no")
        with self.assertRaises(InvalidTransitionError):
            self.ledger.cancel(req.pk, actor=self.stylist)

    def test_colleague_cannot_file_or_cancel(self):
        colleague = make_staff(self.tenant, self.salon, "Colleague")
        with self.assertRaises(UnauthorizedError):
            self.request(actor=colleague)
        req = self.request()
        with self.assertRaises(UnauthorizedError):
            self.ledger.cancel(req.pk, actor=colleague)
        self.ledger.cancel(req.pk, actor=self.manager)

    def test_listings(self):
        req = self.request()
        self.assertEqual(list(self.ledger.list_for_staff(self.stylist)), [req])
        self.assertEqual(list(self.ledger.pending_for_tenant(self.tenant)), [req])
        self.ledger.approve(req.pk, self.manager)
        self.assertEqual(list(self.ledger.pending_for_tenant(self.tenant.pk)), [])

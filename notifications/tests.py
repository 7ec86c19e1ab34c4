from smtplib import SMTPException
from unittest import mock

from django.core import mail
from django.test import TestCase

from booking.exceptions import ConflictError
from booking.models import Appointment
from booking.services.booking_manager import BookingManager
from booking.services.time_off import TimeOffLedger
from booking.signals import EventKind, appointment_event
from booking.tests.helpers import SalonFixtureMixin, at
from notifications.models import Notification


class NotificationTests(SalonFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.manager_svc = BookingManager()

    def book(self, hour=10):
        return self.manager_svc.create_appointment(
            self.service.pk, self.stylist.pk, self.salon.pk, self.customer.pk, at(self.monday, hour)
        )

    def test_email_sent_after_commit_when_booking_created(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            appt = self.book()
            # Nothing is delivered before the transaction commits.
            self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(len(callbacks), 1)

        with self.captureOnCommitCallbacks(execute=True):
            self.manager_svc.update_status(appt.pk, "CONFIRMED")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("confirmed", mail.outbox[0].body)
        self.assertEqual(mail.outbox[0].to, ["ann@example.com"])

        note = Notification.objects.get(appointment=appt)
        self.assertEqual(note.kind, EventKind.STATUS_CHANGED)
        self.assertTrue(note.sent)

    def test_cancel_and_reschedule_messages(self):
        with self.captureOnCommitCallbacks(execute=True):
            appt = self.book()
            self.manager_svc.reschedule_appointment(appt.pk, at(self.monday, 15))
            self.manager_svc.cancel_appointment(appt.pk, reason="double booked elsewhere")

        kinds = list(Notification.objects.filter(appointment=appt).order_by("id").values_list("kind", flat=True))
        self.assertEqual(
            kinds,
            [EventKind.APPOINTMENT_CREATED, EventKind.APPOINTMENT_RESCHEDULED, EventKind.APPOINTMENT_CANCELLED],
        )
        self.assertIn("has moved from", mail.outbox[1].body)
        self.assertIn("double booked elsewhere", mail.outbox[2].body)

    def test_email_failure_is_recorded_not_raised(self):
        with mock.patch("notifications.signals.send_mail", side_effect=SMTPException("relay down")):
            with self.captureOnCommitCallbacks(execute=True):
                appt = self.book()
        self.assertTrue(Appointment.objects.filter(pk=appt.pk).exists())
        note = Notification.objects.get(appointment=appt)
        self.assertFalse(note.sent)
        self.assertIn("relay down", note.error)

    def test_broken_receiver_does_not_undo_booking(self):
        def explode(sender, **kwargs):
            raise RuntimeError("boom")

        appointment_event.connect(explode, dispatch_uid="test-explode")
        self.addCleanup(appointment_event.disconnect, dispatch_uid="test-explode")

        with self.assertLogs("booking.services.notification_service", level="ERROR"):
            with self.captureOnCommitCallbacks(execute=True):
                appt = self.book()
        self.assertEqual(Appointment.objects.get(pk=appt.pk).status, "PENDING")
        # The regular receiver still ran.
        self.assertEqual(Notification.objects.filter(appointment=appt).count(), 1)

    def test_failed_booking_sends_nothing(self):
        self.book()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(ConflictError):
                self.book()
        self.assertEqual(callbacks, [])

    def test_time_off_decisions_email_staff(self):
        ledger = TimeOffLedger()
        first = ledger.request_time_off(self.stylist.pk, "VACATION", self.monday, self.monday, actor=self.stylist)
        with self.captureOnCommitCallbacks(execute=True):
            ledger.approve(first.pk, self.manager)
        note = Notification.objects.get(time_off_request=first)
        self.assertEqual(note.kind, EventKind.TIME_OFF_APPROVED)
        self.assertEqual(note.recipient, self.stylist.email)
        self.assertIn("approved", mail.outbox[-1].body)

    def test_time_off_rejection_carries_reason(self):
        ledger = TimeOffLedger()
        req = ledger.request_time_off(self.stylist.pk, "PERSONAL", self.monday, self.monday, actor=self.stylist)
        with self.captureOnCommitCallbacks(execute=True):
            ledger.reject(req.pk, self.manager, "Inventory day")
        note = Notification.objects.get(time_off_request=req)
        self.assertEqual(note.kind, EventKind.TIME_OFF_REJECTED)
        self.assertIn("Inventory day", note.message)

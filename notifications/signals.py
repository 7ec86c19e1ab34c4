# notifications/signals.py
#
# Purpose:
# - Turn scheduling events into emails and Notification rows.
#   * appointment_event: created / status changed / cancelled / rescheduled
#     -> email to the customer
#   * time_off_event: approved / rejected -> email to the staff member
#
# Notes:
# - Events arrive after the database commit (booking/services/notification_service.py),
#   so a row here always points at a durable appointment or request.
# - Uses DEFAULT_FROM_EMAIL from settings; console backend in dev, SMTP otherwise.
# - An email failure is stored on the Notification row and logged. It never
#   reaches the booking caller.
#
import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import receiver
from django.utils import timezone

from booking.signals import EventKind, appointment_event, time_off_event
from notifications.models import Notification

logger = logging.getLogger(__name__)


def _fmt(dt):
    return timezone.localtime(dt).strftime("%A, %B %d, %Y at %I:%M %p")


def _send(notification: Notification) -> Notification:
    """
    Send one email and record the outcome on the Notification row.
    No recipient means nothing to deliver: the row stays sent=False.
    """
    if not notification.recipient:
        notification.error = "No recipient address."
        notification.save()
        return notification
    try:
        send_mail(
            subject=notification.subject,
            message=notification.message,
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=[notification.recipient],
            fail_silently=False,  # raise so we can log; we still catch it below
        )
        notification.sent = True
    except (SMTPException, OSError) as e:
        notification.error = str(e)
        logger.exception("Email to %s failed for %s", notification.recipient, notification.kind)
    notification.save()
    return notification


def _appointment_body(appointment, kind, context):
    client = appointment.customer
    when = _fmt(appointment.start_time)
    service = appointment.service.name

    if kind == EventKind.APPOINTMENT_CREATED:
        return "Booking Received", (
            f"Hi {client.name},\n\n"
            f"We received your booking.\n\n"
            f"Booking ID: {appointment.id}\n"
            f"Service: {service}\n"
            f"Stylist: {appointment.staff.name}\n"
            f"Date & Time: {when}\n\n"
            f"We will confirm it shortly.\n"
        )
    if kind == EventKind.APPOINTMENT_CANCELLED:
        reason = appointment.cancellation_reason or "not given"
        return f"Booking #{appointment.id} Cancelled", (
            f"Dear {client.name},\n\n"
            f"Your appointment for {service} on {when} has been cancelled.\n"
            f"Reason: {reason}\n"
            f"If this was unexpected, please reply to this email.\n"
        )
    if kind == EventKind.APPOINTMENT_RESCHEDULED:
        old = context.get("old_start_time")
        old_str = _fmt(old) if old else "the original time"
        return f"Booking #{appointment.id} Rescheduled", (
            f"Hi {client.name},\n\n"
            f"Your appointment for {service} has moved from {old_str} to {when} "
            f"with {appointment.staff.name}.\n"
            f"It will be confirmed again shortly.\n"
        )
    new_status = context.get("new_status", appointment.status)
    label = appointment.get_status_display()
    if new_status == "CONFIRMED":
        return "Booking Confirmation", (
            f"Hi {client.name},\n\n"
            f"Your booking is confirmed.\n\n"
            f"Booking ID: {appointment.id}\n"
            f"Service: {service}\n"
            f"Date & Time: {when}\n\n"
            f"We look forward to seeing you!\n"
        )
    return f"Booking #{appointment.id}: {label}", (
        f"Hi {client.name},\n\n"
        f"Your appointment for {service} on {when} is now: {label}.\n"
    )


@receiver(appointment_event)
def appointment_emails(sender, appointment, kind, context=None, **kwargs):
    """
    Record and email the customer for every appointment event.
    """
    subject, body = _appointment_body(appointment, kind, context or {})
    notification = Notification.objects.create(
        kind=kind,
        recipient=appointment.customer.email,
        subject=subject,
        message=body,
        appointment=appointment,
    )
    _send(notification)
    logger.info("Notification %s (%s) recorded for appointment %s", notification.pk, kind, appointment.pk)


@receiver(time_off_event)
def time_off_emails(sender, request, kind, context=None, **kwargs):
    staff = request.staff
    period = f"{request.start_date:%Y-%m-%d} to {request.end_date:%Y-%m-%d}"
    if kind == EventKind.TIME_OFF_APPROVED:
        subject = "Time Off Approved"
        body = f"Hi {staff.name},\n\nYour {request.get_type_display().lower()} for {period} was approved.\n"
    else:
        subject = "Time Off Rejected"
        reason = (context or {}).get("reason") or request.rejection_reason
        body = (
            f"Hi {staff.name},\n\n"
            f"Your {request.get_type_display().lower()} for {period} was rejected.\n"
            f"Reason: {reason}\n"
        )
    notification = Notification.objects.create(
        kind=kind,
        recipient=staff.email,
        subject=subject,
        message=body,
        time_off_request=request,
    )
    _send(notification)

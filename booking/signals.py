# booking/signals.py
#
# Purpose:
# - Lifecycle events emitted by the scheduling engine.
#
# Design:
# - The engine only *sends* these signals, always after the database commit
#   (see services/notification_service.py). Delivery (email, audit rows) is
#   the notifications app's concern: notifications/signals.py holds the receivers.
# - Receivers get: appointment or request, kind (EventKind value), context (dict).
#
from django.db import models
from django.dispatch import Signal

appointment_event = Signal()
time_off_event = Signal()


class EventKind(models.TextChoices):
    APPOINTMENT_CREATED = "APPOINTMENT_CREATED", "Appointment created"
    STATUS_CHANGED = "STATUS_CHANGED", "Appointment status changed"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED", "Appointment cancelled"
    APPOINTMENT_RESCHEDULED = "APPOINTMENT_RESCHEDULED", "Appointment rescheduled"
    TIME_OFF_APPROVED = "TIME_OFF_APPROVED", "Time off approved"
    TIME_OFF_REJECTED = "TIME_OFF_REJECTED", "Time off rejected"

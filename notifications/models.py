# notifications/models.py
#
# Purpose:
# - Record every message produced for a scheduling event (appointment created,
#   status changed, cancelled, rescheduled, leave approved/rejected).
#
# Design:
# - One row per event and recipient; 'kind' uses booking.signals.EventKind.
# - 'sent' indicates delivery attempt result, 'error' keeps the failure text.
# - Rows are written by notifications/signals.py, after the booking commits.
#
from django.db import models

from booking.signals import EventKind


class Notification(models.Model):
    kind = models.CharField(max_length=40, choices=EventKind.choices)
    recipient = models.EmailField(blank=True)
    subject = models.CharField(max_length=200)
    message = models.TextField()
    appointment = models.ForeignKey(
        "booking.Appointment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    time_off_request = models.ForeignKey(
        "staff.TimeOffRequest",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    sent = models.BooleanField(default=False)
    error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.get_kind_display()} to {self.recipient or 'nobody'} at {self.created_at:%Y-%m-%d %H:%M}"

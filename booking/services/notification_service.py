"""
NotificationService
-------------------
Purpose:
- Emit booking / time-off lifecycle events to the notification collaborator.

How it works:
- notify()/notify_time_off() register a transaction.on_commit callback, so an
  event is only emitted once the state change is durable. Outside a
  transaction the callback runs immediately.
- The callback fires booking.signals.* with send_robust(): a failing receiver
  (SMTP down, template error...) is logged here and never reaches the caller.
  A booking must not fail because an email could not be sent.
"""

import logging
from functools import partial

from django.db import transaction

from ..models import Appointment
from ..signals import appointment_event, time_off_event

logger = logging.getLogger(__name__)


class NotificationService:
    def notify(self, appointment, kind, **context) -> None:
        """
        Queue an appointment event for after commit.

        Args:
            appointment: Appointment instance (already saved).
            kind: booking.signals.EventKind value.
            context: extra data for receivers (e.g. old_start_time on reschedule).
        """
        transaction.on_commit(
            partial(
                self._dispatch,
                appointment_event,
                sender=Appointment,
                appointment=appointment,
                kind=kind,
                context=context,
            )
        )

    def notify_time_off(self, request, kind, **context) -> None:
        transaction.on_commit(
            partial(
                self._dispatch,
                time_off_event,
                sender=request.__class__,
                request=request,
                kind=kind,
                context=context,
            )
        )

    def _dispatch(self, signal, sender, kind, **kwargs) -> None:
        for receiver, result in signal.send_robust(sender=sender, kind=kind, **kwargs):
            if isinstance(result, Exception):
                logger.error(
                    "Notification receiver %s failed for %s: %s",
                    getattr(receiver, "__name__", receiver),
                    kind,
                    result,
                    exc_info=(type(result), result, result.__traceback__),
                )

"""
booking_manager.py
------------------
Appointment lifecycle: creation, status transitions, cancellation and
rescheduling.

Status machine (anything not listed is rejected with InvalidTransitionError):

    PENDING     -> CONFIRMED | CANCELLED
    CONFIRMED   -> CHECKED_IN | CANCELLED | NO_SHOW
    CHECKED_IN  -> IN_PROGRESS | CANCELLED
    IN_PROGRESS -> COMPLETED
    COMPLETED, CANCELLED, NO_SHOW are terminal.

Double-booking:
- Bookability (working hours, breaks, approved leave, overlaps) is checked
  first without locks so most failures are cheap.
- The overlap check is then repeated inside the write transaction while
  holding SELECT ... FOR UPDATE on the staff row. Concurrent creates or
  reschedules for the same staff member therefore run one after the other,
  and the loser sees the winner's row and gets ConflictError.
- On SQLite the same ordering comes from BEGIN IMMEDIATE transactions. If the
  database gives up on the lock instead (busy timeout, deadlock), the loser
  still gets ConflictError (see locking.contention_as_conflict).

Side effects: persist first, notify second. Notifications are queued with
transaction.on_commit and can never undo a booking.
"""

import logging
from datetime import datetime, timedelta

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from ..exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from ..models import Appointment, AppointmentStatus, ClientProfile, Salon, Service, Staff
from ..signals import EventKind
from ..tenancy import get_scoped
from .availability_engine import AvailabilityEngine
from .conflict_detector import ConflictDetector
from .locking import contention_as_conflict, lock_staff
from .notification_service import NotificationService
from .slot_utils import make_aware
from .time_off import TimeOffLedger
from .working_hours import WorkingHoursResolver

logger = logging.getLogger(__name__)

S = AppointmentStatus

ALLOWED_TRANSITIONS = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELLED, S.NO_SHOW}),
    S.CHECKED_IN: frozenset({S.IN_PROGRESS, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# An appointment can only be moved before the service has started.
RESCHEDULABLE_STATUSES = frozenset({S.PENDING, S.CONFIRMED, S.CHECKED_IN})

UNAVAILABLE_MESSAGES = {
    "outside_working_hours": "The selected time is outside the staff member's working hours.",
    "staff_on_leave": "The staff member is on leave at the selected time.",
}


def can_transition(current, new) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def _as_aware(value, field="start_time"):
    if isinstance(value, str):
        parsed = parse_datetime(value.strip())
        if parsed is None:
            raise ValidationError(f"{field} must be an ISO 8601 datetime.")
        value = parsed
    if not isinstance(value, datetime):
        raise ValidationError(f"{field} must be a datetime.")
    return make_aware(value)


class BookingManager:
    def __init__(self, notifier=None, conflicts=None, working_hours=None, time_off=None):
        self.notifier = notifier or NotificationService()
        self.conflicts = conflicts or ConflictDetector()
        self.working_hours = working_hours or WorkingHoursResolver()
        self.time_off = time_off or TimeOffLedger(notifier=self.notifier)
        self.availability = AvailabilityEngine(
            working_hours=self.working_hours, time_off=self.time_off, conflicts=self.conflicts
        )

    # -------------------- create --------------------
    def create_appointment(
        self,
        service_id,
        staff_id,
        salon_id,
        customer_id,
        start_time,
        notes="",
        customer_notes="",
        now=None,
    ):
        """
        Book `service` with `staff` at `salon` for `customer` starting at start_time.

        Raises:
            ValidationError: start_time not strictly in the future, inactive service/staff
            NotFoundError: missing or cross-tenant reference, staff not at this salon
            ConflictError: slot outside working hours, on leave, or overlapping
        """
        start_time = _as_aware(start_time)
        now = now or timezone.now()
        if start_time <= now:
            raise ValidationError("Appointment time must be in the future.", code="start_in_past")

        salon = get_scoped(Salon, salon_id, label="Salon")
        tenant_id = salon.tenant_id
        service = get_scoped(Service, service_id, tenant=tenant_id, label="Service")
        staff = get_scoped(Staff, staff_id, tenant=tenant_id, label="Staff")
        customer = get_scoped(ClientProfile, customer_id, label="Customer")

        if service.salon_id != salon.pk:
            raise NotFoundError("Service not offered at this salon.")
        if staff.salon_id != salon.pk:
            raise NotFoundError("Staff not found or does not work at this salon.")
        if not salon.is_active or not service.active:
            raise ValidationError("This service is not currently available.")
        self._ensure_staff_bookable(staff)

        end_time = start_time + timedelta(minutes=service.duration_minutes)
        self._ensure_slot_open(staff, start_time, end_time)

        conflict = dict(start_time=start_time, end_time=end_time, staff_id=staff.pk)
        with contention_as_conflict(**conflict), transaction.atomic():
            lock_staff(staff)
            self._ensure_no_overlap(staff, start_time, end_time)
            appointment = Appointment.objects.create(
                tenant_id=tenant_id,
                salon=salon,
                staff=staff,
                service=service,
                customer=customer,
                start_time=start_time,
                end_time=end_time,
                status=S.PENDING,
                notes=notes or "",
                customer_notes=customer_notes or "",
                total_price=service.price,
            )
            self.notifier.notify(appointment, EventKind.APPOINTMENT_CREATED)

        logger.info(
            "Appointment %s created for customer %s with staff %s at %s",
            appointment.pk, customer.pk, staff.pk, start_time.isoformat(),
        )
        return appointment

    # -------------------- status --------------------
    def update_status(self, appointment_id, new_status, reason=None, tenant=None):
        if new_status not in S.values:
            raise ValidationError(f"Unknown appointment status: {new_status}.")
        new_status = S(new_status)

        with transaction.atomic():
            appointment = self._locked(appointment_id, tenant)
            old_status = appointment.status
            if not can_transition(old_status, new_status):
                raise InvalidTransitionError(
                    f"Cannot change status from {old_status} to {new_status}.",
                    current_status=old_status,
                    requested_status=new_status,
                )

            appointment.status = new_status
            fields = ["status", "updated_at"]
            if new_status == S.CANCELLED:
                appointment.cancellation_reason = reason or ""
                appointment.cancelled_at = timezone.now()
                fields += ["cancellation_reason", "cancelled_at"]
            appointment.save(update_fields=fields)

            kind = EventKind.APPOINTMENT_CANCELLED if new_status == S.CANCELLED else EventKind.STATUS_CHANGED
            self.notifier.notify(appointment, kind, old_status=old_status, new_status=new_status)

        logger.info("Appointment %s status %s -> %s", appointment.pk, old_status, new_status)
        return appointment

    def cancel_appointment(self, appointment_id, reason=None, tenant=None):
        """
        Shortcut for update_status(CANCELLED) with explicit messages for
        appointments that are already finished or cancelled.
        """
        appointment = get_scoped(Appointment, appointment_id, tenant=tenant, label="Appointment")
        if appointment.status == S.COMPLETED:
            raise InvalidTransitionError("Cannot cancel completed appointments.")
        if appointment.status == S.CANCELLED:
            raise InvalidTransitionError("Appointment is already cancelled.")
        return self.update_status(appointment.pk, S.CANCELLED, reason=reason, tenant=tenant)

    # -------------------- reschedule --------------------
    def reschedule_appointment(self, appointment_id, new_start_time, new_staff_id=None, tenant=None, now=None):
        """
        Move an appointment to new_start_time (optionally to another staff member
        of the same salon). The appointment goes back to PENDING and needs to be
        confirmed again.

        Raises:
            InvalidTransitionError: appointment not pending, confirmed or checked in
            ValidationError: new start not in the future, inactive staff
            NotFoundError: unknown appointment or staff
            ConflictError: new interval not bookable
        """
        new_start = _as_aware(new_start_time)
        now = now or timezone.now()
        if new_start <= now:
            raise ValidationError("Appointment time must be in the future.", code="start_in_past")

        with contention_as_conflict(start_time=new_start), transaction.atomic():
            appointment = self._locked(appointment_id, tenant)
            if appointment.status not in RESCHEDULABLE_STATUSES:
                raise InvalidTransitionError(
                    "Only pending, confirmed or checked-in appointments can be rescheduled.",
                    current_status=appointment.status,
                )

            staff = appointment.staff
            if new_staff_id is not None:
                staff = get_scoped(Staff, new_staff_id, tenant=appointment.tenant_id, label="Staff")
            if staff.pk != appointment.staff_id:
                if staff.salon_id != appointment.salon_id:
                    raise NotFoundError("Invalid staff selection.")
                self._ensure_staff_bookable(staff)

            new_end = new_start + timedelta(minutes=appointment.service.duration_minutes)
            self._ensure_slot_open(staff, new_start, new_end, exclude_appointment_id=appointment.pk)
            lock_staff(staff)
            self._ensure_no_overlap(staff, new_start, new_end, exclude_appointment_id=appointment.pk)

            old_start, old_staff_id = appointment.start_time, appointment.staff_id
            appointment.staff = staff
            appointment.start_time = new_start
            appointment.end_time = new_end
            appointment.status = S.PENDING
            appointment.save(update_fields=["staff", "start_time", "end_time", "status", "updated_at"])

            self.notifier.notify(
                appointment,
                EventKind.APPOINTMENT_RESCHEDULED,
                old_start_time=old_start,
                new_start_time=new_start,
                old_staff_id=old_staff_id,
            )

        logger.info(
            "Appointment %s rescheduled from %s to %s (staff %s -> %s)",
            appointment.pk, old_start.isoformat(), new_start.isoformat(), old_staff_id, staff.pk,
        )
        return appointment

    # -------------------- queries --------------------
    def appointments_for_staff(self, staff_id, tenant=None, start=None, end=None, status=None):
        staff = get_scoped(Staff, staff_id, tenant=tenant, label="Staff")
        return self._filtered(Appointment.objects.filter(staff=staff), start, end, status)

    def appointments_for_salon(self, salon_id, tenant=None, start=None, end=None, status=None):
        salon = get_scoped(Salon, salon_id, tenant=tenant, label="Salon")
        return self._filtered(Appointment.objects.filter(salon=salon), start, end, status)

    def appointments_for_customer(self, customer_id, start=None, end=None, status=None):
        customer = get_scoped(ClientProfile, customer_id, label="Customer")
        return self._filtered(Appointment.objects.filter(customer=customer), start, end, status)

    # -------------------- helpers --------------------
    def _filtered(self, qs, start, end, status):
        if start is not None:
            qs = qs.filter(end_time__gt=start)
        if end is not None:
            qs = qs.filter(start_time__lt=end)
        if status:
            qs = qs.filter(status=status)
        return qs.select_related("service", "staff", "salon", "customer").order_by("start_time")

    def _locked(self, appointment_id, tenant):
        qs = Appointment.objects.select_for_update().select_related("service", "staff")
        return get_scoped(Appointment, appointment_id, tenant=tenant, label="Appointment", queryset=qs)

    def _ensure_staff_bookable(self, staff):
        if staff.status != Staff.Status.ACTIVE:
            raise ValidationError("This staff member is not accepting bookings.")

    def _ensure_slot_open(self, staff, start, end, exclude_appointment_id=None):
        reason = self.availability.unavailable_reason(staff, start, end, exclude_appointment_id)
        if reason == "slot_unavailable":
            self._slot_taken(staff, start, end)
        if reason is not None:
            raise ConflictError(UNAVAILABLE_MESSAGES[reason], code=reason, start_time=start, end_time=end)

    def _ensure_no_overlap(self, staff, start, end, exclude_appointment_id=None):
        if self.conflicts.has_conflict(staff, start, end, exclude_appointment_id):
            self._slot_taken(staff, start, end)

    def _slot_taken(self, staff, start, end):
        logger.warning(
            "Rejected booking for staff %s at %s: slot no longer available",
            staff.pk, start.isoformat(),
        )
        raise ConflictError(
            "This time slot is not available.",
            start_time=start,
            end_time=end,
            staff_id=staff.pk,
        )

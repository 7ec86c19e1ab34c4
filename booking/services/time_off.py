"""
time_off.py
-----------
Time-off ledger: leave requests per staff member and the questions the
scheduler asks about them.

Queries:
- has_approved_overlap(): is the staff member on approved leave in [start, end]?
  (dates are inclusive)
- has_conflict(): would a new request overlap a Pending or Approved one?
  Rejected and Cancelled requests never block.

Request state machine:
    PENDING  -> APPROVED   (owner/manager of the tenant; notifies the staff member)
    PENDING  -> REJECTED   (owner/manager, reason required; notifies)
    PENDING  -> CANCELLED  (requester or manager, only before start_date)
    APPROVED -> CANCELLED  (same, only before start_date)
Anything else raises InvalidTransitionError.
"""

import logging

from django.db import transaction
from django.utils import timezone

from staff.models import TimeOffRequest

from ..exceptions import ConflictError, InvalidTransitionError, NotFoundError, UnauthorizedError, ValidationError
from ..models import Appointment, AppointmentStatus, Staff
from ..signals import EventKind
from ..tenancy import ensure_can_manage_staff, ensure_is_manager, get_scoped
from .locking import contention_as_conflict, lock_staff
from .notification_service import NotificationService
from .slot_utils import coerce_date, day_range

logger = logging.getLogger(__name__)

Status = TimeOffRequest.Status

TIME_OFF_TRANSITIONS = {
    Status.PENDING: frozenset({Status.APPROVED, Status.REJECTED, Status.CANCELLED}),
    Status.APPROVED: frozenset({Status.CANCELLED}),
    Status.REJECTED: frozenset(),
    Status.CANCELLED: frozenset(),
}

BLOCKING_STATUSES = (Status.PENDING, Status.APPROVED)

OVERLAP_MESSAGE = "A time off request already exists for this date range."


def _staff_id(staff):
    return getattr(staff, "pk", staff)


class TimeOffLedger:
    def __init__(self, notifier=None):
        self.notifier = notifier or NotificationService()

    # -------------------- queries --------------------
    def has_approved_overlap(self, staff, start_date, end_date=None) -> bool:
        end_date = end_date or start_date
        return TimeOffRequest.objects.filter(
            staff_id=_staff_id(staff),
            status=Status.APPROVED,
            start_date__lte=end_date,
            end_date__gte=start_date,
        ).exists()

    def has_conflict(self, staff, start_date, end_date, exclude_request_id=None) -> bool:
        qs = TimeOffRequest.objects.filter(
            staff_id=_staff_id(staff),
            status__in=BLOCKING_STATUSES,
            start_date__lte=end_date,
            end_date__gte=start_date,
        )
        if exclude_request_id is not None:
            qs = qs.exclude(pk=exclude_request_id)
        return qs.exists()

    def list_for_staff(self, staff):
        return TimeOffRequest.objects.filter(staff_id=_staff_id(staff)).order_by("-start_date")

    def pending_for_tenant(self, tenant):
        return (
            TimeOffRequest.objects.filter(tenant_id=getattr(tenant, "pk", tenant), status=Status.PENDING)
            .select_related("staff")
            .order_by("start_date")
        )

    # -------------------- commands --------------------
    def request_time_off(self, staff_id, type, start_date, end_date, reason="", actor=None, today=None):
        """
        Create a PENDING request.

        Raises:
            NotFoundError: unknown staff (or staff of another tenant than actor)
            UnauthorizedError: actor may not file leave for this staff member
            ValidationError: bad dates or type
            ConflictError: overlaps a Pending/Approved request
        """
        staff = get_scoped(Staff, staff_id, tenant=actor.tenant_id if actor else None, label="Staff")
        ensure_can_manage_staff(actor, staff)

        start_date, end_date = coerce_date(start_date), coerce_date(end_date)
        if start_date is None or end_date is None:
            raise ValidationError("start_date and end_date must be dates (YYYY-MM-DD).")
        if start_date > end_date:
            raise ValidationError("End date must not be before start date.")
        today = today or timezone.localdate()
        if start_date < today:
            raise ValidationError("Time off cannot be requested for a past date.")
        if type not in TimeOffRequest.Type.values:
            raise ValidationError(f"Unknown time off type: {type}.")

        overlap = dict(code="time_off_overlap", start_date=start_date, end_date=end_date)
        with contention_as_conflict(OVERLAP_MESSAGE, **overlap), transaction.atomic():
            # Serializes leave requests per staff member so the overlap check holds at commit.
            lock_staff(staff)
            if self.has_conflict(staff, start_date, end_date):
                raise ConflictError(OVERLAP_MESSAGE, **overlap)
            request = TimeOffRequest.objects.create(
                staff=staff,
                tenant_id=staff.tenant_id,
                type=type,
                start_date=start_date,
                end_date=end_date,
                reason=reason or "",
            )

        logger.info("Time off request %s created for staff %s", request.pk, staff.pk)
        return request

    def approve(self, request_id, approver):
        approver = self._resolve_approver(approver)
        with transaction.atomic():
            request = self._locked(request_id, approver)
            ensure_is_manager(approver, request.tenant_id)
            self._check_transition(request, Status.APPROVED)
            request.status = Status.APPROVED
            request.approved_by = approver
            request.approved_at = timezone.now()
            request.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
            self.notifier.notify_time_off(request, EventKind.TIME_OFF_APPROVED)

        affected = self._booked_during(request)
        if affected:
            logger.warning(
                "Time off %s approved for staff %s overlaps %d booked appointment(s)",
                request.pk, request.staff_id, affected,
            )
        logger.info("Time off request %s approved by %s", request.pk, approver.pk)
        return request

    def reject(self, request_id, approver, reason):
        if not (reason or "").strip():
            raise ValidationError("A reason is required to reject a time off request.")
        approver = self._resolve_approver(approver)
        with transaction.atomic():
            request = self._locked(request_id, approver)
            ensure_is_manager(approver, request.tenant_id)
            self._check_transition(request, Status.REJECTED)
            request.status = Status.REJECTED
            request.rejection_reason = reason.strip()
            request.save(update_fields=["status", "rejection_reason", "updated_at"])
            self.notifier.notify_time_off(request, EventKind.TIME_OFF_REJECTED, reason=request.rejection_reason)

        logger.info("Time off request %s rejected by %s", request.pk, approver.pk)
        return request

    def cancel(self, request_id, actor=None, today=None):
        actor = self._resolve_actor(actor) if actor is not None else None
        today = today or timezone.localdate()
        with transaction.atomic():
            request = self._locked(request_id, actor)
            ensure_can_manage_staff(actor, request.staff)
            self._check_transition(request, Status.CANCELLED)
            if request.start_date <= today:
                raise InvalidTransitionError("Time off that has already started cannot be cancelled.")
            request.status = Status.CANCELLED
            request.save(update_fields=["status", "updated_at"])

        logger.info("Time off request %s cancelled", request.pk)
        return request

    # -------------------- helpers --------------------
    def _resolve_approver(self, approver):
        # approved_by must name a person; a system call (None) cannot decide.
        if approver is None:
            raise UnauthorizedError("Only an owner or manager can approve or reject time off.")
        return self._resolve_actor(approver)

    def _resolve_actor(self, actor):
        if isinstance(actor, Staff):
            return actor
        try:
            return Staff.objects.get(pk=actor)
        except (Staff.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Staff not found.")

    def _locked(self, request_id, actor):
        qs = TimeOffRequest.objects.select_for_update().select_related("staff")
        return get_scoped(
            TimeOffRequest,
            request_id,
            tenant=actor.tenant_id if actor else None,
            label="Time off request",
            queryset=qs,
        )

    def _check_transition(self, request, new_status):
        if new_status not in TIME_OFF_TRANSITIONS[request.status]:
            raise InvalidTransitionError(
                f"Cannot change time off status from {request.status} to {new_status}."
            )

    def _booked_during(self, request) -> int:
        start, _ = day_range(request.start_date)
        _, end = day_range(request.end_date)
        return (
            Appointment.objects.filter(staff_id=request.staff_id, start_time__lt=end, end_time__gt=start)
            .exclude(status__in=[AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW])
            .count()
        )

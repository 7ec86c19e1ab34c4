# staff/views.py
#
# Purpose:
# - Staff-only APIs for working schedules and time off:
#   * /api/staff/schedules/           list (?staff=ID&include_inactive=1), create,
#                                     PATCH window/break, DELETE = deactivate,
#                                     POST {id}/reactivate/
#   * /api/staff/time-off/            list (?staff=ID), create,
#                                     POST {id}/approve|reject|cancel/, GET pending/
#
# Notes:
# - The acting Staff member comes from request.user.staff_profile. When a
#   payload omits "staff", the caller acts on their own calendar.
# - Owner/Manager checks and tenancy are enforced by the services.
#
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from booking.exceptions import ValidationError
from booking.permissions import IsStaffMember, acting_staff, acting_tenant_id
from booking.services.schedule_manager import ScheduleManager
from booking.services.time_off import TimeOffLedger
from booking.models import Staff
from booking.tenancy import get_scoped

from .serializers import (
    RejectSerializer,
    ScheduleWriteSerializer,
    StaffScheduleSerializer,
    TimeOffCreateSerializer,
    TimeOffRequestSerializer,
)


def _target_staff_id(request, data):
    staff_id = data.get("staff") or request.query_params.get("staff")
    if staff_id:
        return staff_id
    actor = acting_staff(request)
    if actor is None:
        raise ValidationError("Missing 'staff'.")
    return actor.pk


def _flag(request, name):
    return (request.query_params.get(name) or "").strip().lower() in ("1", "true", "yes")


class StaffScheduleViewSet(viewsets.ViewSet):
    permission_classes = [IsStaffMember]
    manager = ScheduleManager()

    def list(self, request):
        staff_id = _target_staff_id(request, {})
        qs = self.manager.list_schedules(
            staff_id,
            include_inactive=_flag(request, "include_inactive"),
            tenant=acting_tenant_id(request),
        )
        return Response(StaffScheduleSerializer(qs, many=True).data)

    def create(self, request):
        payload = ScheduleWriteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        schedule = self.manager.set_schedule(
            _target_staff_id(request, data),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            day_of_week=data.get("day_of_week"),
            specific_date=data.get("specific_date"),
            breaks=[(b["start"], b["end"]) for b in data.get("breaks", [])],
            break_start=data.get("break_start"),
            break_end=data.get("break_end"),
            actor=acting_staff(request),
        )
        return Response(StaffScheduleSerializer(schedule).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = ScheduleWriteSerializer(data=request.data, partial=True)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        clear_break = "break_start" in data and data["break_start"] is None
        breaks = data.get("breaks")
        schedule = self.manager.update_schedule(
            pk,
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            breaks=[(b["start"], b["end"]) for b in breaks] if breaks is not None else None,
            break_start=data.get("break_start"),
            break_end=data.get("break_end"),
            clear_break=clear_break,
            actor=acting_staff(request),
        )
        return Response(StaffScheduleSerializer(schedule).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        """Soft delete: the row stays for history, the resolver ignores it."""
        schedule = self.manager.deactivate_schedule(pk, actor=acting_staff(request))
        return Response(StaffScheduleSerializer(schedule).data)

    @action(detail=True, methods=["post"])
    def reactivate(self, request, pk=None):
        schedule = self.manager.reactivate_schedule(pk, actor=acting_staff(request))
        return Response(StaffScheduleSerializer(schedule).data)


class TimeOffViewSet(viewsets.ViewSet):
    permission_classes = [IsStaffMember]
    ledger = TimeOffLedger()

    def list(self, request):
        staff = get_scoped(Staff, _target_staff_id(request, {}), tenant=acting_tenant_id(request), label="Staff")
        return Response(TimeOffRequestSerializer(self.ledger.list_for_staff(staff), many=True).data)

    def create(self, request):
        payload = TimeOffCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        time_off = self.ledger.request_time_off(
            _target_staff_id(request, data),
            data["type"],
            data["start_date"],
            data["end_date"],
            reason=data["reason"],
            actor=acting_staff(request),
        )
        return Response(TimeOffRequestSerializer(time_off).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def pending(self, request):
        actor = acting_staff(request)
        if actor is None:
            raise ValidationError("Pending requests are listed per business; sign in as a staff member.")
        return Response(TimeOffRequestSerializer(self.ledger.pending_for_tenant(actor.tenant_id), many=True).data)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        time_off = self.ledger.approve(pk, acting_staff(request))
        return Response(TimeOffRequestSerializer(time_off).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        payload = RejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        time_off = self.ledger.reject(pk, acting_staff(request), payload.validated_data["reason"])
        return Response(TimeOffRequestSerializer(time_off).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        time_off = self.ledger.cancel(pk, actor=acting_staff(request))
        return Response(TimeOffRequestSerializer(time_off).data)

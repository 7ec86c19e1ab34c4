"""
schedule_manager.py
-------------------
Maintains StaffSchedule rows: weekly working windows and one-day overrides.

Rules:
- exactly one of day_of_week (ISO 1..7) or specific_date
- start_time < end_time
- at most one break, strictly inside the window (break_start < break_end)
- one active recurring row per (staff, weekday), one active override per
  (staff, date); a duplicate raises ConflictError
- the actor must be the staff member or an Owner/Manager of the same tenant

Rows are never deleted: deactivate_schedule() flips is_active and stamps
deactivated_at, and the resolver ignores inactive rows.
"""

import logging
from datetime import time

from django.db import IntegrityError, transaction
from django.utils import timezone

from staff.models import StaffSchedule, Weekday

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Staff
from ..tenancy import ensure_can_manage_staff, get_scoped
from .slot_utils import _parse_hhmm, coerce_date

logger = logging.getLogger(__name__)


def _coerce_time(value, field):
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return _parse_hhmm(str(value))
    except (ValueError, AttributeError):
        raise ValidationError(f"{field} must be a time (HH:MM).")


def _normalize_breaks(breaks, break_start=None, break_end=None):
    """
    Accepts either break_start/break_end or a list holding at most one break,
    given as {"start": ..., "end": ...} or a (start, end) pair.
    """
    if breaks:
        if len(breaks) > 1:
            raise ValidationError("Only one break per schedule is supported.")
        item = breaks[0]
        if isinstance(item, dict):
            break_start, break_end = item.get("start"), item.get("end")
        else:
            break_start, break_end = item
    break_start = _coerce_time(break_start, "break_start")
    break_end = _coerce_time(break_end, "break_end")
    if (break_start is None) != (break_end is None):
        raise ValidationError("A break needs both a start and an end.")
    return break_start, break_end


def _validate_window(start_time, end_time, break_start, break_end):
    if start_time is None or end_time is None:
        raise ValidationError("start_time and end_time are required.")
    if start_time >= end_time:
        raise ValidationError("End time must be after start time.")
    if break_start is not None:
        if break_start >= break_end:
            raise ValidationError("Break end must be after break start.")
        if break_start < start_time or break_end > end_time:
            raise ValidationError("The break must be within working hours.")


def _validate_day(day_of_week, specific_date):
    if (day_of_week is None) == (specific_date is None):
        raise ValidationError("Provide exactly one of day_of_week or specific_date.")
    if day_of_week is not None:
        try:
            day_of_week = int(day_of_week)
        except (TypeError, ValueError):
            raise ValidationError("day_of_week must be an ISO weekday number (1=Monday .. 7=Sunday).")
        if day_of_week not in Weekday.values:
            raise ValidationError("day_of_week must be an ISO weekday number (1=Monday .. 7=Sunday).")
        return day_of_week, None
    parsed = coerce_date(specific_date)
    if parsed is None:
        raise ValidationError("specific_date must be a date (YYYY-MM-DD).")
    return None, parsed


class ScheduleManager:
    def set_schedule(
        self,
        staff_id,
        start_time,
        end_time,
        day_of_week=None,
        specific_date=None,
        breaks=None,
        break_start=None,
        break_end=None,
        actor=None,
    ):
        """
        Create an active schedule row for a staff member.

        Raises:
            NotFoundError: unknown staff (or another tenant's, when actor given)
            UnauthorizedError: actor may not edit this staff member's calendar
            ValidationError: bad window, break or day
            ConflictError: an active row already exists for that weekday/date
        """
        staff = get_scoped(Staff, staff_id, tenant=actor.tenant_id if actor else None, label="Staff")
        ensure_can_manage_staff(actor, staff)

        day_of_week, specific_date = _validate_day(day_of_week, specific_date)
        start_time = _coerce_time(start_time, "start_time")
        end_time = _coerce_time(end_time, "end_time")
        break_start, break_end = _normalize_breaks(breaks, break_start, break_end)
        _validate_window(start_time, end_time, break_start, break_end)

        if self._active_duplicate(staff, day_of_week, specific_date).exists():
            raise ConflictError(self._duplicate_message(day_of_week), code="schedule_exists")

        try:
            with transaction.atomic():
                schedule = StaffSchedule.objects.create(
                    staff=staff,
                    day_of_week=day_of_week,
                    specific_date=specific_date,
                    start_time=start_time,
                    end_time=end_time,
                    break_start=break_start,
                    break_end=break_end,
                )
        except IntegrityError:
            raise ConflictError(self._duplicate_message(day_of_week), code="schedule_exists")

        logger.info("Schedule %s created for staff %s", schedule.pk, staff.pk)
        return schedule

    def update_schedule(self, schedule_id, start_time=None, end_time=None, breaks=None,
                        break_start=None, break_end=None, clear_break=False, actor=None):
        """
        Change the window and/or break of an existing row. The weekday/date
        itself is fixed; deactivate and create a new row to move it.
        """
        schedule = self._get(schedule_id, actor)
        ensure_can_manage_staff(actor, schedule.staff)

        start_time = _coerce_time(start_time, "start_time") or schedule.start_time
        end_time = _coerce_time(end_time, "end_time") or schedule.end_time
        if clear_break:
            new_break = (None, None)
        elif breaks is not None or break_start is not None or break_end is not None:
            new_break = _normalize_breaks(breaks, break_start, break_end)
        else:
            new_break = (schedule.break_start, schedule.break_end)
        _validate_window(start_time, end_time, *new_break)

        schedule.start_time, schedule.end_time = start_time, end_time
        schedule.break_start, schedule.break_end = new_break
        schedule.save(update_fields=["start_time", "end_time", "break_start", "break_end", "updated_at"])

        logger.info("Schedule %s updated", schedule.pk)
        return schedule

    def deactivate_schedule(self, schedule_id, actor=None):
        schedule = self._get(schedule_id, actor)
        ensure_can_manage_staff(actor, schedule.staff)
        if schedule.is_active:
            schedule.is_active = False
            schedule.deactivated_at = timezone.now()
            schedule.save(update_fields=["is_active", "deactivated_at", "updated_at"])
            logger.info("Schedule %s deactivated", schedule.pk)
        return schedule

    def reactivate_schedule(self, schedule_id, actor=None):
        schedule = self._get(schedule_id, actor)
        ensure_can_manage_staff(actor, schedule.staff)
        if schedule.is_active:
            return schedule

        duplicate = self._active_duplicate(schedule.staff, schedule.day_of_week, schedule.specific_date)
        if duplicate.exclude(pk=schedule.pk).exists():
            raise ConflictError(self._duplicate_message(schedule.day_of_week), code="schedule_exists")

        schedule.is_active = True
        schedule.deactivated_at = None
        try:
            with transaction.atomic():
                schedule.save(update_fields=["is_active", "deactivated_at", "updated_at"])
        except IntegrityError:
            raise ConflictError(self._duplicate_message(schedule.day_of_week), code="schedule_exists")

        logger.info("Schedule %s reactivated", schedule.pk)
        return schedule

    def list_schedules(self, staff_id, include_inactive=False, tenant=None):
        staff = get_scoped(Staff, staff_id, tenant=tenant, label="Staff")
        qs = StaffSchedule.objects.filter(staff=staff)
        if not include_inactive:
            qs = qs.filter(is_active=True)
        return qs.order_by("specific_date", "day_of_week", "start_time")

    # -------------------- helpers --------------------
    def _get(self, schedule_id, actor):
        qs = StaffSchedule.objects.select_related("staff")
        schedule = get_scoped(StaffSchedule, schedule_id, label="Schedule", queryset=qs)
        if actor is not None and schedule.staff.tenant_id != actor.tenant_id:
            raise NotFoundError("Schedule not found.")
        return schedule

    def _active_duplicate(self, staff, day_of_week, specific_date):
        qs = StaffSchedule.objects.filter(staff=staff, is_active=True)
        if specific_date is not None:
            return qs.filter(specific_date=specific_date, day_of_week__isnull=True)
        return qs.filter(day_of_week=day_of_week, specific_date__isnull=True)

    def _duplicate_message(self, day_of_week):
        if day_of_week is not None:
            return "An active schedule already exists for this day."
        return "An active schedule already exists for this date."

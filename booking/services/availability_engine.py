"""
availability_engine.py
----------------------
Computes the bookable slots of one staff member on one date.

A candidate slot [cs, ce) starts at the working-window start and advances by
the configured slot interval (30 minutes by default, independent of the
service duration) while ce <= window end. A candidate is dropped when:
1) cs is not strictly after "now",
2) it overlaps a break window,
3) it overlaps a live appointment of the staff member.
The whole day is empty when the staff member does not work that date or is on
approved leave.

Results are recomputed on every call and never cached: bookings change
between queries. Appointments for the day are loaded once per call.

Change log:
- Replaces the old fixed business-hours grid: windows now come from
  StaffSchedule (WorkingHoursResolver) and leave from the TimeOffLedger.
- Overlap uses the half-open rule shared with ConflictDetector, so back-to-back
  slots are offered.
"""

from dataclasses import dataclass
from datetime import date, time, timedelta

from django.utils import timezone

from ..exceptions import ValidationError
from ..models import Staff
from .conflict_detector import ConflictDetector
from .slot_utils import get_slot_interval_minutes, overlaps
from .time_off import TimeOffLedger
from .working_hours import WorkingHoursResolver


@dataclass(frozen=True)
class AvailableSlot:
    date: date
    start_time: time
    end_time: time
    duration_minutes: int
    starts_at: object = None
    ends_at: object = None

    def as_dict(self):
        return {
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "duration_minutes": self.duration_minutes,
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
        }


class AvailabilityEngine:
    def __init__(self, working_hours=None, time_off=None, conflicts=None):
        self.working_hours = working_hours or WorkingHoursResolver()
        self.time_off = time_off or TimeOffLedger()
        self.conflicts = conflicts or ConflictDetector()

    def generate_slots(self, staff, day: date, duration_minutes: int, now=None):
        """
        Ordered list of AvailableSlot for `staff` on `day`.

        Args:
            staff: Staff instance or pk
            day: calendar date (interpreted in the current timezone)
            duration_minutes: service duration
            now: reference instant for the "in the future" rule (defaults to timezone.now())
        """
        try:
            duration_minutes = int(duration_minutes)
        except (TypeError, ValueError):
            raise ValidationError("Duration must be a whole number of minutes.")
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive.")

        hours = self.working_hours.resolve(staff, day)
        if not hours.is_working_day:
            return []
        if self.time_off.has_approved_overlap(staff, day, day):
            return []

        now = now or timezone.now()
        window_start, window_end = hours.window()
        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=get_slot_interval_minutes())
        breaks = hours.break_windows()
        busy = self.conflicts.busy_intervals(staff, window_start, window_end)

        slots = []
        current = window_start
        while current + duration <= window_end:
            candidate_end = current + duration
            if (
                current > now
                and not any(overlaps(current, candidate_end, b_start, b_end) for b_start, b_end in breaks)
                and not any(overlaps(current, candidate_end, a_start, a_end) for a_start, a_end in busy)
            ):
                local_start = timezone.localtime(current)
                local_end = timezone.localtime(candidate_end)
                slots.append(
                    AvailableSlot(
                        date=day,
                        start_time=local_start.time(),
                        end_time=local_end.time(),
                        duration_minutes=duration_minutes,
                        starts_at=current,
                        ends_at=candidate_end,
                    )
                )
            current += step

        return slots


    # -------------------- point checks --------------------
    def unavailable_reason(self, staff, start, end, exclude_appointment_id=None):
        """
        Why `staff` cannot take [start, end), or None when it can.

        Returns one of "outside_working_hours", "staff_on_leave",
        "slot_unavailable". Checks run in that order; only the last one
        queries appointments.
        """
        day = timezone.localtime(start).date()
        if not self.working_hours.resolve(staff, day).fits(start, end):
            return "outside_working_hours"
        if self.time_off.has_approved_overlap(staff, day, timezone.localtime(end).date()):
            return "staff_on_leave"
        if self.conflicts.has_conflict(staff, start, end, exclude_appointment_id):
            return "slot_unavailable"
        return None

    def is_staff_available(self, staff, start, end, exclude_appointment_id=None) -> bool:
        """
        True when an ACTIVE staff member could be booked for [start, end):
        inside working hours, clear of breaks and approved leave, and not
        overlapping a live appointment.
        """
        if getattr(staff, "status", Staff.Status.ACTIVE) != Staff.Status.ACTIVE:
            return False
        return self.unavailable_reason(staff, start, end, exclude_appointment_id) is None

"""
conflict_detector.py
--------------------
Double-booking detection for one staff member.

Two intervals [s1, e1) and [s2, e2) conflict iff s1 < e2 AND s2 < e1, so an
appointment ending at 10:00 and one starting at 10:00 do not conflict.
Only non-cancelled appointments count. exclude_appointment_id lets a
reschedule re-validate without conflicting with its own current interval.

Change log:
- Overlap is evaluated in the database (start_time < end AND end_time > start)
  now that Appointment stores end_time, instead of recomputing end times from
  service durations in Python.
"""

from ..models import Appointment, AppointmentStatus


class ConflictDetector:
    def conflicting(self, staff, start, end, exclude_appointment_id=None):
        """QuerySet of live appointments of `staff` overlapping [start, end)."""
        qs = (
            Appointment.objects.filter(
                staff_id=getattr(staff, "pk", staff),
                start_time__lt=end,
                end_time__gt=start,
            )
            .exclude(status=AppointmentStatus.CANCELLED)
        )
        if exclude_appointment_id is not None:
            qs = qs.exclude(pk=exclude_appointment_id)
        return qs

    def has_conflict(self, staff, start, end, exclude_appointment_id=None) -> bool:
        return self.conflicting(staff, start, end, exclude_appointment_id).exists()

    def busy_intervals(self, staff, range_start, range_end):
        """
        (start, end) pairs of live appointments touching [range_start, range_end),
        ordered by start. Lets the slot generator check a whole day with one query.
        """
        return list(
            self.conflicting(staff, range_start, range_end)
            .order_by("start_time")
            .values_list("start_time", "end_time")
        )

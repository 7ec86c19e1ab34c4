"""
working_hours.py
----------------
Resolves when a staff member works on a given calendar date.

Lookup order:
1) an active one-day override (StaffSchedule.specific_date == date)
2) the active recurring schedule for the date's ISO weekday
3) configured default working hours, only for staff with no active schedule
   rows at all (see slot_utils.get_default_working_hours; off by default)

No matching record is not an error: it is the "not working" answer.
Deactivated rows are invisible here (soft delete).
"""

from dataclasses import dataclass, field
from datetime import date, time

from staff.models import StaffSchedule

from .slot_utils import combine, get_default_working_hours, local_date, overlaps


@dataclass(frozen=True)
class Break:
    start: time
    end: time
    reason: str = "Break"


@dataclass(frozen=True)
class WorkingHours:
    date: date
    is_working_day: bool
    start_time: time | None = None
    end_time: time | None = None
    breaks: tuple = field(default_factory=tuple)
    source: str | None = None  # "override", "recurring" or "default"

    def window(self):
        """Aware [start, end) datetimes of the working window."""
        if not self.is_working_day:
            return None
        return combine(self.date, self.start_time), combine(self.date, self.end_time)

    def break_windows(self):
        return [(combine(self.date, b.start), combine(self.date, b.end)) for b in self.breaks]

    def overlaps_break(self, start, end) -> bool:
        return any(overlaps(start, end, b_start, b_end) for b_start, b_end in self.break_windows())

    def fits(self, start, end) -> bool:
        """
        True when [start, end) lies inside the working window of this date
        and clear of every break.
        """
        if not self.is_working_day or local_date(start) != self.date:
            return False
        win_start, win_end = self.window()
        if start < win_start or end > win_end:
            return False
        return not self.overlaps_break(start, end)

    def as_dict(self):
        return {
            "date": self.date.isoformat(),
            "is_working_day": self.is_working_day,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "breaks": [
                {"start": b.start.strftime("%H:%M"), "end": b.end.strftime("%H:%M"), "reason": b.reason}
                for b in self.breaks
            ],
            "source": self.source,
        }


def _staff_id(staff):
    return getattr(staff, "pk", staff)


def _from_schedule(schedule: StaffSchedule, day: date, source: str) -> WorkingHours:
    breaks = ()
    if schedule.break_start and schedule.break_end:
        breaks = (Break(schedule.break_start, schedule.break_end),)
    return WorkingHours(
        date=day,
        is_working_day=True,
        start_time=schedule.start_time,
        end_time=schedule.end_time,
        breaks=breaks,
        source=source,
    )


class WorkingHoursResolver:
    def resolve(self, staff, day: date) -> WorkingHours:
        staff_id = _staff_id(staff)
        active = StaffSchedule.objects.filter(staff_id=staff_id, is_active=True)

        override = active.filter(specific_date=day).first()
        if override is not None:
            return _from_schedule(override, day, "override")

        recurring = active.filter(
            specific_date__isnull=True, day_of_week=day.isoweekday()
        ).first()
        if recurring is not None:
            return _from_schedule(recurring, day, "recurring")

        default = get_default_working_hours()
        if default is not None and not active.exists():
            return WorkingHours(
                date=day,
                is_working_day=True,
                start_time=default[0],
                end_time=default[1],
                source="default",
            )

        return WorkingHours(date=day, is_working_day=False)

    def window_for(self, staff, day: date):
        """Aware [start, end) working window of `staff` on `day`, or None when off."""
        return self.resolve(staff, day).window()

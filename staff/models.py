# staff/models.py
#
# Purpose:
# - Working schedules and time-off requests, both owned by booking.Staff.
#
# Design:
# - StaffSchedule rows are either recurring (day_of_week) or a one-day override
#   (specific_date), never both. Removal is a soft deactivation so history stays.
# - TimeOffRequest dates are inclusive; status transitions live in
#   booking/services/time_off.py.
#
from django.db import models
from django.db.models import F, Q


class Weekday(models.IntegerChoices):
    """ISO weekday numbers, same as date.isoweekday()."""
    MONDAY = 1, "Monday"
    TUESDAY = 2, "Tuesday"
    WEDNESDAY = 3, "Wednesday"
    THURSDAY = 4, "Thursday"
    FRIDAY = 5, "Friday"
    SATURDAY = 6, "Saturday"
    SUNDAY = 7, "Sunday"


class StaffSchedule(models.Model):
    """
    Working window for a staff member, recurring weekly or for one date.
    Points to booking.Staff to avoid having two Staff models.
    """
    staff = models.ForeignKey(
        "booking.Staff",
        on_delete=models.CASCADE,
        related_name="schedules",
    )
    day_of_week = models.PositiveSmallIntegerField(choices=Weekday.choices, null=True, blank=True)
    specific_date = models.DateField(null=True, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["staff_id", "day_of_week", "specific_date", "start_time"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(day_of_week__isnull=False, specific_date__isnull=True)
                    | Q(day_of_week__isnull=True, specific_date__isnull=False)
                ),
                name="schedule_day_xor_date",
            ),
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="schedule_start_before_end",
            ),
            models.UniqueConstraint(
                fields=["staff", "day_of_week"],
                condition=Q(is_active=True, specific_date__isnull=True),
                name="uniq_active_recurring_schedule",
            ),
            models.UniqueConstraint(
                fields=["staff", "specific_date"],
                condition=Q(is_active=True, day_of_week__isnull=True),
                name="uniq_active_date_override",
            ),
        ]

    @property
    def is_recurring(self) -> bool:
        return self.specific_date is None

    def __str__(self):
        when = self.specific_date or Weekday(self.day_of_week).label
        return f"{self.staff.name}: {when} {self.start_time}-{self.end_time}"


class TimeOffRequest(models.Model):
    class Type(models.TextChoices):
        VACATION = "VACATION", "Vacation"
        SICK_LEAVE = "SICK_LEAVE", "Sick leave"
        EMERGENCY = "EMERGENCY", "Emergency"
        PERSONAL = "PERSONAL", "Personal"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"
        CANCELLED = "CANCELLED", "Cancelled"

    staff = models.ForeignKey(
        "booking.Staff",
        on_delete=models.CASCADE,
        related_name="time_off_requests",
    )
    tenant = models.ForeignKey(
        "booking.Tenant",
        on_delete=models.CASCADE,
        related_name="time_off_requests",
    )
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.VACATION)
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    approved_by = models.ForeignKey(
        "booking.Staff",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_time_off",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_date__lte=F("end_date")),
                name="time_off_start_not_after_end",
            ),
        ]

    @property
    def days_requested(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.staff.name}: {self.start_date} - {self.end_date} ({self.status})"

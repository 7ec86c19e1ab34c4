# staff/admin.py
from django.contrib import admin
from .models import StaffSchedule, TimeOffRequest


@admin.register(StaffSchedule)
class StaffScheduleAdmin(admin.ModelAdmin):
    list_display = ("staff", "day_of_week", "specific_date", "start_time", "end_time", "break_start", "break_end", "is_active")
    list_filter = ("is_active", "day_of_week", "staff")
    search_fields = ("staff__name",)


@admin.register(TimeOffRequest)
class TimeOffRequestAdmin(admin.ModelAdmin):
    list_display = ("staff", "type", "start_date", "end_date", "status", "approved_by")
    list_filter = ("status", "type")
    search_fields = ("staff__name", "reason")

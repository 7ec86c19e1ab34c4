from rest_framework import serializers

from .models import StaffSchedule, TimeOffRequest


class StaffScheduleSerializer(serializers.ModelSerializer):
    breaks = serializers.SerializerMethodField()

    class Meta:
        model = StaffSchedule
        fields = [
            "id",
            "staff",
            "day_of_week",
            "specific_date",
            "start_time",
            "end_time",
            "break_start",
            "break_end",
            "breaks",
            "is_active",
            "deactivated_at",
        ]
        read_only_fields = fields

    def get_breaks(self, obj):
        if obj.break_start and obj.break_end:
            return [{"start": obj.break_start.strftime("%H:%M"), "end": obj.break_end.strftime("%H:%M")}]
        return []


class BreakSerializer(serializers.Serializer):
    start = serializers.TimeField()
    end = serializers.TimeField()


class ScheduleWriteSerializer(serializers.Serializer):
    """Payload for POST/PATCH /api/staff/schedules/. Range rules live in ScheduleManager."""
    staff = serializers.IntegerField(required=False)
    day_of_week = serializers.IntegerField(required=False, allow_null=True)
    specific_date = serializers.DateField(required=False, allow_null=True)
    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    break_start = serializers.TimeField(required=False, allow_null=True)
    break_end = serializers.TimeField(required=False, allow_null=True)
    breaks = BreakSerializer(many=True, required=False)


class TimeOffRequestSerializer(serializers.ModelSerializer):
    days_requested = serializers.IntegerField(read_only=True)
    staff_name = serializers.CharField(source="staff.name", read_only=True)

    class Meta:
        model = TimeOffRequest
        fields = [
            "id",
            "staff",
            "staff_name",
            "type",
            "start_date",
            "end_date",
            "days_requested",
            "reason",
            "status",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "created_at",
        ]
        read_only_fields = fields


class TimeOffCreateSerializer(serializers.Serializer):
    staff = serializers.IntegerField(required=False)
    type = serializers.ChoiceField(choices=TimeOffRequest.Type.choices, default=TimeOffRequest.Type.VACATION)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True)

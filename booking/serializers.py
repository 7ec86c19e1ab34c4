from rest_framework import serializers

from .models import Appointment, AppointmentStatus, ClientProfile, Service, Staff


class ClientProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClientProfile
        fields = ["id", "name", "email", "phone"]  # include phone


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "salon", "name", "description", "duration_minutes", "price", "active"]


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ["id", "salon", "name", "role"]


class AppointmentSerializer(serializers.ModelSerializer):
    """Read representation; writes go through BookingManager."""
    service_name = serializers.CharField(source="service.name", read_only=True)
    staff_name = serializers.CharField(source="staff.name", read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "salon",
            "service",
            "service_name",
            "staff",
            "staff_name",
            "customer",
            "customer_name",
            "start_time",
            "end_time",
            "status",
            "total_price",
            "notes",
            "customer_notes",
            "cancellation_reason",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# -------------------- command payloads --------------------
# Plain serializers: they only check shape. Business rules (future start,
# working hours, overlaps, tenancy) are enforced by the services so that the
# API and any other caller get the same typed errors.

class AppointmentCreateSerializer(serializers.Serializer):
    salon = serializers.IntegerField()
    service = serializers.IntegerField()
    staff = serializers.IntegerField()
    customer = serializers.IntegerField(required=False)
    start_time = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    customer_notes = serializers.CharField(required=False, allow_blank=True, default="")


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class RescheduleSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField()
    staff = serializers.IntegerField(required=False, allow_null=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AvailabilityCheckSerializer(serializers.Serializer):
    """Either duration_minutes or service sizes the interval."""
    staff = serializers.IntegerField()
    start_time = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField(required=False, min_value=1)
    service = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if "duration_minutes" not in attrs and "service" not in attrs:
            raise serializers.ValidationError("Provide 'duration_minutes' or 'service'.")
        return attrs

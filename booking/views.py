# booking/views.py
#
# Purpose:
# - JSON API over the scheduling engine:
#   * /api/appointments/            create (public) and list (staff)
#   * /api/appointments/{id}/status|reschedule|cancel/
#   * /api/availability/slots|salon|staff|working-hours/   (public)
#   * /api/availability/check/      one staff member at one time (staff)
#   * /api/clients/, /api/services/  public booking flow helpers
# - Permissions:
#   * Booking creation requires NO login. Public flow: create client -> create appointment.
#   * Listing and status changes are staff-only and limited to the staff
#     member's tenant.
#
# Notes for developers:
# - Views only parse input and pick the caller's tenant. Every rule lives in
#   booking/services; their SchedulingError subclasses are rendered by
#   booking.exceptions.scheduling_exception_handler (400/403/404/409 + "code").
#
import re
from datetime import timedelta

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .exceptions import UnauthorizedError, ValidationError
from .models import Appointment, ClientProfile, Service, Staff
from .permissions import IsStaffMember, acting_staff, acting_tenant_id
from .serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AvailabilityCheckSerializer,
    CancelSerializer,
    ClientProfileSerializer,
    RescheduleSerializer,
    ServiceSerializer,
    StaffSerializer,
    StatusUpdateSerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.booking_manager import BookingManager
from .services.catalog import get_service, services_for_salon
from .services.salon_availability import SalonAvailability
from .services.slot_utils import coerce_date, day_range, make_aware
from .services.working_hours import WorkingHoursResolver
from .tenancy import get_scoped

PHONE_RE = re.compile(r"^\d{7,15}$")


# -------------------- query helpers --------------------
def _required(params, name):
    value = (params.get(name) or "").strip()
    if not value:
        raise ValidationError(f"Missing '{name}'.")
    return value


def _query_date(params, name="date"):
    """
    Accepts YYYY-MM-DD, also inputs that include time (trimmed to the date part).
    """
    day = coerce_date(_required(params, name))
    if day is None:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
    return day


def _query_instant(params, name, end_of_day=False):
    """Optional datetime filter: ISO datetime, or a bare date (start/end of that day)."""
    raw = (params.get(name) or "").strip()
    if not raw:
        return None
    dt = parse_datetime(raw)
    if dt is not None:
        return make_aware(dt)
    day = coerce_date(raw)
    if day is None:
        raise ValidationError(f"Invalid '{name}'. Use an ISO date or datetime.")
    start, end = day_range(day)
    return end if end_of_day else start


def _query_int(params, name, required=True):
    raw = (params.get(name) or "").strip()
    if not raw:
        if required:
            raise ValidationError(f"Missing '{name}'.")
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer id.")


# -------------------- Clients & catalog --------------------
class ClientProfileViewSet(mixins.CreateModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = ClientProfile.objects.all().order_by("id")
    serializer_class = ClientProfileSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        """
        Create-or-reuse ClientProfile with normalized (trimmed) fields.
        - Existing profile matched by (name, email) case-insensitively and exact phone.
        - If found, return the existing profile (200 OK).
        - If not found, create a new one (201 Created).
        """
        name = (request.data.get("name") or "").strip()
        email = (request.data.get("email") or "").strip()
        phone = (request.data.get("phone") or "").strip()

        if not name or not email or not phone:
            return Response({"detail": "name, email, and phone are required."}, status=400)
        if not PHONE_RE.match(phone):
            return Response({"detail": "Phone must be digits only, 7 to 15 digits."}, status=400)

        existing = ClientProfile.objects.filter(
            name__iexact=name,
            email__iexact=email,
            phone=phone,
        ).first()
        if existing:
            return Response(self.get_serializer(existing).data, status=200)

        serializer = self.get_serializer(data={"name": name, "email": email, "phone": phone})
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=201, headers=headers)


class ServiceViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Read-only catalog. GET /api/services/?salon=ID lists active services of a salon.
    """
    serializer_class = ServiceSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        salon_id = _query_int(self.request.query_params, "salon", required=False)
        if salon_id is not None:
            return services_for_salon(salon_id)
        return Service.objects.filter(active=True).order_by("id")

    def retrieve(self, request, pk=None):
        return Response(self.get_serializer(get_service(pk)).data)


# -------------------- Appointments --------------------
class AppointmentViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Endpoints:
    - POST /api/appointments/                    create (public)
    - GET  /api/appointments/?staff=&salon=&customer=&status=&start=&end=
    - POST /api/appointments/{id}/status/        {"status": "...", "reason": "..."}
    - POST /api/appointments/{id}/reschedule/    {"start_time": "...", "staff": id?}
    - POST /api/appointments/{id}/cancel/        {"reason": "..."}
    """
    serializer_class = AppointmentSerializer
    manager = BookingManager()

    def get_permissions(self):
        if self.action == "create":
            return [AllowAny()]
        if self.action == "cancel":
            return [IsAuthenticated()]
        return [IsStaffMember()]

    def get_queryset(self):
        qs = Appointment.objects.select_related("service", "staff", "customer").order_by("start_time")
        tenant_id = acting_tenant_id(self.request)
        if tenant_id is not None:
            qs = qs.filter(tenant_id=tenant_id)
        return qs

    def list(self, request, *args, **kwargs):
        params = request.query_params
        tenant_id = acting_tenant_id(request)
        start = _query_instant(params, "start")
        end = _query_instant(params, "end", end_of_day=True)
        status_filter = (params.get("status") or "").strip() or None

        staff_id = _query_int(params, "staff", required=False)
        salon_id = _query_int(params, "salon", required=False)
        customer_id = _query_int(params, "customer", required=False)
        if staff_id is not None:
            qs = self.manager.appointments_for_staff(staff_id, tenant=tenant_id, start=start, end=end, status=status_filter)
        elif salon_id is not None:
            qs = self.manager.appointments_for_salon(salon_id, tenant=tenant_id, start=start, end=end, status=status_filter)
        elif customer_id is not None:
            qs = self.manager.appointments_for_customer(customer_id, start=start, end=end, status=status_filter)
            if tenant_id is not None:
                qs = qs.filter(tenant_id=tenant_id)
        else:
            raise ValidationError("Provide one of 'staff', 'salon' or 'customer'.")

        return Response(self.get_serializer(qs, many=True).data)

    def create(self, request, *args, **kwargs):
        """
        Book an appointment. Requires: salon, service, staff, start_time (ISO),
        and customer (ClientProfile id) unless the caller is a logged-in client.
        Returns 201 with status PENDING; 409 when the slot is taken.
        """
        payload = AppointmentCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        customer_id = data.get("customer")
        if customer_id is None:
            profile = getattr(request.user, "client_profile", None) if request.user.is_authenticated else None
            if profile is None:
                raise ValidationError("Missing 'customer'.")
            customer_id = profile.pk

        appointment = self.manager.create_appointment(
            service_id=data["service"],
            staff_id=data["staff"],
            salon_id=data["salon"],
            customer_id=customer_id,
            start_time=data["start_time"],
            notes=data["notes"],
            customer_notes=data["customer_notes"],
        )
        out = AppointmentSerializer(appointment)
        headers = self.get_success_headers(out.data)
        return Response(out.data, status=status.HTTP_201_CREATED, headers=headers)

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        payload = StatusUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        appointment = self.manager.update_status(
            pk,
            payload.validated_data["status"],
            reason=payload.validated_data["reason"],
            tenant=acting_tenant_id(request),
        )
        return Response(AppointmentSerializer(appointment).data)

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):
        payload = RescheduleSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        appointment = self.manager.reschedule_appointment(
            pk,
            payload.validated_data["start_time"],
            new_staff_id=payload.validated_data.get("staff"),
            tenant=acting_tenant_id(request),
        )
        return Response(AppointmentSerializer(appointment).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        """
        Staff of the tenant, or the customer who owns the appointment.
        """
        payload = CancelSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        tenant_id = None
        if acting_staff(request) is not None:
            tenant_id = acting_tenant_id(request)
        elif not request.user.is_superuser:
            appointment = get_scoped(Appointment, pk, label="Appointment")
            profile = getattr(request.user, "client_profile", None)
            if profile is None or profile.pk != appointment.customer_id:
                raise UnauthorizedError("You can only cancel your own appointments.")

        appointment = self.manager.cancel_appointment(pk, reason=payload.validated_data["reason"], tenant=tenant_id)
        return Response(AppointmentSerializer(appointment).data)


# -------------------- Availability --------------------
class AvailabilityViewSet(viewsets.ViewSet):
    """
    Read-only availability. Results are computed per request, never cached.
    Everything is public except check/, which is for salon staff.
    """
    permission_classes = [AllowAny]
    engine = AvailabilityEngine()
    resolver = WorkingHoursResolver()

    @action(detail=False, methods=["get"])
    def slots(self, request):
        """
        GET /api/availability/slots/?staff=ID&date=YYYY-MM-DD&duration=MIN
        or  /api/availability/slots/?staff=ID&date=YYYY-MM-DD&service=ID
        """
        params = request.query_params
        staff = get_scoped(Staff, _query_int(params, "staff"), label="Staff")
        day = _query_date(params)

        service_id = _query_int(params, "service", required=False)
        if service_id is not None:
            duration = get_service(service_id, tenant=staff.tenant_id, salon=staff.salon_id).duration_minutes
        else:
            duration = _required(params, "duration")

        slots = self.engine.generate_slots(staff, day, duration, now=timezone.now())
        return Response({"staff": staff.pk, "date": day.isoformat(), "slots": [s.as_dict() for s in slots]})

    @action(detail=False, methods=["get"])
    def salon(self, request):
        """
        GET /api/availability/salon/?salon=ID&service=ID&date=YYYY-MM-DD
        """
        params = request.query_params
        salon_id = _query_int(params, "salon")
        service_id = _query_int(params, "service")
        day = _query_date(params)

        result = SalonAvailability(self.engine).aggregate(salon_id, service_id, day, now=timezone.now())
        staff = [
            {"staff": staff_id, "slots": [s.as_dict() for s in slots]}
            for staff_id, slots in result.items()
        ]
        return Response({"salon": salon_id, "service": service_id, "date": day.isoformat(), "staff": staff})

    @action(detail=False, methods=["get"], url_path="working-hours")
    def working_hours(self, request):
        """
        GET /api/availability/working-hours/?staff=ID&date=YYYY-MM-DD
        """
        params = request.query_params
        staff = get_scoped(Staff, _query_int(params, "staff"), label="Staff")
        day = _query_date(params)
        return Response(self.resolver.resolve(staff, day).as_dict())

    @action(detail=False, methods=["get"], url_path="staff")
    def available_staff(self, request):
        """
        GET /api/availability/staff/?salon=ID&service=ID&start=ISO-DATETIME
        Staff who can take the service starting exactly at `start`.
        """
        params = request.query_params
        salon_id = _query_int(params, "salon")
        service_id = _query_int(params, "service")
        try:
            start = parse_datetime(_required(params, "start"))
        except ValueError:
            start = None
        if start is None:
            raise ValidationError("Invalid 'start'. Use an ISO datetime.")
        start = make_aware(start)

        staff = SalonAvailability(self.engine).available_staff(salon_id, service_id, start, now=timezone.now())
        return Response({
            "salon": salon_id,
            "service": service_id,
            "start_time": start.isoformat(),
            "staff": StaffSerializer(staff, many=True).data,
        })

    @action(detail=False, methods=["post"], permission_classes=[IsStaffMember])
    def check(self, request):
        """
        POST /api/availability/check/  {"staff": ID, "start_time": ISO, "duration_minutes": N | "service": ID}
        """
        payload = AvailabilityCheckSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        staff = get_scoped(Staff, data["staff"], tenant=acting_tenant_id(request), label="Staff")
        if "service" in data:
            duration = get_service(data["service"], tenant=staff.tenant_id, salon=staff.salon_id).duration_minutes
        else:
            duration = data["duration_minutes"]
        start = make_aware(data["start_time"])
        end = start + timedelta(minutes=duration)

        return Response({
            "staff": staff.pk,
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "available": self.engine.is_staff_available(staff, start, end),
        })

# booking/tests/helpers.py
#
# Shared fixtures: one tenant with a salon, a 60-minute service, a manager and
# a stylist working Monday 09:00-18:00 with a 13:00-14:00 break.
#
from datetime import time, timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.utils import timezone

from booking.models import Appointment, AppointmentStatus, ClientProfile, Salon, Service, Staff, Tenant
from booking.services.slot_utils import combine
from staff.models import StaffSchedule


def next_weekday(isoweekday, from_day=None):
    """First date strictly after from_day (default today) falling on isoweekday."""
    from_day = from_day or timezone.localdate()
    days = (isoweekday - from_day.isoweekday()) % 7 or 7
    return from_day + timedelta(days=days)


def at(day, hour, minute=0):
    return combine(day, time(hour, minute))


def make_business(slug="acme"):
    tenant = Tenant.objects.create(name=slug.title(), slug=slug)
    salon = Salon.objects.create(tenant=tenant, name=f"{slug} salon")
    service = Service.objects.create(
        tenant=tenant,
        salon=salon,
        name="Haircut",
        duration_minutes=60,
        price=Decimal("40.00"),
    )
    return tenant, salon, service


def make_staff(tenant, salon, name="Maria", role=Staff.Role.STAFF, user=None, **extra):
    return Staff.objects.create(
        tenant=tenant,
        salon=salon,
        name=name,
        email=f"{name.lower()}.{tenant.slug}@salon.test",
        role=role,
        user=user,
        **extra,
    )


def weekly(staff, day_of_week=1, start=time(9), end=time(18), break_start=time(13), break_end=time(14)):
    return StaffSchedule.objects.create(
        staff=staff,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
    )


def book(staff, service, customer, start, status=AppointmentStatus.CONFIRMED):
    """Insert an appointment row directly, bypassing the lifecycle rules."""
    return Appointment.objects.create(
        tenant_id=staff.tenant_id,
        salon_id=staff.salon_id,
        staff=staff,
        service=service,
        customer=customer,
        start_time=start,
        end_time=start + timedelta(minutes=service.duration_minutes),
        status=status,
        total_price=service.price,
    )


class SalonFixtureMixin:
    """
    setUp for scheduling tests. self.monday is the next Monday (always in the future).
    """

    def setUp(self):
        super().setUp()
        self.tenant, self.salon, self.service = make_business()
        self.manager_user = User.objects.create_user(username="boss", password="pass12345")
        self.stylist_user = User.objects.create_user(username="maria", password="pass12345")
        self.manager = make_staff(self.tenant, self.salon, "Boss", role=Staff.Role.MANAGER, user=self.manager_user)
        self.stylist = make_staff(self.tenant, self.salon, "Maria", user=self.stylist_user)
        self.schedule = weekly(self.stylist)
        self.customer = ClientProfile.objects.create(name="Ann", email="ann@example.com", phone="5551234567")
        self.monday = next_weekday(1)


class RecordingNotifier:
    """Stands in for NotificationService; keeps (kind, object id, context)."""

    def __init__(self):
        self.events = []

    def notify(self, appointment, kind, **context):
        self.events.append((kind, appointment.pk, context))

    def notify_time_off(self, request, kind, **context):
        self.events.append((kind, request.pk, context))

"""
salon_availability.py
---------------------
Salon-wide availability: the bookable slots of every active staff member of a
salon for one service on one date.

- The service is resolved once and must belong to the salon (and its tenant).
- Only ACTIVE staff are considered, in ascending id order.
- Staff with no slot that day are left out of the result.

available_staff() answers the point question instead: who can take this
service at exactly this time.
"""

from collections import OrderedDict
from datetime import timedelta

from django.utils import timezone

from ..models import Salon, Staff
from ..tenancy import get_scoped
from .availability_engine import AvailabilityEngine
from .catalog import get_service


class SalonAvailability:
    def __init__(self, engine=None):
        self.engine = engine or AvailabilityEngine()

    def aggregate(self, salon_id, service_id, day, tenant=None, now=None):
        """
        Returns an OrderedDict {staff_id: [AvailableSlot, ...]}.

        Raises:
            NotFoundError: unknown salon, or service not offered there
        """
        salon = get_scoped(Salon, salon_id, tenant=tenant, label="Salon")
        service = get_service(service_id, tenant=salon.tenant_id, salon=salon)

        result = OrderedDict()
        staff_qs = Staff.objects.filter(salon=salon, status=Staff.Status.ACTIVE).order_by("id")
        for member in staff_qs:
            slots = self.engine.generate_slots(member, day, service.duration_minutes, now=now)
            if slots:
                result[member.pk] = slots
        return result

    def available_staff(self, salon_id, service_id, start, tenant=None, now=None):
        """
        ACTIVE staff of the salon who could take `service` starting exactly at
        `start` (aware datetime), in ascending id order. Empty when start is
        not in the future.
        """
        salon = get_scoped(Salon, salon_id, tenant=tenant, label="Salon")
        service = get_service(service_id, tenant=salon.tenant_id, salon=salon)

        now = now or timezone.now()
        if start <= now:
            return []
        end = start + timedelta(minutes=service.duration_minutes)
        staff_qs = Staff.objects.filter(salon=salon, status=Staff.Status.ACTIVE).order_by("id")
        return [member for member in staff_qs if self.engine.is_staff_available(member, start, end)]

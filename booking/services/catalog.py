"""
catalog.py
----------
Read access to the service catalog for the scheduling engine.
"""

from ..exceptions import NotFoundError
from ..models import Service
from ..tenancy import get_scoped


def get_service(service_id, tenant=None, salon=None, active_only=True):
    """
    Fetch a Service, optionally restricted to a tenant and a salon.

    Raises:
        NotFoundError: unknown id, other tenant, other salon, or inactive
        (when active_only).
    """
    service = get_scoped(Service, service_id, tenant=tenant, label="Service")
    if salon is not None and service.salon_id != getattr(salon, "pk", salon):
        raise NotFoundError("Service not offered at this salon.")
    if active_only and not service.active:
        raise NotFoundError("Service not found.")
    return service


def services_for_salon(salon, active_only=True):
    qs = Service.objects.filter(salon_id=getattr(salon, "pk", salon))
    if active_only:
        qs = qs.filter(active=True)
    return qs.order_by("name")

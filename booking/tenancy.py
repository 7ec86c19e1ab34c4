"""
tenancy.py
----------
Tenant resolution helpers used by the scheduling services.

Every Salon, Service, Staff and Appointment row carries tenant_id, so
resolving a tenant is a column read. A reference that points into another
tenant is reported as NotFoundError: callers must not learn that the record
exists elsewhere.
"""

from .exceptions import NotFoundError, UnauthorizedError
from .models import Tenant


def resolve_tenant_id(obj):
    """Return the tenant id of a tenant-scoped row (or of a Tenant itself)."""
    if obj is None:
        return None
    if isinstance(obj, int):
        return obj
    if isinstance(obj, Tenant):
        return obj.pk
    return getattr(obj, "tenant_id", None)


def get_scoped(model, pk, tenant=None, label=None, queryset=None):
    """
    Fetch model row by pk, optionally restricted to one tenant.

    Raises:
        NotFoundError: missing row, or row owned by a different tenant.
    """
    label = label or model._meta.verbose_name.capitalize()
    qs = queryset if queryset is not None else model.objects.all()
    try:
        obj = qs.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"{label} not found.")
    if tenant is not None and resolve_tenant_id(obj) != resolve_tenant_id(tenant):
        raise NotFoundError(f"{label} not found.")
    return obj


def ensure_can_manage_staff(actor, staff):
    """
    actor may act on staff's schedule / leave when it is the same person, or an
    Owner/Manager of the same tenant. actor=None means a trusted system call.

    Raises:
        UnauthorizedError
    """
    if actor is None:
        return
    if actor.pk == staff.pk:
        return
    if actor.tenant_id == staff.tenant_id and actor.can_manage:
        return
    raise UnauthorizedError("You cannot manage another staff member's calendar.")


def ensure_is_manager(actor, tenant_id):
    if actor is None or actor.tenant_id != tenant_id or not actor.can_manage:
        raise UnauthorizedError("Only an owner or manager of this business can do that.")

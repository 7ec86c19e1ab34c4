# booking/permissions.py
#
# Purpose:
# - DRF permission classes shared by the booking and staff APIs.
# - acting_staff(): resolve the Staff member behind request.user.
#
# Notes:
# - A Django superuser without a staff profile acts as the system: services
#   receive actor=None / tenant=None and skip tenant checks.
#
from rest_framework.permissions import BasePermission


def acting_staff(request):
    """Staff row linked to request.user, or None for superusers and anonymous users."""
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "staff_profile", None)


def acting_tenant_id(request):
    staff = acting_staff(request)
    return staff.tenant_id if staff else None


class IsStaffMember(BasePermission):
    """
    Authenticated user linked to a Staff row, or a superuser.
    """
    message = "Only salon staff can do that."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if user.is_superuser:
            return True
        return acting_staff(request) is not None

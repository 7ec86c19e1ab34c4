# booking/urls.py
#
# Purpose:
# - Expose REST API endpoints for the booking app via DRF router.
#
# Routes (under /api/):
# - clients/                      create-or-reuse a ClientProfile (public)
# - services/                     active service catalog (public)
# - appointments/                 create (public), list (staff)
# - appointments/{id}/status|reschedule|cancel/
# - availability/slots|salon|staff|working-hours/   computed per request (public)
# - availability/check/   one staff member at one time (staff only)
#
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentViewSet,
    AvailabilityViewSet,
    ClientProfileViewSet,
    ServiceViewSet,
)

# --------------------------
# DRF Router registrations
# --------------------------
router = DefaultRouter()
router.register(r"clients", ClientProfileViewSet, basename="client")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"appointments", AppointmentViewSet, basename="appointment")
router.register(r"availability", AvailabilityViewSet, basename="availability")

urlpatterns = [
    path("", include(router.urls)),
]

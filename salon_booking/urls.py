# salon_booking/urls.py
#
# Purpose:
# - Project URL router.
# - JSON APIs live under /api/: booking (appointments, availability, catalog)
#   and /api/staff/ (schedules, time off).
#
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),

    # =====
    # API's
    # =====
    path("api/staff/", include("staff.urls")),
    path("api/", include("booking.urls")),
]

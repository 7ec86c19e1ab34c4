from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import StaffScheduleViewSet, TimeOffViewSet

router = DefaultRouter()
router.register(r"schedules", StaffScheduleViewSet, basename="staff-schedule")
router.register(r"time-off", TimeOffViewSet, basename="time-off")

urlpatterns = [path("", include(router.urls))]

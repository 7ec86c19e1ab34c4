from django.contrib import admin
from .models import Appointment, ClientProfile, Salon, Service, Staff, Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "is_active")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Salon)
class SalonAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "tenant", "phone", "is_active")
    list_filter = ("tenant", "is_active")
    search_fields = ("name",)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "salon", "price", "duration_minutes", "active")
    list_filter = ("active", "salon")
    search_fields = ("name",)
    list_editable = ("price", "duration_minutes", "active")  # allow inline toggle


@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "phone")
    search_fields = ("name", "email")


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "salon", "role", "status")
    list_filter = ("role", "status", "salon")
    search_fields = ("name", "email")


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    # Status changes go through BookingManager (API); the admin is read-mostly.
    list_display = ("id", "customer", "service", "staff", "start_time", "end_time", "status")
    list_filter = ("status", "salon", "staff")
    search_fields = ("customer__name", "service__name", "staff__name")
    readonly_fields = ("status", "start_time", "end_time", "cancelled_at", "created_at", "updated_at")

# booking/models.py
#
# Purpose:
# - Core domain models for the salon scheduling platform.
#
# Design highlights:
# - Tenant: isolation boundary. Salon, Service, Staff and Appointment all carry
#   a tenant FK so cross-tenant references can be rejected cheaply.
# - ClientProfile: the customer. Optional link to auth User (public can book
#   without login). clean() prevents duplicates by (name/email + phone).
# - Service: validates price and duration; "active" flag controls bookability.
# - Staff: works at exactly one salon; status gates public availability and
#   role gates schedule / time-off approvals.
# - Appointment:
#   • start_time/end_time are aware datetimes, end_time = start + duration
#   • status follows AppointmentStatus (see services/booking_manager.py for the
#     transition table)
#   • cancellation is a status, rows are never deleted
#
# Notes for developers:
# - The "no double booking" rule is not expressible as a portable unique
#   constraint. It is enforced in services/booking_manager.py by locking the
#   staff row and re-checking overlaps inside the write transaction.
#

from django.db import models
from django.db.models import F, Q
from django.core.validators import MinValueValidator
from django.contrib.auth.models import User
from django.core.exceptions import ValidationError


# -------------------------
# Tenant (isolation boundary)
# -------------------------
class Tenant(models.Model):
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=100, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


# -------------------------
# Salon (business location)
# -------------------------
class Salon(models.Model):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="salons")
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=300, blank=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return self.name


# -------------------------
# Client (person who books)
# -------------------------
class ClientProfile(models.Model):
    """
    A customer who books an appointment.
    - 'user' link is optional (public can book with just name/email/phone).
    - We prevent duplicates by using a case-insensitive match on name and email,
      and exact match on phone in model.clean().
    """
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name="client_profile",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return self.name

    def clean(self):
        name = (self.name or "").strip()
        email = (self.email or "").strip()
        phone = (self.phone or "").strip()

        if not name or not email or not phone:
            return

        qs = ClientProfile.objects.filter(
            name__iexact=name,
            email__iexact=email,
            phone=phone,
        )
        if self.pk:
            qs = qs.exclude(pk=self.pk)

        if qs.exists():
            raise ValidationError(
                "A client with the same name, email, and phone already exists."
            )


# -------------------------
# Service catalog item
# -------------------------
class Service(models.Model):
    """
    A service offered by a salon.

    Rules:
    - price must be > 0
    - duration_minutes must be > 0
    - active controls visibility and bookability
    """
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="services")
    salon = models.ForeignKey(Salon, on_delete=models.CASCADE, related_name="services")
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} (${self.price})"


# -------------------------
# Staff member / Stylist
# -------------------------
class Staff(models.Model):
    """
    A stylist or staff member who can be booked.
    'user' links the auth account so API calls can resolve the acting staff member.
    """

    class Role(models.TextChoices):
        OWNER = "OWNER", "Owner"
        MANAGER = "MANAGER", "Manager"
        STAFF = "STAFF", "Staff"
        RECEPTIONIST = "RECEPTIONIST", "Receptionist"

    class Status(models.TextChoices):
        INVITED = "INVITED", "Invited"
        ACTIVE = "ACTIVE", "Active"
        INACTIVE = "INACTIVE", "Inactive"
        ON_LEAVE = "ON_LEAVE", "On leave"
        TERMINATED = "TERMINATED", "Terminated"

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="staff")
    salon = models.ForeignKey(Salon, on_delete=models.CASCADE, related_name="staff")
    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        related_name="staff_profile",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STAFF)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        verbose_name_plural = "staff"

    def __str__(self):
        return self.name

    @property
    def can_manage(self) -> bool:
        return self.role in (self.Role.OWNER, self.Role.MANAGER)


# -------------------------
# Appointment record
# -------------------------
class AppointmentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CHECKED_IN = "CHECKED_IN", "Checked in"
    IN_PROGRESS = "IN_PROGRESS", "In progress"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    NO_SHOW = "NO_SHOW", "No show"


class Appointment(models.Model):
    """
    The booking unit: one customer, one service, one staff member, one interval.
    """
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name="appointments")
    salon = models.ForeignKey(Salon, on_delete=models.PROTECT, related_name="appointments")
    staff = models.ForeignKey(Staff, on_delete=models.PROTECT, related_name="appointments")
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name="appointments")
    customer = models.ForeignKey(ClientProfile, on_delete=models.PROTECT, related_name="appointments")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.PENDING,
        help_text="Appointment lifecycle status",
    )
    notes = models.TextField(blank=True)
    customer_notes = models.TextField(blank=True)
    total_price = models.DecimalField(max_digits=8, decimal_places=2)
    cancellation_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the appointment was cancelled (if applicable).",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["staff", "start_time"], name="appt_staff_start_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="appointment_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.customer.name} → {self.service.name} on {self.start_time}"

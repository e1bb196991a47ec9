# booking/models.py
#
# Purpose:
# - Core domain models for the salon marketplace booking engine.
#
# Design highlights:
# - Salon: the business being booked; owner links to the auth User who runs it.
# - Service: per-salon catalog item with its own duration and price.
# - Staff: specialist on a salon's roster. There is no "any staff" row; a booking
#   that defers staff selection stores staff = NULL.
# - ClientProfile: customer-side data the engine owns (the strike counter).
# - Appointment:
#   • [start_time, end_time) is a half-open interval of local wall-clock time
#   • status is "Scheduled" until it becomes Completed / Cancelled / Absent,
#     after which it never changes again
#   • appointments are never moved; cancel-and-rebook is the only change
# - AppointmentServiceLine: the services actually purchased in one slot, each
#   with its own price. The header price is their sum.
#
# Notes for developers:
# - The scheduling rules themselves (hours, closures, breaks) live in the
#   scheduling app.
#

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F


# -------------------------
# Salon
# -------------------------
class Salon(models.Model):
    """
    A single-location salon that takes bookings.
    """
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="salons",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name


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
        return f"{self.name} ({self.duration_minutes} min, {self.price})"


# -------------------------
# Staff member / Specialist
# -------------------------
class Staff(models.Model):
    """
    A specialist who can be assigned to appointments.
    """
    salon = models.ForeignKey(Salon, on_delete=models.CASCADE, related_name="staff_members")
    name = models.CharField(max_length=200)
    role = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


# -------------------------
# Customer (strikes)
# -------------------------
class ClientProfile(models.Model):
    """
    Customer-side data for an authenticated user.
    'strikes' grows with late cancellations and no-shows.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="client_profile",
    )
    phone = models.CharField(max_length=20, blank=True)
    strikes = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.user} ({self.strikes} strikes)"

    @classmethod
    def issue_strike(cls, user_id) -> int:
        """
        Increment the user's strike counter in the database and return the new total.
        """
        profile, _ = cls.objects.get_or_create(user_id=user_id)
        cls.objects.filter(pk=profile.pk).update(strikes=F("strikes") + 1)
        profile.refresh_from_db(fields=["strikes"])
        return profile.strikes


# -------------------------
# Appointment
# -------------------------
class Appointment(models.Model):
    """
    A committed booking.

    - staff is NULL when the salon has no roster and the booking was accepted
      under the salon-wide single-resource model.
    - service is the primary (first) service line, kept for listings.
    """
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ABSENT = "Absent"

    STATUS_CHOICES = [
        (SCHEDULED, "Scheduled"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
        (ABSENT, "Absent"),
    ]

    salon = models.ForeignKey(Salon, on_delete=models.CASCADE, related_name="appointments")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="appointments",
    )
    staff = models.ForeignKey(
        Staff,
        on_delete=models.SET_NULL,
        related_name="appointments",
        null=True,
        blank=True,
    )
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="+")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=SCHEDULED,
        help_text="Appointment lifecycle status",
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)
    cancellation_time = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the appointment was cancelled (if applicable).",
    )

    class Meta:
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["salon", "start_time"], name="appt_salon_start_idx"),
            models.Index(fields=["staff", "start_time"], name="appt_staff_start_idx"),
        ]

    def __str__(self):
        return f"#{self.pk} {self.salon} {self.start_time:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_scheduled(self) -> bool:
        return self.status == self.SCHEDULED


# -------------------------
# Service line on an appointment
# -------------------------
class AppointmentServiceLine(models.Model):
    """
    One purchased service inside an appointment, priced individually.
    """
    appointment = models.ForeignKey(Appointment, on_delete=models.CASCADE, related_name="lines")
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="+")
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["appointment", "service"],
                name="uniq_appointment_service_line",
            ),
        ]

    def __str__(self):
        return f"{self.service.name} @ {self.price}"

"""Reservation models for RentACar."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def overlap_q(start, end, prefix: str = "") -> Q:
    """Half-open overlap of ``[start, end)`` with the row's period.

    Touching endpoints do not overlap.
    """

    return Q(**{f"{prefix}start_date__lt": end}) & Q(**{f"{prefix}end_date__gt": start})


class BookingPeriod(models.Model):
    """A committed reservation of a vehicle over ``[start_date, end_date)``.

    On PostgreSQL an exclusion constraint (migration 0002) rejects any two
    overlapping rows for the same vehicle.
    """

    vehicle = models.ForeignKey(
        "fleet.Vehicle",
        on_delete=models.CASCADE,
        related_name="booking_periods",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Booking period")
        verbose_name_plural = _("Booking periods")
        ordering = ["vehicle_id", "start_date"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=models.F("start_date")),
                name="booking_period_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle", "start_date", "end_date"], name="booking_period_vehicle_idx"),
        ]

    def __str__(self) -> str:
        return f"Vehicle {self.vehicle_id}: [{self.start_date}, {self.end_date})"


class RentalRequest(models.Model):
    """A user's proposal to rent a vehicle, decided by an administrator."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        DECLINED = "declined", _("Declined")

    vehicle = models.ForeignKey(
        "fleet.Vehicle",
        on_delete=models.CASCADE,
        related_name="rental_requests",
    )
    user_id = models.CharField(
        max_length=150,
        db_index=True,
        help_text=_("Opaque identifier of the requesting user."),
    )
    pick_up_date = models.DateField()
    return_date = models.DateField()
    date_of_request = models.DateTimeField(default=timezone.now)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PENDING,
    )
    decided_at = models.DateTimeField(null=True, blank=True)
    booking_period = models.OneToOneField(
        BookingPeriod,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rental_request",
    )

    class Meta:
        verbose_name = _("Rental request")
        verbose_name_plural = _("Rental requests")
        ordering = ["-date_of_request"]
        constraints = [
            models.CheckConstraint(
                condition=Q(return_date__gt=models.F("pick_up_date")),
                name="rental_request_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "date_of_request"], name="rental_request_status_idx"),
            models.Index(fields=["vehicle", "pick_up_date", "return_date"], name="rental_request_vehicle_idx"),
        ]

    def __str__(self) -> str:
        return f"Request #{self.pk} for vehicle {self.vehicle_id} ({self.status})"

    @property
    def rental_days(self) -> int:
        return (self.return_date - self.pick_up_date).days

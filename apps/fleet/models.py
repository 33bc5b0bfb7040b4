"""Fleet models for RentACar."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Vehicle(models.Model):
    """A car that can be rented out.

    Deleting a vehicle cascades to its booking periods and rental requests.
    """

    brand = models.CharField(max_length=100)
    model = models.CharField(max_length=100)
    year = models.PositiveSmallIntegerField()
    passenger_seats = models.PositiveSmallIntegerField(default=5)
    description = models.TextField(blank=True)
    image_url = models.URLField(
        max_length=500,
        blank=True,
        help_text=_("Public URL of the vehicle photo."),
    )
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vehicle")
        verbose_name_plural = _("Vehicles")
        ordering = ["brand", "model", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_per_day__gt=0),
                name="vehicle_positive_price",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.brand} {self.model} ({self.year})"

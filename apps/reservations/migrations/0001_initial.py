import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("fleet", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BookingPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "vehicle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booking_periods",
                        to="fleet.vehicle",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking period",
                "verbose_name_plural": "Booking periods",
                "ordering": ["vehicle_id", "start_date"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="booking_period_valid_dates",
                    ),
                ],
                "indexes": [
                    models.Index(
                        fields=["vehicle", "start_date", "end_date"],
                        name="booking_period_vehicle_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RentalRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "user_id",
                    models.CharField(
                        db_index=True,
                        help_text="Opaque identifier of the requesting user.",
                        max_length=150,
                    ),
                ),
                ("pick_up_date", models.DateField()),
                ("return_date", models.DateField()),
                ("date_of_request", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("declined", "Declined")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                (
                    "booking_period",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="rental_request",
                        to="reservations.bookingperiod",
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rental_requests",
                        to="fleet.vehicle",
                    ),
                ),
            ],
            options={
                "verbose_name": "Rental request",
                "verbose_name_plural": "Rental requests",
                "ordering": ["-date_of_request"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(return_date__gt=models.F("pick_up_date")),
                        name="rental_request_valid_dates",
                    ),
                ],
                "indexes": [
                    models.Index(
                        fields=["status", "date_of_request"],
                        name="rental_request_status_idx",
                    ),
                    models.Index(
                        fields=["vehicle", "pick_up_date", "return_date"],
                        name="rental_request_vehicle_idx",
                    ),
                ],
            },
        ),
    ]

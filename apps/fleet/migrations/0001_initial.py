from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("brand", models.CharField(max_length=100)),
                ("model", models.CharField(max_length=100)),
                ("year", models.PositiveSmallIntegerField()),
                ("passenger_seats", models.PositiveSmallIntegerField(default=5)),
                ("description", models.TextField(blank=True)),
                (
                    "image_url",
                    models.URLField(blank=True, help_text="Public URL of the vehicle photo.", max_length=500),
                ),
                (
                    "price_per_day",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Vehicle",
                "verbose_name_plural": "Vehicles",
                "ordering": ["brand", "model", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(price_per_day__gt=0),
                        name="vehicle_positive_price",
                    ),
                ],
            },
        ),
    ]

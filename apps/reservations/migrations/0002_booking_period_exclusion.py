"""Storage-level guard against overlapping booking periods.

PostgreSQL only: other backends rely on the vehicle row lock taken by the
reservation committer.
"""

from django.db import migrations

CONSTRAINT_NAME = "booking_period_no_overlap"


def add_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    table = apps.get_model("reservations", "BookingPeriod")._meta.db_table
    schema_editor.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    schema_editor.execute(
        f"ALTER TABLE {schema_editor.quote_name(table)} "
        f"ADD CONSTRAINT {CONSTRAINT_NAME} EXCLUDE USING gist ("
        f"vehicle_id WITH =, daterange(start_date, end_date, '[)') WITH &&)"
    )


def drop_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    table = apps.get_model("reservations", "BookingPeriod")._meta.db_table
    schema_editor.execute(
        f"ALTER TABLE {schema_editor.quote_name(table)} DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}"
    )


class Migration(migrations.Migration):

    dependencies = [
        ("reservations", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_exclusion_constraint, drop_exclusion_constraint),
    ]

from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ReservableResource",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "resource_type",
                    models.CharField(
                        choices=[("room", "Room"), ("equipment", "Equipment"), ("other", "Other")],
                        default="room",
                        max_length=20,
                    ),
                ),
                ("capacity", models.PositiveIntegerField(default=1)),
                ("floor_number", models.IntegerField(blank=True, null=True)),
                ("location", models.CharField(blank=True, help_text="e.g. Floor 2, Room 201", max_length=255)),
                (
                    "cost_per_hour",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="0 means free. Exposed for external billing only.",
                        max_digits=8,
                    ),
                ),
                ("requires_key", models.BooleanField(default=False)),
                (
                    "key_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("room", "Room key"),
                            ("master", "Master key"),
                            ("equipment", "Equipment key"),
                            ("other", "Other key"),
                        ],
                        help_text="Type of key that opens this resource.",
                        max_length=20,
                    ),
                ),
                ("key_location", models.CharField(blank=True, default="Reception", max_length=255)),
                ("requires_approval", models.BooleanField(default=False)),
                (
                    "max_reservations_per_user_per_day",
                    models.PositiveSmallIntegerField(
                        blank=True, help_text="Empty means the deployment default applies.", null=True
                    ),
                ),
                ("min_duration_minutes", models.PositiveIntegerField(blank=True, null=True)),
                ("max_duration_minutes", models.PositiveIntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("next_maintenance", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Reservable resource",
                "verbose_name_plural": "Reservable resources",
                "ordering": ["resource_type", "name"],
                "indexes": [
                    models.Index(fields=["resource_type", "is_active"], name="resource_type_active_idx"),
                    models.Index(fields=["floor_number"], name="resource_floor_idx"),
                ],
            },
        ),
    ]

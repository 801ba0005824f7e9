import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("keys", "0001_initial"),
        ("resources", "0002_reservableresource_key"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("checked_in", "Checked in"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No show"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("number_of_people", models.PositiveIntegerField(default=1)),
                ("notes", models.TextField(blank=True)),
                (
                    "request_key",
                    models.CharField(
                        blank=True,
                        help_text="Client supplied idempotency key, unique per user.",
                        max_length=64,
                        null=True,
                    ),
                ),
                ("key_picked_up", models.BooleanField(default=False)),
                ("key_picked_up_at", models.DateTimeField(blank=True, null=True)),
                ("key_returned", models.BooleanField(default=False)),
                ("key_returned_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.TextField(blank=True)),
                ("overdue_flagged_at", models.DateTimeField(blank=True, null=True)),
                ("no_show_flagged_at", models.DateTimeField(blank=True, null=True)),
                (
                    "key_assignment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reservations",
                        to="keys.keyassignment",
                    ),
                ),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="resources.reservableresource",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Reservation",
                "verbose_name_plural": "Reservations",
                "ordering": ["start_time"],
                "indexes": [
                    models.Index(fields=["resource", "start_time", "end_time"], name="reservation_window_idx"),
                    models.Index(fields=["user", "start_time"], name="reservation_user_start_idx"),
                    models.Index(fields=["status"], name="reservation_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_time__gt", models.F("start_time"))),
                        name="reservation_end_after_start",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("request_key__isnull", False)),
                        fields=("user", "request_key"),
                        name="unique_reservation_request_key",
                    ),
                ],
            },
        ),
    ]

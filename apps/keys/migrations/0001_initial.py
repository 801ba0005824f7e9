import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DormitoryKey",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key_code", models.CharField(max_length=50, unique=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                (
                    "key_type",
                    models.CharField(
                        choices=[
                            ("room", "Room key"),
                            ("master", "Master key"),
                            ("equipment", "Equipment key"),
                            ("other", "Other key"),
                        ],
                        default="room",
                        max_length=20,
                    ),
                ),
                ("room_number", models.CharField(blank=True, max_length=20)),
                ("floor_number", models.IntegerField(blank=True, null=True)),
                ("location_notes", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Available"),
                            ("assigned", "Assigned"),
                            ("lost", "Lost"),
                            ("damaged", "Damaged"),
                            ("out_of_service", "Out of service"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                ("damage_notes", models.TextField(blank=True)),
                ("total_assignments", models.PositiveIntegerField(default=0)),
                ("lost_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Dormitory key",
                "verbose_name_plural": "Dormitory keys",
                "ordering": ["key_code"],
                "indexes": [
                    models.Index(fields=["status"], name="key_status_idx"),
                    models.Index(fields=["key_type", "status"], name="key_type_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="KeyAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("issued_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "expected_return",
                    models.DateTimeField(blank=True, help_text="Empty means open-ended custody.", null=True),
                ),
                ("returned_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("returned", "Returned"),
                            ("lost", "Lost"),
                            ("damaged", "Damaged"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("issue_notes", models.CharField(blank=True, max_length=255)),
                ("return_notes", models.CharField(blank=True, max_length=255)),
                ("condition_on_return", models.CharField(blank=True, max_length=50)),
                ("extension_count", models.PositiveSmallIntegerField(default=0)),
                ("overdue_flagged_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "key",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assignments",
                        to="keys.dormitorykey",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="key_assignments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "issued_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="issued_key_assignments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Key assignment",
                "verbose_name_plural": "Key assignments",
                "ordering": ["-issued_at"],
                "indexes": [
                    models.Index(fields=["user", "status"], name="assignment_user_status_idx"),
                    models.Index(fields=["status", "expected_return"], name="assignment_due_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("key",),
                        name="one_active_assignment_per_key",
                    ),
                ],
            },
        ),
    ]

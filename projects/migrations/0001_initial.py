import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("category", models.CharField(max_length=100)),
                ("target_amount", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("current_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("status", models.CharField(choices=[("active", "Active"), ("paused", "Paused"), ("completed", "Completed"), ("cancelled", "Cancelled")], default="active", max_length=20)),
                ("cycle_duration", models.CharField(choices=[("weekly", "Weekly"), ("monthly", "Monthly"), ("quarterly", "Quarterly"), ("yearly", "Yearly"), ("custom", "Custom")], default="monthly", max_length=20)),
                ("cycle_duration_days", models.PositiveIntegerField(blank=True, null=True)),
                ("total_cycles", models.PositiveIntegerField(blank=True, help_text="Number of cycles planned (empty for indefinite)", null=True)),
                ("current_cycle_number", models.PositiveIntegerField(default=1)),
                ("next_cycle_date", models.DateTimeField(blank=True, null=True)),
                ("last_cycle_date", models.DateTimeField(blank=True, null=True)),
                ("auto_progress", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_projects", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "projects",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "auto_progress", "next_cycle_date"], name="project_due_idx"),
                    models.Index(fields=["category"], name="project_category_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProjectCycle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("cycle_number", models.PositiveIntegerField()),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("target_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("current_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("status", models.CharField(choices=[("active", "Active"), ("completed", "Completed")], default="active", max_length=20)),
                ("progress_percentage", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=7)),
                ("notes", models.TextField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="cycles", to="projects.project")),
            ],
            options={
                "db_table": "project_cycles",
                "ordering": ["cycle_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("project", "cycle_number"), name="cycle_number_unique_per_project"),
                    models.UniqueConstraint(condition=models.Q(("status", "active")), fields=("project",), name="one_active_cycle_per_project"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CycleContribution",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0.01"))])),
                ("anonymous", models.BooleanField(default=False)),
                ("message", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("cycle", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="contributions", to="projects.projectcycle")),
                ("donor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="cycle_contributions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "project_cycle_contributions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["cycle", "created_at"], name="contrib_cycle_created_idx"),
                ],
            },
        ),
    ]

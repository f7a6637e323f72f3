import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q


class Project(models.Model):
    """
    A recurring funding campaign. Each funding period is a ProjectCycle.

    Cycle fields (current_cycle_number, next/last_cycle_date, current_amount)
    are owned by ProjectCycleManager; user edits only touch the descriptive
    fields and the target.
    """
    STATUS_ACTIVE = "active"
    STATUS_PAUSED = "paused"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_PAUSED, "Paused"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    DURATION_WEEKLY = "weekly"
    DURATION_MONTHLY = "monthly"
    DURATION_QUARTERLY = "quarterly"
    DURATION_YEARLY = "yearly"
    DURATION_CUSTOM = "custom"

    DURATION_CHOICES = [
        (DURATION_WEEKLY, "Weekly"),
        (DURATION_MONTHLY, "Monthly"),
        (DURATION_QUARTERLY, "Quarterly"),
        (DURATION_YEARLY, "Yearly"),
        (DURATION_CUSTOM, "Custom"),
    ]

    # Days per preset; "custom" uses cycle_duration_days as entered
    DURATION_DAYS = {
        DURATION_WEEKLY: 7,
        DURATION_MONTHLY: 30,
        DURATION_QUARTERLY: 90,
        DURATION_YEARLY: 365,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField()
    category = models.CharField(max_length=100)

    target_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    current_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE
    )

    cycle_duration = models.CharField(
        max_length=20,
        choices=DURATION_CHOICES,
        default=DURATION_MONTHLY
    )
    cycle_duration_days = models.PositiveIntegerField(null=True, blank=True)
    total_cycles = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Number of cycles planned (empty for indefinite)"
    )
    current_cycle_number = models.PositiveIntegerField(default=1)

    next_cycle_date = models.DateTimeField(null=True, blank=True)
    last_cycle_date = models.DateTimeField(null=True, blank=True)
    auto_progress = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_projects"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "projects"
        ordering = ["-created_at"]
        indexes = [
            # Due-project scan run by the scheduler
            models.Index(
                fields=["status", "auto_progress", "next_cycle_date"],
                name="project_due_idx",
            ),
            models.Index(fields=["category"], name="project_category_idx"),
        ]

    def __str__(self):
        return f"{self.name} (cycle {self.current_cycle_number})"

    @property
    def is_capped(self) -> bool:
        return bool(self.total_cycles) and self.current_cycle_number >= self.total_cycles


class ProjectCycle(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="cycles")
    cycle_number = models.PositiveIntegerField()

    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    # Copied from the project when the cycle opens
    target_amount = models.DecimalField(max_digits=12, decimal_places=2)
    current_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE
    )
    # Denormalized: current_amount / target_amount * 100
    progress_percentage = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0"))

    notes = models.TextField(blank=True, null=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "project_cycles"
        ordering = ["cycle_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "cycle_number"],
                name="cycle_number_unique_per_project",
            ),
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(status="active"),
                name="one_active_cycle_per_project",
            ),
        ]

    def __str__(self):
        return f"{self.project.name} #{self.cycle_number} ({self.status})"


class CycleContribution(models.Model):
    """
    A donation counted towards one cycle. Saving or deleting one recomputes
    the cycle totals (see projects/signals.py).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cycle = models.ForeignKey(ProjectCycle, on_delete=models.CASCADE, related_name="contributions")
    donor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cycle_contributions"
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    anonymous = models.BooleanField(default=False)
    message = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "project_cycle_contributions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["cycle", "created_at"], name="contrib_cycle_created_idx"),
        ]

    def __str__(self):
        return f"{self.amount} to {self.cycle_id}"

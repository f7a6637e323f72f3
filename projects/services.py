"""
Recurring project cycle management.

ProjectCycleManager owns every write to the cycle fields of a Project and to
ProjectCycle rows:

- advancement: close the active cycle, open the next one, or complete the
  project once its cycle cap is reached
- progress: per-cycle percentage and the project's running total
- pause / resume / cancel
- read-only cycle stats

Advancement runs in a single transaction with the project row locked, so a
failure part way through rolls back and two scheduler ticks cannot both
advance the same project.
"""
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core.exceptions import NotFoundError, InvalidTransitionError
from .models import Project, ProjectCycle, CycleContribution
from .state_machine import can_transition, can_transition_cycle, is_terminal_status

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# progress_percentage is a Decimal(7, 2)
MAX_PROGRESS = Decimal("99999.99")


def default_cycle_days() -> int:
    return getattr(settings, "PROJECT_DEFAULT_CYCLE_DAYS", 30)


def duration_days_for(cycle_duration: str, cycle_duration_days=None) -> int:
    """
    Resolve a duration preset to a day count.
    "custom" uses the explicit day count; unknown presets fall back to the default.
    """
    if cycle_duration == Project.DURATION_CUSTOM and cycle_duration_days:
        return int(cycle_duration_days)
    return Project.DURATION_DAYS.get(cycle_duration, default_cycle_days())


def compute_progress(current_amount, target_amount) -> Decimal:
    """current / target * 100, rounded to cents; 0 when there is no target."""
    current_amount = Decimal(current_amount or 0)
    target_amount = Decimal(target_amount or 0)
    if target_amount <= 0:
        return ZERO
    progress = (current_amount / target_amount * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return min(progress, MAX_PROGRESS)


class ProjectCycleManager:
    def __init__(self, logger=None, clock=None):
        self.logger = logger or logging.getLogger("cos.projects")
        self.clock = clock or timezone.now

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_project(self, project_id, for_update=False) -> Project:
        qs = Project.objects.select_for_update() if for_update else Project.objects.all()
        try:
            return qs.get(pk=project_id)
        except (Project.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError(f"Project {project_id} not found")

    def _get_cycle(self, cycle_id) -> ProjectCycle:
        try:
            return ProjectCycle.objects.get(pk=cycle_id)
        except (ProjectCycle.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError(f"Cycle {cycle_id} not found")

    @staticmethod
    def resolve_duration_days(project: Project) -> int:
        return project.cycle_duration_days or default_cycle_days()

    def is_due(self, project: Project, now=None) -> bool:
        now = now or self.clock()
        return (
            project.status == Project.STATUS_ACTIVE
            and project.auto_progress
            and project.next_cycle_date is not None
            and project.next_cycle_date <= now
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_project(self, *, name, description, category, target_amount,
                       cycle_duration=Project.DURATION_MONTHLY, cycle_duration_days=None,
                       total_cycles=None, auto_progress=True, created_by=None) -> Project:
        """
        Create a project together with its first active cycle.
        """
        days = duration_days_for(cycle_duration, cycle_duration_days)
        now = self.clock()
        first_cycle_end = now + timedelta(days=days)

        try:
            with transaction.atomic():
                project = Project.objects.create(
                    name=name,
                    description=description,
                    category=category,
                    target_amount=Decimal(str(target_amount)),
                    current_amount=ZERO,
                    status=Project.STATUS_ACTIVE,
                    cycle_duration=cycle_duration,
                    cycle_duration_days=days,
                    total_cycles=total_cycles or None,
                    current_cycle_number=1,
                    auto_progress=auto_progress,
                    next_cycle_date=first_cycle_end,
                    created_by=created_by,
                )
                ProjectCycle.objects.create(
                    project=project,
                    cycle_number=1,
                    start_date=now,
                    end_date=first_cycle_end,
                    target_amount=project.target_amount,
                    current_amount=ZERO,
                    status=ProjectCycle.STATUS_ACTIVE,
                    progress_percentage=ZERO,
                )
        except Exception:
            self.logger.exception(f"Error creating project '{name}'")
            raise

        self.logger.info(f"Created project {project.id} with a {days}-day cycle")
        return project

    # ------------------------------------------------------------------
    # Cycle advancement
    # ------------------------------------------------------------------

    def check_and_advance_cycles(self) -> int:
        """
        Advance every active, auto-progressing project whose next cycle is due.

        The first failure aborts the batch and propagates; projects already
        advanced stay advanced. Returns the number of projects that were
        advanced or completed. Projects another worker handled first are
        skipped and not counted.
        """
        try:
            now = self.clock()
            due_ids = list(
                Project.objects.filter(
                    status=Project.STATUS_ACTIVE,
                    auto_progress=True,
                    next_cycle_date__lte=now,
                ).values_list("id", flat=True)
            )

            processed = 0
            for project_id in due_ids:
                handled, _ = self._advance(project_id, only_if_due=True)
                if handled:
                    processed += 1

            self.logger.info(f"Processed {processed} of {len(due_ids)} due projects for cycle advancement")
            return processed
        except Exception:
            self.logger.exception("Error checking and advancing cycles")
            raise

    def advance_project_cycle(self, project_id, only_if_due=False):
        """
        Move a project to its next cycle.

        - Completed or cancelled: left untouched, no new cycle.
        - Cap reached (current_cycle_number >= total_cycles): mark the project
          completed, no new cycle.
        - Otherwise close the active cycle (if any), open cycle N+1 starting at
          next_cycle_date, and push next_cycle_date one cycle past its end.

        With only_if_due=True the project is skipped when, once locked, it is no
        longer due (another worker got there first).

        Returns the new ProjectCycle, or None when no cycle was opened.
        """
        _, cycle = self._advance(project_id, only_if_due)
        return cycle

    def _advance(self, project_id, only_if_due):
        """Returns (handled, new_cycle); handled is False when the project was skipped."""
        try:
            with transaction.atomic():
                project = self._get_project(project_id, for_update=True)
                now = self.clock()

                if is_terminal_status(project.status):
                    self.logger.warning(f"Project {project_id} is {project.status}, not advancing")
                    return False, None

                if only_if_due and not self.is_due(project, now):
                    self.logger.info(f"Project {project_id} no longer due, skipping")
                    return False, None

                if project.is_capped:
                    project.status = Project.STATUS_COMPLETED
                    project.save(update_fields=["status", "updated_at"])
                    self.logger.info(f"Project {project_id} completed all cycles")
                    return True, None

                current_cycle = (
                    ProjectCycle.objects.select_for_update()
                    .filter(project=project, status=ProjectCycle.STATUS_ACTIVE)
                    .first()
                )
                if current_cycle:
                    allowed, reason = can_transition_cycle(current_cycle, ProjectCycle.STATUS_COMPLETED)
                    if not allowed:
                        raise InvalidTransitionError(reason)
                    current_cycle.status = ProjectCycle.STATUS_COMPLETED
                    current_cycle.completed_at = now
                    current_cycle.save(update_fields=["status", "completed_at", "updated_at"])

                duration = timedelta(days=self.resolve_duration_days(project))
                start = project.next_cycle_date or now
                end = start + duration
                next_number = project.current_cycle_number + 1

                new_cycle = ProjectCycle.objects.create(
                    project=project,
                    cycle_number=next_number,
                    start_date=start,
                    end_date=end,
                    target_amount=project.target_amount,
                    current_amount=ZERO,
                    status=ProjectCycle.STATUS_ACTIVE,
                    progress_percentage=ZERO,
                )

                project.last_cycle_date = project.next_cycle_date
                project.current_cycle_number = next_number
                project.next_cycle_date = end + duration
                project.save(update_fields=[
                    "current_cycle_number",
                    "next_cycle_date",
                    "last_cycle_date",
                    "updated_at",
                ])
        except Exception:
            self.logger.exception(f"Error advancing cycle for project {project_id}")
            raise

        self.logger.info(f"Advanced project {project_id} to cycle {next_number}")
        return True, new_cycle

    # ------------------------------------------------------------------
    # Progress aggregation
    # ------------------------------------------------------------------

    def update_cycle_progress(self, cycle_id) -> ProjectCycle:
        """
        Recompute a cycle's progress_percentage, then roll cycle totals up
        into the project.
        """
        try:
            with transaction.atomic():
                cycle = self._get_cycle(cycle_id)
                cycle.progress_percentage = compute_progress(cycle.current_amount, cycle.target_amount)
                cycle.save(update_fields=["progress_percentage", "updated_at"])

                self.update_project_total_amount(cycle.project_id)
        except Exception:
            self.logger.exception(f"Error updating cycle progress for cycle {cycle_id}")
            raise

        return cycle

    def update_project_total_amount(self, project_id) -> Decimal:
        """
        project.current_amount = sum of its cycles' current_amount.
        Full recomputation, so repeated calls are harmless.
        """
        try:
            total = (
                ProjectCycle.objects.filter(project_id=project_id)
                .aggregate(total=Sum("current_amount"))["total"]
            ) or ZERO

            updated = Project.objects.filter(pk=project_id).update(
                current_amount=total,
                updated_at=self.clock(),
            )
            if not updated:
                raise NotFoundError(f"Project {project_id} not found")
        except Exception:
            self.logger.exception(f"Error updating project total amount for project {project_id}")
            raise

        return total

    def recalculate_cycle_amount(self, cycle_id) -> ProjectCycle:
        """
        Rebuild a cycle's current_amount from its contributions and refresh
        progress. Called whenever a contribution is saved or removed.
        """
        total = (
            CycleContribution.objects.filter(cycle_id=cycle_id)
            .aggregate(total=Sum("amount"))["total"]
        ) or ZERO

        updated = ProjectCycle.objects.filter(pk=cycle_id).update(
            current_amount=total,
            updated_at=self.clock(),
        )
        if not updated:
            raise NotFoundError(f"Cycle {cycle_id} not found")

        return self.update_cycle_progress(cycle_id)

    def record_contribution(self, cycle_id, amount, donor=None, anonymous=False, message=None) -> CycleContribution:
        cycle = self._get_cycle(cycle_id)
        contribution = CycleContribution.objects.create(
            cycle=cycle,
            donor=donor,
            amount=Decimal(str(amount)),
            anonymous=anonymous,
            message=message,
        )
        self.logger.info(f"Recorded contribution of {contribution.amount} to cycle {cycle_id}")
        return contribution

    # ------------------------------------------------------------------
    # Pause / resume / cancel
    # ------------------------------------------------------------------

    def _set_status(self, project_id, new_status, auto_progress, verb):
        try:
            project = self._get_project(project_id)

            allowed, reason = can_transition(project, new_status)
            if not allowed:
                # Applied anyway; pause/resume are unconditional writes
                self.logger.warning(f"Project {project_id}: {reason} ({verb} applied)")

            project.status = new_status
            project.auto_progress = auto_progress
            project.save(update_fields=["status", "auto_progress", "updated_at"])
        except Exception:
            self.logger.exception(f"Error {verb} project {project_id}")
            raise

        self.logger.info(f"Project {project_id} {verb}")
        return project

    def pause_project(self, project_id) -> Project:
        return self._set_status(project_id, Project.STATUS_PAUSED, False, "paused")

    def resume_project(self, project_id) -> Project:
        return self._set_status(project_id, Project.STATUS_ACTIVE, True, "resumed")

    def cancel_project(self, project_id) -> Project:
        """
        Stop a project for good. Unlike pause/resume this is guarded:
        completed or already-cancelled projects can't be cancelled.
        """
        with transaction.atomic():
            project = self._get_project(project_id, for_update=True)
            if project.status == Project.STATUS_CANCELLED:
                raise InvalidTransitionError(f"Project {project_id} is already cancelled")

            allowed, reason = can_transition(project, Project.STATUS_CANCELLED)
            if not allowed:
                raise InvalidTransitionError(reason)

            project.status = Project.STATUS_CANCELLED
            project.auto_progress = False
            project.save(update_fields=["status", "auto_progress", "updated_at"])

        self.logger.info(f"Project {project_id} cancelled")
        return project

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_project_cycle_stats(self, project_id) -> dict:
        try:
            stats = ProjectCycle.objects.filter(project_id=project_id).aggregate(
                total_cycles=Count("id"),
                completed_cycles=Count("id", filter=Q(status=ProjectCycle.STATUS_COMPLETED)),
                active_cycles=Count("id", filter=Q(status=ProjectCycle.STATUS_ACTIVE)),
                total_raised=Sum("current_amount"),
            )
        except Exception:
            self.logger.exception(f"Error getting cycle stats for project {project_id}")
            raise

        stats["total_raised"] = stats["total_raised"] or ZERO
        return stats

from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from projects.models import Project, ProjectCycle
from projects.services import ProjectCycleManager
from projects.tasks import (
    check_and_advance_cycles_task,
    advance_project_cycle_task,
    update_cycle_progress_task,
)


class ScheduledAdvanceTest(TestCase):
    def setUp(self):
        self.project = ProjectCycleManager().create_project(
            name="Winter blankets",
            description="Weekly blanket drive",
            category="relief",
            target_amount="800",
            cycle_duration=Project.DURATION_WEEKLY,
        )
        Project.objects.filter(pk=self.project.pk).update(
            next_cycle_date=timezone.now() - timedelta(hours=1)
        )

    def test_task_advances_due_projects(self):
        processed = check_and_advance_cycles_task()

        self.assertEqual(processed, 1)
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_cycle_number, 2)

    def test_task_for_single_project(self):
        cycle_id = advance_project_cycle_task(str(self.project.pk))

        self.assertEqual(ProjectCycle.objects.get(pk=cycle_id).cycle_number, 2)

    def test_progress_task(self):
        cycle = self.project.cycles.get()
        ProjectCycle.objects.filter(pk=cycle.pk).update(current_amount=Decimal("200"))

        self.assertEqual(update_cycle_progress_task(str(cycle.pk)), "25.00")

    def test_management_command(self):
        out = StringIO()
        call_command("advance_project_cycles", stdout=out)

        self.assertIn("Processed 1 due projects", out.getvalue())
        self.project.refresh_from_db()
        self.assertEqual(self.project.current_cycle_number, 2)

    def test_management_command_single_project(self):
        out = StringIO()
        call_command("advance_project_cycles", project_id=str(self.project.pk), stdout=out)

        self.assertIn("advanced to cycle 2", out.getvalue())

    def test_management_command_unknown_project(self):
        with self.assertRaises(CommandError):
            call_command("advance_project_cycles", project_id="7b1e1c9e-0000-4000-8000-000000000000")

    def test_management_command_malformed_project_id(self):
        with self.assertRaises(CommandError):
            call_command("advance_project_cycles", project_id="not-a-uuid")

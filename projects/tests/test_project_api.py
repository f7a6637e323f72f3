# projects/tests/test_project_api.py
import uuid
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from projects.models import Project, ProjectCycle
from users.models import User


class ProjectApiTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username="owner", password="pass", role="staff")
        self.donor = User.objects.create_user(username="donor", password="pass", role="donor")
        self.admin = User.objects.create_user(username="admin", password="pass", role="admin")

        self.client = APIClient()

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def create_project(self, **overrides):
        payload = {
            "name": "Orphan sponsorship",
            "description": "Monthly support for 20 children",
            "category": "sponsorship",
            "target_amount": "2000.00",
            "cycle_duration": "monthly",
            "total_cycles": 12,
        }
        payload.update(overrides)
        self.auth(self.owner)
        resp = self.client.post(reverse("project-list"), payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        return Project.objects.get(pk=resp.data["id"])

    # ---- CRUD ---------------------------------------------------------

    def test_create_opens_first_cycle(self):
        project = self.create_project()

        self.assertEqual(project.created_by, self.owner)
        self.assertEqual(project.cycle_duration_days, 30)
        self.assertEqual(project.current_cycle_number, 1)
        self.assertIsNotNone(project.next_cycle_date)
        self.assertEqual(project.cycles.count(), 1)
        self.assertEqual(project.cycles.get().status, ProjectCycle.STATUS_ACTIVE)

    def test_custom_duration_requires_days(self):
        self.auth(self.owner)
        resp = self.client.post(reverse("project-list"), {
            "name": "Ad hoc",
            "description": "x",
            "category": "misc",
            "target_amount": "100",
            "cycle_duration": "custom",
        }, format="json")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data["success"])
        self.assertIn("cycle_duration_days", resp.data["errors"])

    def test_custom_duration_is_kept(self):
        project = self.create_project(cycle_duration="custom", cycle_duration_days=14)
        self.assertEqual(project.cycle_duration_days, 14)

    def test_cycle_fields_are_read_only(self):
        project = self.create_project()

        self.auth(self.owner)
        resp = self.client.patch(
            reverse("project-detail", args=[project.id]),
            {"current_cycle_number": 9, "status": "completed", "name": "Renamed"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.name, "Renamed")
        self.assertEqual(project.current_cycle_number, 1)
        self.assertEqual(project.status, Project.STATUS_ACTIVE)

    def test_preset_project_ignores_day_count_override(self):
        project = self.create_project(cycle_duration="monthly")

        self.auth(self.owner)
        resp = self.client.patch(
            reverse("project-detail", args=[project.id]), {"cycle_duration_days": 3}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.cycle_duration, "monthly")
        self.assertEqual(project.cycle_duration_days, 30)

    def test_completed_project_cap_cannot_be_lifted(self):
        project = self.create_project(cycle_duration="weekly", total_cycles=1)

        self.auth(self.admin)
        resp = self.client.post(reverse("project-advance", args=[project.id]))
        self.assertEqual(resp.data["project"]["status"], "completed")

        self.auth(self.owner)
        resp = self.client.patch(
            reverse("project-detail", args=[project.id]), {"total_cycles": None}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("total_cycles", resp.data["errors"])

        self.auth(self.admin)
        resp = self.client.post(reverse("project-advance", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNone(resp.data["cycle"])

        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_COMPLETED)
        self.assertEqual(project.total_cycles, 1)
        self.assertEqual(project.cycles.count(), 1)

    def test_non_owner_cannot_edit_or_delete(self):
        project = self.create_project()

        self.auth(self.donor)
        resp = self.client.patch(reverse("project-detail", args=[project.id]), {"name": "Mine"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        resp = self.client.delete(reverse("project-detail", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(pk=project.id).exists())

    def test_admin_can_delete_and_cycles_go_with_it(self):
        project = self.create_project()

        self.auth(self.admin)
        resp = self.client.delete(reverse("project-detail", args=[project.id]))

        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProjectCycle.objects.filter(project_id=project.id).exists())

    def test_list_filters_and_pagination(self):
        self.create_project(category="education")
        self.create_project(category="health")
        self.create_project(category="health")

        self.auth(self.donor)
        resp = self.client.get(reverse("project-list"), {"category": "health", "limit": 1})

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["count"], 2)
        self.assertEqual(len(resp.data["results"]), 1)
        self.assertEqual(resp.data["limit"], 1)

        resp = self.client.get(reverse("project-list"), {"limit": "abc"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_retrieve_includes_cycles(self):
        project = self.create_project()

        self.auth(self.donor)
        resp = self.client.get(reverse("project-detail", args=[project.id]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["cycles"]), 1)
        self.assertEqual(resp.data["cycles"][0]["cycle_number"], 1)
        self.assertEqual(resp.data["allowed_transitions"], ["paused", "completed", "cancelled"])

    def test_unknown_project_returns_wrapped_404(self):
        self.auth(self.donor)
        resp = self.client.get(reverse("project-detail", args=[uuid.uuid4()]))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["status_code"], 404)

    def test_anonymous_requests_rejected(self):
        resp = APIClient().get(reverse("project-list"))
        self.assertIn(resp.status_code, (401, 403))

    # ---- Lifecycle ----------------------------------------------------

    def test_owner_can_pause_and_resume(self):
        project = self.create_project()

        self.auth(self.owner)
        resp = self.client.post(reverse("project-pause", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "paused")
        self.assertFalse(resp.data["auto_progress"])

        resp = self.client.post(reverse("project-resume", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "active")
        self.assertTrue(resp.data["auto_progress"])

    def test_donor_cannot_pause(self):
        project = self.create_project()

        self.auth(self.donor)
        resp = self.client.post(reverse("project-pause", args=[project.id]))

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_ACTIVE)

    def test_cancel_twice_conflicts(self):
        project = self.create_project()

        self.auth(self.owner)
        resp = self.client.post(reverse("project-cancel", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        resp = self.client.post(reverse("project-cancel", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(resp.data["success"])

    def test_only_admin_can_advance(self):
        project = self.create_project(total_cycles=2)

        self.auth(self.owner)
        resp = self.client.post(reverse("project-advance", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.admin)
        resp = self.client.post(reverse("project-advance", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["cycle"]["cycle_number"], 2)
        self.assertEqual(resp.data["project"]["current_cycle_number"], 2)

        resp = self.client.post(reverse("project-advance", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNone(resp.data["cycle"])
        self.assertEqual(resp.data["project"]["status"], "completed")

    # ---- Reads and contributions -------------------------------------

    def test_contribution_updates_progress_and_stats(self):
        project = self.create_project(target_amount="400.00")
        cycle = project.cycles.get()

        self.auth(self.donor)
        url = reverse("cycle-contributions", args=[cycle.id])
        resp = self.client.post(url, {"amount": "100.00", "message": "For the kids"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        self.assertEqual(resp.data["donor_name"], "donor")

        resp = self.client.post(url, {"amount": "50.00", "anonymous": True}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(resp.data["donor_name"])

        cycle.refresh_from_db()
        self.assertEqual(cycle.current_amount, Decimal("150.00"))
        self.assertEqual(cycle.progress_percentage, Decimal("37.50"))

        resp = self.client.get(url)
        self.assertEqual(len(resp.data), 2)

        resp = self.client.get(reverse("project-stats", args=[project.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["total_cycles"], 1)
        self.assertEqual(resp.data["active_cycles"], 1)
        self.assertEqual(Decimal(resp.data["total_raised"]), Decimal("150.00"))

        project.refresh_from_db()
        self.assertEqual(project.current_amount, Decimal("150.00"))

    def test_contribution_amount_must_be_positive(self):
        project = self.create_project()
        cycle = project.cycles.get()

        self.auth(self.donor)
        resp = self.client.post(
            reverse("cycle-contributions", args=[cycle.id]), {"amount": "0"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_contribution_to_unknown_cycle(self):
        self.auth(self.donor)
        resp = self.client.post(
            reverse("cycle-contributions", args=[uuid.uuid4()]), {"amount": "10"}, format="json"
        )

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn("not found", resp.data["errors"]["detail"])

    def test_cycles_endpoint_is_ordered(self):
        project = self.create_project()
        Project.objects.filter(pk=project.pk).update(next_cycle_date=timezone.now() - timedelta(days=1))

        self.auth(self.admin)
        self.client.post(reverse("project-advance", args=[project.id]))

        resp = self.client.get(reverse("project-cycles", args=[project.id]))
        self.assertEqual([c["cycle_number"] for c in resp.data], [1, 2])
        self.assertEqual([c["status"] for c in resp.data], ["completed", "active"])


class HealthCheckTestCase(TestCase):
    def test_health(self):
        resp = APIClient().get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

from django.test import SimpleTestCase

from projects.models import Project, ProjectCycle
from projects.state_machine import (
    can_transition,
    can_transition_cycle,
    get_allowed_transitions,
    is_terminal_status,
)


class ProjectStateMachineTest(SimpleTestCase):
    def test_active_and_paused_toggle(self):
        self.assertTrue(can_transition(Project(status=Project.STATUS_ACTIVE), Project.STATUS_PAUSED)[0])
        self.assertTrue(can_transition(Project(status=Project.STATUS_PAUSED), Project.STATUS_ACTIVE)[0])

    def test_paused_project_cannot_complete(self):
        ok, reason = can_transition(Project(status=Project.STATUS_PAUSED), Project.STATUS_COMPLETED)
        self.assertFalse(ok)
        self.assertIn("paused", reason)

    def test_terminal_statuses(self):
        self.assertTrue(is_terminal_status(Project.STATUS_COMPLETED))
        self.assertTrue(is_terminal_status(Project.STATUS_CANCELLED))
        self.assertFalse(is_terminal_status(Project.STATUS_ACTIVE))
        self.assertEqual(get_allowed_transitions(Project(status=Project.STATUS_COMPLETED)), [])

    def test_unknown_status_rejected(self):
        ok, reason = can_transition(Project(status=Project.STATUS_ACTIVE), "archived")
        self.assertFalse(ok)
        self.assertIn("Invalid status", reason)

    def test_cycle_is_never_reopened(self):
        self.assertTrue(can_transition_cycle(ProjectCycle(status="active"), ProjectCycle.STATUS_COMPLETED)[0])
        self.assertFalse(can_transition_cycle(ProjectCycle(status="completed"), ProjectCycle.STATUS_ACTIVE)[0])

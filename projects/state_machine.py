# projects/state_machine.py
"""
Project / cycle state machines.

Project lifecycle:
active ⇄ paused
active → completed   (cycle cap reached, terminal)
active | paused → cancelled   (terminal)

Cycle lifecycle:
active → completed   (superseded by the next cycle, never reopened)
"""
from typing import Tuple

from .models import Project, ProjectCycle


# from_status -> allowed to_statuses
PROJECT_TRANSITIONS = {
    Project.STATUS_ACTIVE: [Project.STATUS_PAUSED, Project.STATUS_COMPLETED, Project.STATUS_CANCELLED],
    Project.STATUS_PAUSED: [Project.STATUS_ACTIVE, Project.STATUS_CANCELLED],
    Project.STATUS_COMPLETED: [],
    Project.STATUS_CANCELLED: [],
}

CYCLE_TRANSITIONS = {
    ProjectCycle.STATUS_ACTIVE: [ProjectCycle.STATUS_COMPLETED],
    ProjectCycle.STATUS_COMPLETED: [],
}


def can_transition(project: Project, new_status: str) -> Tuple[bool, str]:
    """
    Check if a project can move to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = project.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Project.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = PROJECT_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def can_transition_cycle(cycle: ProjectCycle, new_status: str) -> Tuple[bool, str]:
    if new_status == cycle.status:
        return True, "Same status"

    if new_status not in CYCLE_TRANSITIONS.get(cycle.status, []):
        return False, f"Cannot transition cycle from '{cycle.status}' to '{new_status}'"

    return True, ""


def get_allowed_transitions(project: Project) -> list:
    return PROJECT_TRANSITIONS.get(project.status, [])


def is_terminal_status(status: str) -> bool:
    """
    Completed and cancelled projects never move again through the normal flow.
    """
    return status not in PROJECT_TRANSITIONS or len(PROJECT_TRANSITIONS[status]) == 0

# projects/tasks.py

import logging

from celery import shared_task

from .services import ProjectCycleManager

logger = logging.getLogger("cos.projects")


@shared_task
def check_and_advance_cycles_task():
    """
    Periodic tick (Celery beat). Errors propagate so the run is recorded as
    failed; the next tick simply tries the due projects again.
    """
    processed = ProjectCycleManager(logger=logger).check_and_advance_cycles()
    return processed


@shared_task
def advance_project_cycle_task(project_id: str):
    cycle = ProjectCycleManager(logger=logger).advance_project_cycle(project_id)
    return str(cycle.id) if cycle else None


@shared_task
def update_cycle_progress_task(cycle_id: str):
    """
    Async wrapper for contribution-processing code that changes a cycle's
    amount outside the ORM signals.
    """
    cycle = ProjectCycleManager(logger=logger).update_cycle_progress(cycle_id)
    return str(cycle.progress_percentage)

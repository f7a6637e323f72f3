from django.core.management.base import BaseCommand, CommandError

from core.exceptions import NotFoundError
from projects.services import ProjectCycleManager


class Command(BaseCommand):
    help = "Advances every due recurring project to its next cycle (or a single project with --project)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--project",
            dest="project_id",
            help="Advance this project now, whether or not it is due",
        )

    def handle(self, *args, **options):
        manager = ProjectCycleManager()
        project_id = options.get("project_id")

        if project_id:
            try:
                cycle = manager.advance_project_cycle(project_id)
            except NotFoundError as e:
                raise CommandError(str(e))

            if cycle is None:
                self.stdout.write(f"Project {project_id} opened no new cycle (completed or cancelled)")
            else:
                self.stdout.write(self.style.SUCCESS(
                    f"Project {project_id} advanced to cycle {cycle.cycle_number}"
                ))
            return

        processed = manager.check_and_advance_cycles()
        self.stdout.write(self.style.SUCCESS(f"Processed {processed} due projects"))

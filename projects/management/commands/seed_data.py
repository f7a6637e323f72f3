from decimal import Decimal
import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from projects.models import Project
from projects.services import ProjectCycleManager

User = get_user_model()


class Command(BaseCommand):
    help = "Seeds the database with sample users, recurring projects and contributions"

    def handle(self, *args, **options):
        self.stdout.write("Seeding data...")

        # 1. Ensure Users
        admin, _ = User.objects.get_or_create(username="admin", defaults={"email": "admin@example.com", "role": "admin"})
        if not admin.check_password("admin"):
            admin.set_password("admin")
            admin.save()

        donors = []
        for name in ("alice", "bob"):
            donor, _ = User.objects.get_or_create(username=name, defaults={"email": f"{name}@example.com", "role": "donor"})
            donor.set_password("password")
            donor.save()
            donors.append(donor)

        # 2. Projects (first cycle opens on creation)
        manager = ProjectCycleManager()
        projects_data = [
            {
                "name": "School Meals Program",
                "description": "Daily lunches for 120 pupils at a rural primary school.",
                "category": "education",
                "target_amount": Decimal("3000"),
                "cycle_duration": Project.DURATION_MONTHLY,
                "total_cycles": 12,
            },
            {
                "name": "Orphan Sponsorship",
                "description": "Quarterly school fees and clothing for sponsored children.",
                "category": "sponsorship",
                "target_amount": Decimal("7500"),
                "cycle_duration": Project.DURATION_QUARTERLY,
                "total_cycles": None,
            },
            {
                "name": "Winter Relief",
                "description": "Weekly blanket and heater distribution during the cold season.",
                "category": "relief",
                "target_amount": Decimal("900"),
                "cycle_duration": Project.DURATION_WEEKLY,
                "total_cycles": 8,
            },
        ]

        for data in projects_data:
            project = Project.objects.filter(name=data["name"]).first()
            if project is None:
                project = manager.create_project(created_by=admin, **data)
                self.stdout.write(f"Created Project: {project.name}")
            else:
                self.stdout.write(f"Used Project: {project.name}")

            # 3. A few contributions on the active cycle
            cycle = project.cycles.filter(status="active").first()
            if cycle and not cycle.contributions.exists():
                for donor in donors:
                    amount = Decimal(random.randint(20, 400))
                    manager.record_contribution(cycle.id, amount, donor=donor)

        self.stdout.write(self.style.SUCCESS("Seeding complete."))

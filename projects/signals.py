from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import CycleContribution, ProjectCycle
from .services import ProjectCycleManager


@receiver(post_save, sender=CycleContribution)
def refresh_cycle_on_contribution(sender, instance, **kwargs):
    ProjectCycleManager().recalculate_cycle_amount(instance.cycle_id)


@receiver(post_delete, sender=CycleContribution)
def refresh_cycle_on_contribution_removed(sender, instance, **kwargs):
    if ProjectCycle.objects.filter(pk=instance.cycle_id).exists():
        ProjectCycleManager().recalculate_cycle_amount(instance.cycle_id)

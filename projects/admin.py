from django.contrib import admin

from .models import Project, ProjectCycle, CycleContribution
from .services import ProjectCycleManager


class ProjectCycleInline(admin.TabularInline):
    model = ProjectCycle
    extra = 0
    fields = ('cycle_number', 'status', 'start_date', 'end_date', 'target_amount', 'current_amount', 'progress_percentage')
    readonly_fields = fields
    can_delete = False


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'status', 'current_cycle_number', 'total_cycles', 'next_cycle_date', 'auto_progress')
    list_filter = ('status', 'category', 'cycle_duration', 'auto_progress')
    search_fields = ('name', 'description')
    readonly_fields = ('current_amount', 'current_cycle_number', 'last_cycle_date', 'created_at', 'updated_at')
    inlines = [ProjectCycleInline]
    actions = ['pause_projects', 'resume_projects']

    @admin.action(description="Pause selected projects")
    def pause_projects(self, request, queryset):
        manager = ProjectCycleManager()
        for project in queryset:
            manager.pause_project(project.pk)

    @admin.action(description="Resume selected projects")
    def resume_projects(self, request, queryset):
        manager = ProjectCycleManager()
        for project in queryset:
            manager.resume_project(project.pk)


@admin.register(ProjectCycle)
class ProjectCycleAdmin(admin.ModelAdmin):
    list_display = ('project', 'cycle_number', 'status', 'current_amount', 'target_amount', 'progress_percentage')
    list_filter = ('status',)
    search_fields = ('project__name',)


@admin.register(CycleContribution)
class CycleContributionAdmin(admin.ModelAdmin):
    list_display = ('cycle', 'donor', 'amount', 'anonymous', 'created_at')
    list_filter = ('anonymous', 'created_at')
    search_fields = ('donor__username', 'cycle__project__name')

from rest_framework import serializers

from .models import Project, ProjectCycle, CycleContribution
from .services import ProjectCycleManager, duration_days_for
from .state_machine import get_allowed_transitions, is_terminal_status


class ProjectCycleSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectCycle
        fields = [
            'id',
            'cycle_number',
            'start_date',
            'end_date',
            'target_amount',
            'current_amount',
            'status',
            'progress_percentage',
            'notes',
            'completed_at',
        ]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Project
        fields = [
            'id',
            'name',
            'description',
            'category',
            'target_amount',
            'current_amount',
            'status',
            'cycle_duration',
            'cycle_duration_days',
            'total_cycles',
            'current_cycle_number',
            'next_cycle_date',
            'last_cycle_date',
            'auto_progress',
            'created_by',
            'created_by_name',
            'created_at',
            'updated_at',
        ]
        # Cycle bookkeeping belongs to ProjectCycleManager
        read_only_fields = [
            'current_amount',
            'status',
            'current_cycle_number',
            'next_cycle_date',
            'last_cycle_date',
            'created_by',
            'created_at',
            'updated_at',
        ]

    def validate_target_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Target amount must be greater than zero.")
        return value

    def validate(self, attrs):
        if self.instance is not None and is_terminal_status(self.instance.status):
            if 'total_cycles' in attrs and attrs['total_cycles'] != self.instance.total_cycles:
                raise serializers.ValidationError(
                    {"total_cycles": f"Cannot change the cycle cap of a {self.instance.status} project."}
                )

        cycle_duration = attrs.get(
            'cycle_duration',
            getattr(self.instance, 'cycle_duration', Project.DURATION_MONTHLY),
        )
        days = attrs.get('cycle_duration_days')

        if cycle_duration == Project.DURATION_CUSTOM:
            if not days and not getattr(self.instance, 'cycle_duration_days', None):
                raise serializers.ValidationError(
                    {"cycle_duration_days": "Required when cycle_duration is 'custom'."}
                )
        else:
            # Presets always define the day count
            attrs['cycle_duration_days'] = duration_days_for(cycle_duration)

        return attrs

    def create(self, validated_data):
        request = self.context.get('request')
        validated_data.pop('created_by', None)
        return ProjectCycleManager().create_project(
            created_by=getattr(request, 'user', None),
            **validated_data,
        )


class ProjectDetailSerializer(ProjectSerializer):
    cycles = ProjectCycleSerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['cycles', 'allowed_transitions']

    def get_allowed_transitions(self, obj):
        return get_allowed_transitions(obj)


class CycleContributionSerializer(serializers.ModelSerializer):
    donor_name = serializers.SerializerMethodField()

    class Meta:
        model = CycleContribution
        fields = ['id', 'cycle', 'amount', 'anonymous', 'message', 'donor_name', 'created_at']
        read_only_fields = ['id', 'cycle', 'donor_name', 'created_at']

    def get_donor_name(self, obj):
        if obj.anonymous or obj.donor is None:
            return None
        return obj.donor.username


class ProjectCycleStatsSerializer(serializers.Serializer):
    total_cycles = serializers.IntegerField()
    completed_cycles = serializers.IntegerField()
    active_cycles = serializers.IntegerField()
    total_raised = serializers.DecimalField(max_digits=14, decimal_places=2)

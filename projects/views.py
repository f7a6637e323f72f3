from django.shortcuts import get_object_or_404
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Project, ProjectCycle, CycleContribution
from .permissions import IsProjectManagerOrReadOnly, IsAppAdmin
from .serializers import (
    ProjectSerializer,
    ProjectDetailSerializer,
    ProjectCycleSerializer,
    CycleContributionSerializer,
    ProjectCycleStatsSerializer,
)
from .services import ProjectCycleManager


class ProjectViewSet(viewsets.ModelViewSet):
    """
    Recurring projects.
    - List / retrieve: any authenticated user
    - Create: authenticated (creator becomes owner, cycle 1 opens immediately)
    - Update / delete / pause / resume / cancel: creator or admin
    - Advance: admin only (manual override of the scheduler)
    """
    queryset = Project.objects.select_related('created_by')
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated, IsProjectManagerOrReadOnly]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    # Only the advance action sets a scope
    throttle_scope = None

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ProjectDetailSerializer
        return ProjectSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('cycles')

        status_param = self.request.query_params.get('status')
        if status_param:
            queryset = queryset.filter(status=status_param)

        category = self.request.query_params.get('category')
        if category:
            queryset = queryset.filter(category=category)

        return queryset

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        total_count = qs.count()

        try:
            limit_val = int(request.query_params.get('limit', 50))
            offset_val = int(request.query_params.get('offset', 0))
        except ValueError:
            return Response({"error": "Invalid pagination params"}, status=status.HTTP_400_BAD_REQUEST)

        limit_val = max(1, min(limit_val, 100))  # Cap at 100
        offset_val = max(0, offset_val)

        serializer = self.get_serializer(qs[offset_val:offset_val + limit_val], many=True)
        return Response({
            "count": total_count,
            "results": serializer.data,
            "limit": limit_val,
            "offset": offset_val,
        })

    # ---- Lifecycle actions -------------------------------------------

    def _status_response(self, project):
        return Response(ProjectSerializer(project, context=self.get_serializer_context()).data)

    @action(detail=True, methods=['post'])
    def pause(self, request, pk=None):
        project = self.get_object()
        return self._status_response(ProjectCycleManager().pause_project(project.pk))

    @action(detail=True, methods=['post'])
    def resume(self, request, pk=None):
        project = self.get_object()
        return self._status_response(ProjectCycleManager().resume_project(project.pk))

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        project = self.get_object()
        return self._status_response(ProjectCycleManager().cancel_project(project.pk))

    @action(
        detail=True,
        methods=['post'],
        permission_classes=[permissions.IsAuthenticated, IsAppAdmin],
        throttle_scope='project-advance',
    )
    def advance(self, request, pk=None):
        project = self.get_object()
        cycle = ProjectCycleManager().advance_project_cycle(project.pk)
        project.refresh_from_db()
        return Response({
            "project": ProjectSerializer(project, context=self.get_serializer_context()).data,
            "cycle": ProjectCycleSerializer(cycle).data if cycle else None,
        })

    # ---- Reads --------------------------------------------------------

    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        project = self.get_object()
        stats = ProjectCycleManager().get_project_cycle_stats(project.pk)
        return Response(ProjectCycleStatsSerializer(stats).data)

    @action(detail=True, methods=['get'])
    def cycles(self, request, pk=None):
        project = self.get_object()
        serializer = ProjectCycleSerializer(project.cycles.order_by('cycle_number'), many=True)
        return Response(serializer.data)


class CycleContributionListCreateView(APIView):
    """
    GET  /api/projects/cycles/<cycle_id>/contributions/
    POST /api/projects/cycles/<cycle_id>/contributions/   {amount, anonymous?, message?}

    Posting a contribution refreshes the cycle's amount, its progress and the
    project's running total.
    """
    permission_classes = [permissions.IsAuthenticated]
    throttle_scope = 'cycle-contribution'

    def get(self, request, cycle_id):
        cycle = get_object_or_404(ProjectCycle, pk=cycle_id)
        qs = CycleContribution.objects.filter(cycle=cycle).select_related('donor')
        return Response(CycleContributionSerializer(qs, many=True).data)

    def post(self, request, cycle_id):
        serializer = CycleContributionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        contribution = ProjectCycleManager().record_contribution(
            cycle_id,
            serializer.validated_data['amount'],
            donor=request.user,
            anonymous=serializer.validated_data.get('anonymous', False),
            message=serializer.validated_data.get('message'),
        )
        return Response(CycleContributionSerializer(contribution).data, status=status.HTTP_201_CREATED)

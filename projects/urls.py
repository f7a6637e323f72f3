from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import ProjectViewSet, CycleContributionListCreateView

router = SimpleRouter()
router.register(r'', ProjectViewSet, basename='project')

urlpatterns = [
    path(
        'cycles/<uuid:cycle_id>/contributions/',
        CycleContributionListCreateView.as_view(),
        name='cycle-contributions',
    ),
    path('', include(router.urls)),
]

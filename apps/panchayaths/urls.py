"""
URL configuration for panchayath domain resources.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from apps.panchayaths.views import PanchayathViewSet, AgentViewSet, ManagementTeamViewSet

app_name = 'panchayaths'

router = DefaultRouter(trailing_slash=False)
router.register(r'panchayaths', PanchayathViewSet, basename='panchayath')
router.register(r'agents', AgentViewSet, basename='agent')
router.register(r'management-teams', ManagementTeamViewSet, basename='management-team')

urlpatterns = [
    path('', include(router.urls)),
]

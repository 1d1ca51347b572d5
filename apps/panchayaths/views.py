"""
Views for panchayath, agent and management team endpoints.
"""
import uuid

from django.db.models import Count, Q
from rest_framework import viewsets
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter

from apps.audit.services import audited_transaction
from apps.core.exceptions import InvalidInput
from apps.core.permissions import ResourcePolicyPermission
from apps.panchayaths.models import Panchayath, Agent, ManagementTeam
from apps.panchayaths.serializers import (
    PanchayathSerializer, AgentSerializer, ManagementTeamSerializer,
)


class AuditedModelViewSet(viewsets.ModelViewSet):
    """
    ModelViewSet whose writes are attributed to the requesting administrator
    and committed together with their audit records.
    """

    permission_classes = [ResourcePolicyPermission]

    def perform_create(self, serializer):
        with audited_transaction(self.request.user):
            serializer.save()

    def perform_update(self, serializer):
        with audited_transaction(self.request.user):
            serializer.save()

    def perform_destroy(self, instance):
        with audited_transaction(self.request.user):
            instance.delete()


@extend_schema_view(
    list=extend_schema(
        tags=['Panchayaths'],
        summary='List panchayaths',
        parameters=[
            OpenApiParameter('district', str, description='Filter by district'),
            OpenApiParameter('state', str, description='Filter by state'),
            OpenApiParameter('search', str, description='Search in name and district'),
        ]
    ),
    create=extend_schema(tags=['Panchayaths'], summary='Create panchayath'),
    retrieve=extend_schema(tags=['Panchayaths'], summary='Get panchayath'),
    update=extend_schema(tags=['Panchayaths'], summary='Update panchayath'),
    partial_update=extend_schema(tags=['Panchayaths'], summary='Partially update panchayath'),
    destroy=extend_schema(
        tags=['Panchayaths'],
        summary='Delete panchayath',
        description='Deletes the panchayath and its agents; management teams are detached.'
    ),
)
class PanchayathViewSet(AuditedModelViewSet):
    """
    CRUD for panchayaths.
    """

    serializer_class = PanchayathSerializer
    policy_resource = 'panchayaths'

    def get_queryset(self):
        queryset = Panchayath.objects.annotate(agent_count=Count('agents')).order_by('name')

        params = self.request.query_params
        if params.get('district'):
            queryset = queryset.filter(district__iexact=params['district'])
        if params.get('state'):
            queryset = queryset.filter(state__iexact=params['state'])
        if params.get('search'):
            queryset = queryset.filter(
                Q(name__icontains=params['search']) | Q(district__icontains=params['search'])
            )
        return queryset


@extend_schema_view(
    list=extend_schema(
        tags=['Agents'],
        summary='List agents',
        parameters=[
            OpenApiParameter('panchayath', str, description='Filter by panchayath ID'),
            OpenApiParameter('role', str, description='Filter by role'),
            OpenApiParameter('search', str, description='Search in name, phone and ward'),
        ]
    ),
    create=extend_schema(tags=['Agents'], summary='Create agent'),
    retrieve=extend_schema(tags=['Agents'], summary='Get agent'),
    update=extend_schema(tags=['Agents'], summary='Update agent'),
    partial_update=extend_schema(tags=['Agents'], summary='Partially update agent'),
    destroy=extend_schema(tags=['Agents'], summary='Delete agent'),
)
class AgentViewSet(AuditedModelViewSet):
    """CRUD for field agents."""

    serializer_class = AgentSerializer
    policy_resource = 'agents'

    def get_queryset(self):
        queryset = Agent.objects.select_related('panchayath').order_by('name')

        params = self.request.query_params
        if params.get('panchayath'):
            try:
                panchayath_id = uuid.UUID(params['panchayath'])
            except ValueError:
                raise InvalidInput('Invalid panchayath id', details={'panchayath': params['panchayath']})
            queryset = queryset.filter(panchayath_id=panchayath_id)
        if params.get('role'):
            queryset = queryset.filter(role=params['role'])
        if params.get('search'):
            search = params['search']
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(phone__icontains=search) | Q(ward__icontains=search)
            )
        return queryset


@extend_schema_view(
    list=extend_schema(
        tags=['Management Teams'],
        summary='List management teams',
        parameters=[
            OpenApiParameter('is_active', bool, description='Filter by active status'),
        ]
    ),
    create=extend_schema(tags=['Management Teams'], summary='Create management team'),
    retrieve=extend_schema(tags=['Management Teams'], summary='Get management team'),
    update=extend_schema(tags=['Management Teams'], summary='Update management team'),
    partial_update=extend_schema(tags=['Management Teams'], summary='Partially update management team'),
    destroy=extend_schema(tags=['Management Teams'], summary='Delete management team'),
)
class ManagementTeamViewSet(AuditedModelViewSet):
    """CRUD for management teams."""

    serializer_class = ManagementTeamSerializer
    policy_resource = 'teams'

    def get_queryset(self):
        queryset = ManagementTeam.objects.select_related('panchayath').order_by('name')

        is_active = self.request.query_params.get('is_active')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() in ['true', '1', 'yes'])
        return queryset

"""
Report API views.
"""
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import ResourcePolicyPermission
from apps.reports.serializers import BreakdownSerializer, DashboardSerializer
from apps.reports.services import ReportService


class DashboardView(APIView):
    """
    GET /v1/reports/dashboard
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'reports'

    @extend_schema(
        tags=['Reports'],
        summary='Dashboard',
        description='Counts of administrators, panchayaths, agents and active teams with the 10 most recent audit records.',
        responses={200: DashboardSerializer}
    )
    def get(self, request):
        return Response(DashboardSerializer(ReportService.dashboard()).data)


class BreakdownView(APIView):
    """
    GET /v1/reports/breakdown?range=30d
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'reports'

    @extend_schema(
        tags=['Reports'],
        summary='Breakdown',
        description='Agents by role, panchayaths by state and audit activity per day.',
        parameters=[
            OpenApiParameter('range', OpenApiTypes.STR, description='Days back, e.g. "7d" (default "30d")'),
        ],
        responses={200: BreakdownSerializer, 400: OpenApiTypes.OBJECT}
    )
    def get(self, request):
        date_range = request.query_params.get('range', '30d')
        return Response(BreakdownSerializer(ReportService.breakdown(date_range)).data)

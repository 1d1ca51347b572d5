"""
Audit trail API views.
"""
import csv
import logging
from io import StringIO

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.audit.serializers import AuditLogSerializer
from apps.audit.services import AuditRecorder
from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import ResourcePolicyPermission

logger = logging.getLogger(__name__)

AUDIT_FILTER_PARAMETERS = [
    OpenApiParameter('action', OpenApiTypes.STR, description='Filter by action (create, update, delete)'),
    OpenApiParameter('table_name', OpenApiTypes.STR, description='Filter by affected resource'),
    OpenApiParameter('user', OpenApiTypes.STR, description='Filter by actor username (substring)'),
    OpenApiParameter('from_date', OpenApiTypes.STR, description='Inclusive start (YYYY-MM-DD or ISO 8601)'),
    OpenApiParameter('to_date', OpenApiTypes.STR, description='Inclusive end (YYYY-MM-DD or ISO 8601)'),
    OpenApiParameter('search', OpenApiTypes.STR, description='Substring across action, table, record and user'),
]


def filtered_audit_logs(request):
    """Apply the shared audit filters from query parameters."""
    params = request.query_params
    return AuditRecorder.list(
        action=params.get('action'),
        table_name=params.get('table_name'),
        actor_username=params.get('user'),
        date_from=params.get('from_date'),
        date_to=params.get('to_date'),
        search=params.get('search'),
    )


@extend_schema_view(
    get=extend_schema(
        tags=['Audit'],
        summary='List audit logs',
        description='''
List audit records newest first. Every create, update and delete of a tracked
resource (admin users, settings, panchayaths, agents, management teams) and
every grant change appears here.

Date bounds are inclusive; a plain date covers the whole day.
        ''',
        parameters=AUDIT_FILTER_PARAMETERS,
        responses={
            200: AuditLogSerializer(many=True),
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
        }
    )
)
class AuditLogListView(APIView):
    """
    GET /v1/audit-logs

    List audit records with filters.
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'audit'
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        """List audit logs."""
        logs = filtered_audit_logs(request)

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(logs, request)

        serializer = AuditLogSerializer(page, many=True)

        return paginator.get_paginated_response(serializer.data)


@extend_schema_view(
    get=extend_schema(
        tags=['Audit'],
        summary='Export audit logs as CSV',
        description='Download the filtered audit records as a CSV file.',
        parameters=AUDIT_FILTER_PARAMETERS,
        responses={
            (200, 'text/csv'): OpenApiTypes.STR,
            403: OpenApiTypes.OBJECT,
        }
    )
)
class AuditLogExportView(APIView):
    """
    GET /v1/audit-logs/export

    Columns: Timestamp, User, Action, Table, Record ID, IP Address.
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'audit'

    def get(self, request):
        logs = filtered_audit_logs(request)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(['Timestamp', 'User', 'Action', 'Table', 'Record ID', 'IP Address'])

        rows = 0
        for log in logs.iterator():
            writer.writerow([
                log.created_at.isoformat(),
                log.actor_username or 'Unknown',
                log.action,
                log.table_name,
                log.record_id,
                log.ip_address or '',
            ])
            rows += 1

        csv_content = output.getvalue()
        output.close()

        logger.info(
            f"Audit logs exported by {request.user.get_username()}",
            extra={
                'rows': rows,
                'filters': dict(request.query_params.items()),
                'request_id': getattr(request, 'request_id', None),
            }
        )

        filename = f"audit-logs-{timezone.localdate().isoformat()}.csv"
        response = HttpResponse(csv_content, content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

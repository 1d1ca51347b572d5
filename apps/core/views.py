"""
Core API views.
"""
import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger(__name__)

HEALTH_CACHE_KEY = 'health_check'


def check_database():
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def check_cache():
    cache.set(HEALTH_CACHE_KEY, 'ok', timeout=10)
    if cache.get(HEALTH_CACHE_KEY) != 'ok':
        raise ConnectionError("Unable to read test key")


def check_capabilities():
    """The capability catalog is empty until ``seed_permissions`` has run."""
    from apps.rbac.models import AdminPermission

    if not AdminPermission.objects.exists():
        raise LookupError("Capability catalog is empty; run seed_permissions")


class HealthCheckView(APIView):
    """
    GET /v1/health/

    Returns 200 when the database and cache answer, 503 otherwise. An
    unseeded capability catalog is reported as a warning only.
    """
    authentication_classes = []
    permission_classes = []

    # (name, check, expected failures, fatal)
    CHECKS = [
        ('database', check_database, (DatabaseError,), True),
        ('cache', check_cache, (ConnectionError, OSError), True),
        ('capabilities', check_capabilities, (LookupError, DatabaseError), False),
    ]

    @extend_schema(
        tags=['System'],
        summary="Health check",
        description="Check the database, the cache and whether the capability catalog is seeded",
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'status': {'type': 'string'},
                    'database': {'type': 'string'},
                    'cache': {'type': 'string'},
                    'capabilities': {'type': 'string'},
                    'warnings': {'type': 'array', 'items': {'type': 'string'}},
                }
            },
            503: {
                'type': 'object',
                'properties': {
                    'status': {'type': 'string'},
                    'errors': {'type': 'array', 'items': {'type': 'string'}},
                }
            }
        }
    )
    def get(self, request):
        health_status = {'status': 'healthy'}
        errors = []
        warnings = []

        for name, check, failures, fatal in self.CHECKS:
            try:
                check()
                health_status[name] = 'healthy'
            except failures as e:
                if fatal:
                    health_status[name] = 'unhealthy'
                    errors.append(f"{name.capitalize()}: {e}")
                    logger.error(f"{name} health check failed", exc_info=True)
                else:
                    health_status[name] = 'degraded'
                    warnings.append(f"{name.capitalize()}: {e}")

        if warnings:
            health_status['warnings'] = warnings

        if errors:
            health_status['status'] = 'unhealthy'
            health_status['errors'] = errors
            return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(health_status, status=status.HTTP_200_OK)

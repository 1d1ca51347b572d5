"""
System settings API views.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import InvalidInput, NotFound
from apps.core.permissions import ResourcePolicyPermission
from apps.settings_store.models import SystemSetting
from apps.settings_store.serializers import (
    SettingBatchSerializer, SettingValueSerializer, SystemSettingSerializer,
)
from apps.settings_store.services import SettingsStore

logger = logging.getLogger(__name__)


@extend_schema_view(
    get=extend_schema(
        tags=['Settings'],
        summary='List settings',
        responses={200: SystemSettingSerializer(many=True)}
    ),
    put=extend_schema(
        tags=['Settings'],
        summary='Save settings batch',
        description='''
Create or overwrite several settings at once. The batch is all-or-nothing:
if any entry is rejected or any write fails, none of the entries are saved.
        ''',
        request=SettingBatchSerializer,
        responses={
            200: SystemSettingSerializer(many=True),
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
        },
        examples=[
            OpenApiExample(
                'Batch Request',
                value={
                    'settings': [
                        {'key': 'max_login_attempts', 'value': 3},
                        {'key': 'maintenance_mode', 'value': True},
                    ]
                },
                request_only=True
            )
        ]
    )
)
class SettingListView(APIView):
    """
    GET /v1/settings
    PUT /v1/settings
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'settings'

    def get(self, request):
        settings_qs = SystemSetting.objects.select_related('updated_by').order_by('key')
        serializer = SystemSettingSerializer(settings_qs, many=True)
        return Response({
            'count': len(serializer.data),
            'settings': serializer.data,
        })

    def put(self, request):
        serializer = SettingBatchSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInput('Validation error', details=serializer.errors)

        saved = SettingsStore.set_all(request.user, serializer.validated_data['settings'])
        return Response({
            'count': len(saved),
            'settings': SystemSettingSerializer(saved, many=True).data,
        }, status=status.HTTP_200_OK)


@extend_schema_view(
    get=extend_schema(
        tags=['Settings'],
        summary='Get setting',
        responses={200: SystemSettingSerializer, 404: OpenApiTypes.OBJECT}
    ),
    put=extend_schema(
        tags=['Settings'],
        summary='Save setting',
        description='Create or overwrite one setting. The value may be any JSON value.',
        request=SettingValueSerializer,
        responses={
            200: SystemSettingSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
        }
    )
)
class SettingDetailView(APIView):
    """
    GET /v1/settings/{key}
    PUT /v1/settings/{key}
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'settings'

    def get(self, request, key):
        setting = SystemSetting.objects.select_related('updated_by').filter(key=key).first()
        if setting is None:
            raise NotFound('Setting not found', details={'key': key})
        return Response(SystemSettingSerializer(setting).data)

    def put(self, request, key):
        serializer = SettingValueSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInput('Validation error', details=serializer.errors)

        setting = SettingsStore.set(
            request.user,
            key,
            serializer.validated_data['value'],
            description=serializer.validated_data.get('description'),
        )
        return Response(SystemSettingSerializer(setting).data, status=status.HTTP_200_OK)

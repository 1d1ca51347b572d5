"""
RBAC REST API views.

Implements endpoints for:
- Administrator accounts (list, create, detail, update, delete, activation)
- Capability grants per administrator
- Capability catalog
"""
import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import InvalidInput, NotFound
from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import ResourcePolicyPermission
from apps.rbac.models import AdminUser
from apps.rbac.serializers import (
    ActiveFlagSerializer, AdminPermissionSerializer, AdminUserCreateSerializer,
    AdminUserPermissionSerializer, AdminUserSerializer, AdminUserUpdateSerializer,
    GrantReplaceSerializer, GrantSerializer,
)
from apps.rbac.services import IdentityService, PermissionRegistry

logger = logging.getLogger(__name__)


def validated(serializer):
    """Return validated data or raise InvalidInput carrying the field errors."""
    if not serializer.is_valid():
        raise InvalidInput('Validation error', details=serializer.errors)
    return serializer.validated_data


def get_admin_user(user_id):
    try:
        return AdminUser.objects.get(pk=user_id)
    except AdminUser.DoesNotExist:
        raise NotFound('Administrator not found', details={'id': str(user_id)})


@extend_schema_view(
    get=extend_schema(
        tags=['Admin Users'],
        summary='List administrators',
        description='''
List administrator accounts, newest first.

Query parameters:
- `role`: Filter by role (super_admin, admin, local_admin)
- `is_active`: Filter by active flag
- `search`: Substring of username or email
        ''',
        parameters=[
            OpenApiParameter('role', OpenApiTypes.STR, description='Filter by role'),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, description='Filter by active flag'),
            OpenApiParameter('search', OpenApiTypes.STR, description='Search username or email'),
        ],
        responses={200: AdminUserSerializer(many=True)}
    ),
    post=extend_schema(
        tags=['Admin Users'],
        summary='Create administrator',
        description='Create an administrator account. **Requires role:** `super_admin`',
        request=AdminUserCreateSerializer,
        responses={
            201: AdminUserSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        }
    )
)
class AdminUserListView(APIView):
    """
    GET /v1/admin-users
    POST /v1/admin-users
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'identities'
    pagination_class = StandardResultsSetPagination

    def get(self, request):
        """List administrators."""
        users = AdminUser.objects.all().order_by('-created_at')

        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)

        is_active = request.query_params.get('is_active')
        if is_active is not None:
            users = users.filter(is_active=is_active.lower() in ('true', '1'))

        search = request.query_params.get('search')
        if search:
            users = users.filter(Q(username__icontains=search) | Q(email__icontains=search))

        paginator = self.pagination_class()
        page = paginator.paginate_queryset(users, request)
        serializer = AdminUserSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request):
        """Create administrator."""
        data = validated(AdminUserCreateSerializer(data=request.data))

        user = IdentityService.create(
            request.user,
            username=data['username'],
            password=data['password'],
            role=data['role'],
            email=data.get('email'),
        )
        return Response(AdminUserSerializer(user).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    get=extend_schema(
        tags=['Admin Users'],
        summary='Get administrator',
        responses={200: AdminUserSerializer, 404: OpenApiTypes.OBJECT}
    ),
    patch=extend_schema(
        tags=['Admin Users'],
        summary='Update administrator',
        description='Change username, email, role or password. **Requires role:** `super_admin`',
        request=AdminUserUpdateSerializer,
        responses={
            200: AdminUserSerializer,
            400: OpenApiTypes.OBJECT,
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
            409: OpenApiTypes.OBJECT,
        }
    ),
    delete=extend_schema(
        tags=['Admin Users'],
        summary='Delete administrator',
        description='''
Delete an administrator. Their grants are removed with them.

**Requires role:** `super_admin`. An administrator cannot delete their own account.
        ''',
        responses={204: None, 403: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
    )
)
class AdminUserDetailView(APIView):
    """
    GET /v1/admin-users/{user_id}
    PATCH /v1/admin-users/{user_id}
    DELETE /v1/admin-users/{user_id}
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'identities'

    def get(self, request, user_id):
        return Response(AdminUserSerializer(get_admin_user(user_id)).data)

    def patch(self, request, user_id):
        data = validated(AdminUserUpdateSerializer(data=request.data, partial=True))
        user = IdentityService.update(request.user, user_id, **data)
        return Response(AdminUserSerializer(user).data)

    def delete(self, request, user_id):
        IdentityService.delete(request.user, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    tags=['Admin Users'],
    summary='Activate or deactivate administrator',
    description='''
Toggle whether an account can be used. History and grants are kept.

**Requires role:** `super_admin`
    ''',
    request=ActiveFlagSerializer,
    responses={200: AdminUserSerializer, 403: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT}
)
class AdminUserActiveView(APIView):
    """
    POST /v1/admin-users/{user_id}/active
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'identities'

    def post(self, request, user_id):
        data = validated(ActiveFlagSerializer(data=request.data))
        user = IdentityService.set_active(request.user, user_id, data['is_active'])
        return Response(AdminUserSerializer(user).data)


@extend_schema_view(
    get=extend_schema(
        tags=['Admin Users'],
        summary='List grants of an administrator',
        responses={200: AdminUserPermissionSerializer(many=True), 404: OpenApiTypes.OBJECT}
    ),
    put=extend_schema(
        tags=['Admin Users'],
        summary='Replace grants of an administrator',
        description='''
Replace the administrator's capability set with exactly the submitted IDs.
The replacement is atomic: either the full old set or the full new set is
visible, never a mix. An empty list revokes everything.

**Requires role:** `super_admin`
        ''',
        request=GrantReplaceSerializer,
        responses={
            200: AdminUserPermissionSerializer(many=True),
            403: OpenApiTypes.OBJECT,
            404: OpenApiTypes.OBJECT,
        }
    )
)
class AdminUserPermissionsView(APIView):
    """
    GET /v1/admin-users/{user_id}/permissions
    PUT /v1/admin-users/{user_id}/permissions
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'grants'

    def get(self, request, user_id):
        user = get_admin_user(user_id)
        grants = PermissionRegistry.grants_for(user.pk).select_related('granted_by')
        return Response({
            'user_id': str(user.id),
            'permissions': AdminUserPermissionSerializer(grants, many=True).data,
        })

    def put(self, request, user_id):
        data = validated(GrantReplaceSerializer(data=request.data))
        PermissionRegistry.replace_grants(request.user, user_id, data['permission_ids'])
        grants = PermissionRegistry.grants_for(user_id).select_related('granted_by')
        return Response({
            'user_id': str(user_id),
            'permissions': AdminUserPermissionSerializer(grants, many=True).data,
        })


@extend_schema(
    tags=['Admin Users'],
    summary='Grant one capability',
    description='''
Grant a capability to an administrator. Granting a capability the
administrator already holds is a no-op and returns 200 with the existing grant.

**Requires role:** `super_admin`
    ''',
    request=GrantSerializer,
    responses={
        200: AdminUserPermissionSerializer,
        201: AdminUserPermissionSerializer,
        403: OpenApiTypes.OBJECT,
        404: OpenApiTypes.OBJECT,
    }
)
class AdminUserGrantView(APIView):
    """
    POST /v1/admin-users/{user_id}/permissions/grant
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'grants'

    def post(self, request, user_id):
        data = validated(GrantSerializer(data=request.data))
        existing = PermissionRegistry.grants_for(user_id).filter(permission_id=data['permission_id']).exists()
        grant = PermissionRegistry.grant(request.user, user_id, data['permission_id'])
        return Response(
            AdminUserPermissionSerializer(grant).data,
            status=status.HTTP_200_OK if existing else status.HTTP_201_CREATED
        )


@extend_schema_view(
    get=extend_schema(
        tags=['Permissions'],
        summary='List capabilities',
        description='''
List the capability catalog ordered by module then action.

Query parameters:
- `module`: Filter by module
- `group_by_module`: Set to 'true' to group capabilities by module
        ''',
        parameters=[
            OpenApiParameter('module', OpenApiTypes.STR, description='Filter by module'),
            OpenApiParameter('group_by_module', OpenApiTypes.BOOL, description='Group results by module'),
        ],
        responses={200: AdminPermissionSerializer(many=True)}
    )
)
class PermissionListView(APIView):
    """
    GET /v1/permissions
    """

    permission_classes = [ResourcePolicyPermission]
    policy_resource = 'capabilities'

    def get(self, request):
        """List all capabilities."""
        if request.query_params.get('group_by_module') == 'true':
            grouped = PermissionRegistry.group_by_module()
            return Response({
                'count': sum(len(capabilities) for capabilities in grouped.values()),
                'permissions_by_module': {
                    module: AdminPermissionSerializer(capabilities, many=True).data
                    for module, capabilities in grouped.items()
                },
            })

        capabilities = PermissionRegistry.list_capabilities()
        module = request.query_params.get('module')
        if module:
            capabilities = capabilities.filter(module=module)

        serializer = AdminPermissionSerializer(capabilities, many=True)
        return Response({
            'count': len(serializer.data),
            'permissions': serializer.data,
        })

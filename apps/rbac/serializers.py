"""
Serializers for RBAC and authentication endpoints.
"""
from rest_framework import serializers
from apps.rbac.models import AdminUser, AdminPermission, AdminUserPermission


class AdminUserSerializer(serializers.ModelSerializer):
    """Administrator account. The password hash is never exposed."""

    class Meta:
        model = AdminUser
        fields = [
            'id', 'username', 'email', 'role', 'is_active',
            'last_login_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class AdminUserCreateSerializer(serializers.Serializer):
    """Input for creating an administrator."""

    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=8, style={'input_type': 'password'})
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    role = serializers.CharField(required=False, default=AdminUser.ROLE_ADMIN)


class AdminUserUpdateSerializer(serializers.Serializer):
    """Partial update of an administrator."""

    username = serializers.CharField(max_length=150, required=False)
    password = serializers.CharField(write_only=True, min_length=8, required=False, style={'input_type': 'password'})
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    role = serializers.CharField(required=False)


class ActiveFlagSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class AdminPermissionSerializer(serializers.ModelSerializer):
    """Capability in the catalog."""

    code = serializers.CharField(read_only=True)

    class Meta:
        model = AdminPermission
        fields = ['id', 'module', 'action', 'code', 'description']
        read_only_fields = fields


class AdminUserPermissionSerializer(serializers.ModelSerializer):
    """Grant of a capability to an administrator."""

    permission = AdminPermissionSerializer(read_only=True)
    granted_by = serializers.CharField(source='granted_by.username', read_only=True, default=None)

    class Meta:
        model = AdminUserPermission
        fields = ['id', 'permission', 'granted_by', 'created_at']
        read_only_fields = fields


class GrantReplaceSerializer(serializers.Serializer):
    """Full desired capability set of an administrator."""

    permission_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=True,
        help_text="Capability IDs the administrator should hold"
    )


class GrantSerializer(serializers.Serializer):
    permission_id = serializers.UUIDField()


class LoginSerializer(serializers.Serializer):
    """Serializer for login."""

    username = serializers.CharField(required=True)
    password = serializers.CharField(required=True, write_only=True, style={'input_type': 'password'})


class ProfileSerializer(AdminUserSerializer):
    """Signed-in administrator with granted capability codes."""

    capabilities = serializers.SerializerMethodField()

    class Meta(AdminUserSerializer.Meta):
        fields = AdminUserSerializer.Meta.fields + ['capabilities']
        read_only_fields = fields

    def get_capabilities(self, obj):
        from apps.rbac.services import PermissionRegistry
        return sorted(PermissionRegistry.capabilities_for(obj))

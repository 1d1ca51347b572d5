"""
Tests for RBAC management commands.
"""
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.audit.models import AuditLog
from apps.rbac.models import AdminPermission, AdminUser
from apps.rbac.services import PermissionRegistry


@pytest.mark.django_db
class TestSeedPermissions:
    """Test the seed_permissions command."""

    def test_seeds_catalog(self):
        out = StringIO()

        call_command('seed_permissions', stdout=out)

        assert AdminPermission.objects.count() == len(PermissionRegistry.DEFAULT_CAPABILITIES)
        assert AdminPermission.objects.by_code('audit:read') is not None
        assert 'Seeding complete' in out.getvalue()

    def test_is_idempotent(self):
        call_command('seed_permissions', stdout=StringIO())
        out = StringIO()

        call_command('seed_permissions', stdout=out)

        assert AdminPermission.objects.count() == len(PermissionRegistry.DEFAULT_CAPABILITIES)
        assert '0 created' in out.getvalue()

    def test_restores_descriptions(self):
        call_command('seed_permissions', stdout=StringIO())
        AdminPermission.objects.filter(module='users', action='read').update(description='stale')

        call_command('seed_permissions', stdout=StringIO())

        assert AdminPermission.objects.by_code('users:read').description == 'View admin users'


@pytest.mark.django_db
class TestCreateSuperAdmin:
    """Test the create_super_admin command."""

    def test_creates_account(self):
        out = StringIO()

        call_command('create_super_admin', '--username', 'root', '--password', 'root-pass-123', stdout=out)

        user = AdminUser.objects.get(username='root')
        assert user.role == AdminUser.ROLE_SUPER_ADMIN
        assert user.check_password('root-pass-123')
        assert 'Created super_admin' in out.getvalue()

        entry = AuditLog.objects.by_table('admin_users', user.pk).get()
        assert entry.actor_id is None

    def test_promotes_existing_account(self, admin_user):
        call_command('create_super_admin', '--username', 'admin', stdout=StringIO())

        admin_user.refresh_from_db()
        assert admin_user.role == AdminUser.ROLE_SUPER_ADMIN

    def test_missing_account_needs_password(self):
        with pytest.raises(CommandError):
            call_command('create_super_admin', '--username', 'ghost', stdout=StringIO())

        assert not AdminUser.objects.filter(username='ghost').exists()

"""
Unit tests for RBAC services.

Tests identity management, capability grants, login lockout and JWT handling.
"""
import uuid
from datetime import timedelta
from unittest.mock import patch

import jwt
import pytest
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.core.exceptions import (
    DuplicateKey, InvalidCredentials, InvalidInput, InvalidRole, NotFound,
    TransactionFailure, Unauthorized,
)
from apps.rbac.models import AdminUser, AdminUserPermission
from apps.rbac.services import AuthService, IdentityService, PermissionRegistry
from apps.settings_store.models import SystemSetting


@pytest.mark.django_db
class TestIdentityService:
    """Test administrator account management."""

    def test_create(self, super_admin):
        """Test creating an administrator records the actor."""
        user = IdentityService.create(super_admin, 'alice', 'alice-pass-1', role=AdminUser.ROLE_ADMIN)

        assert user.role == AdminUser.ROLE_ADMIN
        assert user.check_password('alice-pass-1')

        entry = AuditLog.objects.by_table('admin_users', user.pk).get()
        assert entry.action == AuditLog.ACTION_CREATE
        assert entry.actor_id == super_admin.pk
        assert entry.actor_username == 'root'

    def test_create_requires_super_admin(self, admin_user):
        with pytest.raises(Unauthorized):
            IdentityService.create(admin_user, 'alice', 'alice-pass-1')

        assert not AdminUser.objects.filter(username='alice').exists()

    def test_create_rejects_inactive_super_admin(self, inactive_admin):
        with pytest.raises(Unauthorized):
            IdentityService.create(inactive_admin, 'alice', 'alice-pass-1')

    def test_create_rejects_unknown_role(self, super_admin):
        with pytest.raises(InvalidRole):
            IdentityService.create(super_admin, 'alice', 'alice-pass-1', role='overlord')

        assert not AdminUser.objects.filter(username='alice').exists()

    def test_create_rejects_blank_input(self, super_admin):
        with pytest.raises(InvalidInput):
            IdentityService.create(super_admin, '   ', 'alice-pass-1')
        with pytest.raises(InvalidInput):
            IdentityService.create(super_admin, 'alice', '')

    def test_create_duplicate_username(self, super_admin, admin_user):
        before = AuditLog.objects.count()

        with pytest.raises(DuplicateKey):
            IdentityService.create(super_admin, 'admin', 'other-pass-1')

        assert AuditLog.objects.count() == before

    def test_create_duplicate_email(self, super_admin):
        with pytest.raises(DuplicateKey):
            IdentityService.create(super_admin, 'alice', 'alice-pass-1', email='root@example.com')

    def test_update_fields(self, super_admin, admin_user):
        user = IdentityService.update(
            super_admin,
            admin_user.pk,
            role=AdminUser.ROLE_LOCAL_ADMIN,
            email='admin@example.com',
        )

        assert user.role == AdminUser.ROLE_LOCAL_ADMIN
        assert user.email == 'admin@example.com'

        entry = AuditLog.objects.by_table('admin_users', admin_user.pk).by_action('update').get()
        assert entry.old_values['role'] == AdminUser.ROLE_ADMIN
        assert entry.new_values['role'] == AdminUser.ROLE_LOCAL_ADMIN
        assert entry.actor_username == 'root'

    def test_update_password(self, super_admin, admin_user):
        IdentityService.update(super_admin, admin_user.pk, password='brand-new-pass')

        admin_user.refresh_from_db()
        assert admin_user.check_password('brand-new-pass')

        entry = AuditLog.objects.by_table('admin_users', admin_user.pk).by_action('update').get()
        assert entry.new_values['password_hash_changed'] is True
        assert 'password_hash_changed' not in entry.old_values
        assert 'password_hash' not in entry.old_values
        assert 'password_hash' not in entry.new_values
        assert entry.actor_username == 'root'

    def test_update_rejects_unknown_fields(self, super_admin, admin_user):
        with pytest.raises(InvalidInput):
            IdentityService.update(super_admin, admin_user.pk, is_superhero=True)

    def test_update_missing_identity(self, super_admin):
        with pytest.raises(NotFound):
            IdentityService.update(super_admin, uuid.uuid4(), role=AdminUser.ROLE_ADMIN)

    def test_update_to_taken_username(self, super_admin, admin_user):
        with pytest.raises(DuplicateKey):
            IdentityService.update(super_admin, admin_user.pk, username='root')

    def test_set_active(self, super_admin, admin_user):
        user = IdentityService.set_active(super_admin, admin_user.pk, False)

        assert user.is_active is False
        entry = AuditLog.objects.by_table('admin_users', admin_user.pk).by_action('update').get()
        assert entry.old_values['is_active'] is True
        assert entry.new_values['is_active'] is False

    def test_set_active_is_idempotent(self, super_admin, admin_user):
        IdentityService.set_active(super_admin, admin_user.pk, True)

        assert not AuditLog.objects.by_table('admin_users', admin_user.pk).by_action('update').exists()

    def test_cannot_deactivate_self(self, super_admin):
        with pytest.raises(InvalidInput):
            IdentityService.set_active(super_admin, super_admin.pk, False)

    def test_cannot_delete_self(self, super_admin):
        with pytest.raises(InvalidInput):
            IdentityService.delete(super_admin, super_admin.pk)

    def test_delete_missing_identity(self, super_admin):
        with pytest.raises(NotFound):
            IdentityService.delete(super_admin, uuid.uuid4())


@pytest.mark.django_db
class TestAliceScenario:
    """Create, grant, then delete as the wrong and the right actor."""

    def test_grant_then_delete(self, super_admin, local_admin, capabilities):
        alice = IdentityService.create(super_admin, 'alice', 'alice-pass-1', role=AdminUser.ROLE_ADMIN)
        PermissionRegistry.grant(super_admin, alice.pk, capabilities['tasks:delete'].pk)
        assert PermissionRegistry.capabilities_for(alice) == {'tasks:delete'}

        with pytest.raises(Unauthorized):
            IdentityService.delete(local_admin, alice.pk)
        assert AdminUser.objects.filter(pk=alice.pk).exists()

        IdentityService.delete(super_admin, alice.pk)

        assert not AdminUser.objects.filter(pk=alice.pk).exists()
        assert not AdminUserPermission.objects.filter(user_id=alice.pk).exists()

        deletes = AuditLog.objects.by_action(AuditLog.ACTION_DELETE)
        assert deletes.count() == 1
        entry = deletes.get()
        assert entry.table_name == 'admin_users'
        assert entry.record_id == str(alice.pk)
        assert entry.old_values['username'] == 'alice'
        assert entry.actor_username == 'root'


@pytest.mark.django_db
class TestPermissionRegistry:
    """Test capability catalog and grants."""

    def test_list_capabilities_ordering(self, capabilities):
        codes = [c.code for c in PermissionRegistry.list_capabilities()]

        assert codes == sorted(codes, key=lambda code: tuple(code.split(':')))
        assert len(codes) == len(PermissionRegistry.DEFAULT_CAPABILITIES)

    def test_group_by_module(self, capabilities):
        grouped = PermissionRegistry.group_by_module()

        assert list(grouped) == sorted(grouped)
        assert [c.action for c in grouped['reports']] == ['read']
        assert {c.action for c in grouped['users']} == {'create', 'read', 'update', 'delete'}

    def test_grant(self, super_admin, admin_user, capabilities):
        grant = PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:read'].pk)

        assert grant.granted_by == super_admin
        entry = AuditLog.objects.by_table('admin_user_permissions', grant.pk).get()
        assert entry.action == AuditLog.ACTION_CREATE
        assert entry.new_values['code'] == 'users:read'

    def test_double_grant_is_a_no_op(self, super_admin, admin_user, capabilities):
        capability = capabilities['users:read']
        first = PermissionRegistry.grant(super_admin, admin_user.pk, capability.pk)
        before = AuditLog.objects.count()

        second = PermissionRegistry.grant(super_admin, admin_user.pk, capability.pk)

        assert second.pk == first.pk
        assert AdminUserPermission.objects.filter(user=admin_user).count() == 1
        assert AuditLog.objects.count() == before

    def test_grant_requires_super_admin(self, admin_user, local_admin, capabilities):
        with pytest.raises(Unauthorized):
            PermissionRegistry.grant(admin_user, local_admin.pk, capabilities['users:read'].pk)

    def test_grant_missing_capability(self, super_admin, admin_user):
        with pytest.raises(NotFound):
            PermissionRegistry.grant(super_admin, admin_user.pk, uuid.uuid4())

    def test_grant_missing_identity(self, super_admin, capabilities):
        with pytest.raises(NotFound):
            PermissionRegistry.grant(super_admin, uuid.uuid4(), capabilities['users:read'].pk)

    def test_replace_grants(self, super_admin, admin_user, capabilities):
        PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:read'].pk)

        grants = PermissionRegistry.replace_grants(
            super_admin,
            admin_user.pk,
            [capabilities['agents:read'].pk, capabilities['agents:update'].pk],
        )

        assert len(grants) == 2
        assert PermissionRegistry.capabilities_for(admin_user) == {'agents:read', 'agents:update'}

        entry = AuditLog.objects.by_table('admin_user_permissions', admin_user.pk).get()
        assert entry.action == AuditLog.ACTION_UPDATE
        assert entry.old_values == {'capabilities': ['users:read']}
        assert entry.new_values == {'capabilities': ['agents:read', 'agents:update']}

    def test_replace_grants_with_same_set_is_not_recorded(self, super_admin, admin_user, capabilities):
        ids = [capabilities['users:read'].pk]
        PermissionRegistry.replace_grants(super_admin, admin_user.pk, ids)
        before = AuditLog.objects.count()

        PermissionRegistry.replace_grants(super_admin, admin_user.pk, ids)

        assert AuditLog.objects.count() == before

    def test_replace_grants_unknown_capability_changes_nothing(self, super_admin, admin_user, capabilities):
        PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:read'].pk)

        with pytest.raises(NotFound):
            PermissionRegistry.replace_grants(
                super_admin,
                admin_user.pk,
                [capabilities['agents:read'].pk, uuid.uuid4()],
            )

        assert PermissionRegistry.capabilities_for(admin_user) == {'users:read'}

    def test_replace_grants_is_atomic(self, super_admin, admin_user, capabilities):
        """A failure mid-insert leaves the old grant set and no audit record."""
        PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:read'].pk)
        before = AuditLog.objects.count()
        original_save = AdminUserPermission.save
        calls = []

        def failing_save(instance, *args, **kwargs):
            calls.append(instance)
            if len(calls) == 2:
                raise DatabaseError('disk full')
            return original_save(instance, *args, **kwargs)

        with patch.object(AdminUserPermission, 'save', failing_save):
            with pytest.raises(TransactionFailure):
                PermissionRegistry.replace_grants(
                    super_admin,
                    admin_user.pk,
                    [capabilities['agents:read'].pk, capabilities['agents:update'].pk],
                )

        codes = {g.permission.code for g in PermissionRegistry.grants_for(admin_user.pk)}
        assert codes == {'users:read'}
        assert AuditLog.objects.count() == before

    def test_revoke_all(self, super_admin, admin_user, capabilities):
        PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:read'].pk)

        PermissionRegistry.revoke_all(super_admin, admin_user.pk)

        assert PermissionRegistry.capabilities_for(admin_user) == set()

    def test_capabilities_are_cached_and_invalidated(self, super_admin, admin_user, capabilities):
        assert PermissionRegistry.capabilities_for(admin_user) == set()

        # Out-of-band write is hidden by the cache...
        AdminUserPermission.objects.create(user=admin_user, permission=capabilities['users:read'])
        assert PermissionRegistry.capabilities_for(admin_user) == set()

        # ...until the registry changes the grants itself
        PermissionRegistry.grant(super_admin, admin_user.pk, capabilities['users:update'].pk)
        assert PermissionRegistry.capabilities_for(admin_user) == {'users:read', 'users:update'}


@pytest.mark.django_db
class TestAuthService:
    """Test credential checks and lockout."""

    def test_authenticate(self, admin_user):
        user = AuthService.authenticate('admin', 'admin-pass-123')

        assert user == admin_user
        assert user.last_login_at is not None

    @pytest.mark.parametrize('username,password', [
        ('admin', 'wrong-pass'),
        ('ghost', 'admin-pass-123'),
        ('', 'admin-pass-123'),
        ('admin', ''),
    ])
    def test_invalid_credentials(self, admin_user, username, password):
        with pytest.raises(InvalidCredentials) as exc_info:
            AuthService.authenticate(username, password)

        assert exc_info.value.message == 'Invalid username or password'

    def test_inactive_account_is_rejected(self, inactive_admin):
        with pytest.raises(InvalidCredentials):
            AuthService.authenticate('retired', 'retired-pass-123')

    def test_lockout_after_max_attempts(self, admin_user):
        for _ in range(AuthService.DEFAULT_MAX_LOGIN_ATTEMPTS):
            with pytest.raises(InvalidCredentials):
                AuthService.authenticate('admin', 'wrong-pass')

        assert AuthService.is_locked('admin')

        # Correct password is refused while locked
        with pytest.raises(InvalidCredentials):
            AuthService.authenticate('admin', 'admin-pass-123')

    def test_lockout_threshold_comes_from_settings_store(self, admin_user):
        SystemSetting.objects.create(key='max_login_attempts', value=2)

        for _ in range(2):
            with pytest.raises(InvalidCredentials):
                AuthService.authenticate('admin', 'wrong-pass')

        assert AuthService.is_locked('admin')

    def test_lock_is_logged_once(self, admin_user):
        with patch('apps.rbac.services.SecurityLogger.log_account_locked') as log_locked:
            for _ in range(AuthService.DEFAULT_MAX_LOGIN_ATTEMPTS):
                with pytest.raises(InvalidCredentials):
                    AuthService.authenticate('admin', 'wrong-pass')

        log_locked.assert_called_once()

    def test_success_resets_counter(self, admin_user):
        for _ in range(AuthService.DEFAULT_MAX_LOGIN_ATTEMPTS - 1):
            with pytest.raises(InvalidCredentials):
                AuthService.authenticate('admin', 'wrong-pass')

        AuthService.authenticate('admin', 'admin-pass-123')

        with pytest.raises(InvalidCredentials):
            AuthService.authenticate('admin', 'wrong-pass')
        assert not AuthService.is_locked('admin')


@pytest.mark.django_db
class TestJWT:
    """Test token issue and validation."""

    def test_round_trip(self, admin_user):
        token = AuthService.generate_jwt(admin_user)

        payload = AuthService.validate_jwt(token)
        assert payload['user_id'] == str(admin_user.id)
        assert payload['username'] == 'admin'
        assert payload['role'] == AdminUser.ROLE_ADMIN
        assert AuthService.get_user_from_jwt(token) == admin_user

    def test_expired_token(self, admin_user):
        now = timezone.now()
        token = jwt.encode(
            {'user_id': str(admin_user.id), 'exp': now - timedelta(seconds=1), 'iat': now - timedelta(hours=1)},
            settings.JWT_SECRET_KEY,
            algorithm='HS256',
        )

        assert AuthService.validate_jwt(token) is None
        assert AuthService.get_user_from_jwt(token) is None

    def test_wrong_signature(self, admin_user):
        token = jwt.encode(
            {'user_id': str(admin_user.id), 'exp': timezone.now() + timedelta(hours=1)},
            'another-secret-key-that-is-long-enough-xyz',
            algorithm='HS256',
        )

        assert AuthService.validate_jwt(token) is None

    def test_token_of_deactivated_user(self, admin_user):
        token = AuthService.generate_jwt(admin_user)
        AdminUser.objects.filter(pk=admin_user.pk).update(is_active=False)

        assert AuthService.get_user_from_jwt(token) is None

    def test_token_lifetime_from_session_timeout(self, db):
        SystemSetting.objects.create(key='session_timeout', value=600)

        assert AuthService.token_lifetime() == timedelta(seconds=600)

    def test_token_lifetime_default(self, db, settings):
        settings.JWT_EXPIRATION_HOURS = 2

        assert AuthService.token_lifetime() == timedelta(hours=2)

    def test_login(self, admin_user):
        result = AuthService.login('admin', 'admin-pass-123', ip_address='10.0.0.1')

        assert result['user'] == admin_user
        assert AuthService.get_user_from_jwt(result['token']) == admin_user
        assert result['expires_in'] == int(AuthService.token_lifetime().total_seconds())

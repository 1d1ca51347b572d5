"""
RBAC and Authentication services.

Implements:
- IdentityService: administrator account management
- PermissionRegistry: capability catalog and per-administrator grants
- AuthService: credential checks, login lockout, JWT issue and validation
"""
import logging
from collections import OrderedDict
from datetime import timedelta
from typing import Any, Dict, List, Optional, Set

import jwt
from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.audit.services import AuditRecorder, audited_transaction
from apps.core.cache import CacheKeys, CacheService, CacheTTL
from apps.core.exceptions import (
    DuplicateKey, InvalidCredentials, InvalidInput, InvalidRole, NotFound,
)
from apps.core.logging import SecurityLogger
from apps.rbac.models import AdminPermission, AdminUser, AdminUserPermission
from apps.rbac.policy import PolicyEvaluator, WRITE
from apps.settings_store.services import SettingsStore

logger = logging.getLogger(__name__)

GRANTS_TABLE = AdminUserPermission._meta.db_table


def _get_locked(model, pk, label):
    """Fetch and lock one row inside the current transaction or raise NotFound."""
    try:
        instance = model.objects.select_for_update().filter(pk=pk).first()
    except (ValueError, ValidationError):
        instance = None
    if instance is None:
        raise NotFound(f"{label} not found", details={'id': str(pk)})
    return instance


class IdentityService:
    """
    Administrator account management.

    Every operation requires a super_admin actor and runs with its audit
    record in one transaction.
    """

    UPDATABLE_FIELDS = {'username', 'email', 'role', 'password'}

    @staticmethod
    def _validate_role(role):
        if role not in AdminUser.ROLES:
            raise InvalidRole(
                f"Invalid role: {role}",
                details={'allowed': sorted(AdminUser.ROLES)}
            )

    @staticmethod
    def _validate_username(username):
        if not isinstance(username, str) or not username.strip():
            raise InvalidInput("Username is required")
        if len(username) > 150:
            raise InvalidInput("Username must be at most 150 characters")

    @staticmethod
    def _validate_password(password):
        if not password:
            raise InvalidInput("Password is required")

    @staticmethod
    def _check_unique(username=None, email=None, exclude_id=None):
        qs = AdminUser.objects.all()
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if username is not None and qs.filter(username=username).exists():
            raise DuplicateKey("Username already exists", details={'field': 'username'})
        if email and qs.filter(email=email).exists():
            raise DuplicateKey("Email already exists", details={'field': 'email'})

    @classmethod
    def create(cls, actor, username: str, password: str, role: str = AdminUser.ROLE_ADMIN,
               email: Optional[str] = None) -> AdminUser:
        """
        Create an administrator.

        Raises:
            Unauthorized: If the actor is not an active super_admin
            InvalidInput / InvalidRole: Before any write
            DuplicateKey: If the username or email is taken
        """
        PolicyEvaluator.authorize(actor, 'identities', WRITE)
        cls._validate_username(username)
        cls._validate_password(password)
        cls._validate_role(role)

        username = username.strip()
        email = email or None

        with audited_transaction(actor):
            cls._check_unique(username=username, email=email)
            user = AdminUser(username=username, email=email, role=role)
            user.set_password(password)
            user.save()

        logger.info(
            f"Administrator created: {username}",
            extra={'user_id': str(user.id), 'role': role, 'created_by': actor.get_username()}
        )
        return user

    @classmethod
    def update(cls, actor, identity_id, **fields) -> AdminUser:
        """Change username, email, role or password of an administrator."""
        PolicyEvaluator.authorize(actor, 'identities', WRITE)

        unknown = set(fields) - cls.UPDATABLE_FIELDS
        if unknown:
            raise InvalidInput(
                "Unknown fields",
                details={'fields': sorted(unknown)}
            )
        if 'username' in fields:
            cls._validate_username(fields['username'])
            fields['username'] = fields['username'].strip()
        if 'role' in fields:
            cls._validate_role(fields['role'])
        if 'password' in fields:
            cls._validate_password(fields['password'])
        if 'email' in fields:
            fields['email'] = fields['email'] or None

        with audited_transaction(actor):
            user = _get_locked(AdminUser, identity_id, 'Administrator')
            cls._check_unique(
                username=fields.get('username'),
                email=fields.get('email'),
                exclude_id=user.pk,
            )
            password = fields.pop('password', None)
            for name, value in fields.items():
                setattr(user, name, value)
            if password:
                user.set_password(password)
            user.save()

        logger.info(
            f"Administrator updated: {user.username}",
            extra={'user_id': str(user.id), 'fields': sorted(fields) + (['password'] if password else [])}
        )
        return user

    @classmethod
    def set_active(cls, actor, identity_id, active: bool) -> AdminUser:
        """Enable or disable an account without deleting its history."""
        PolicyEvaluator.authorize(actor, 'identities', WRITE)
        if not active and str(actor.pk) == str(identity_id):
            raise InvalidInput("You cannot deactivate your own account")

        with audited_transaction(actor):
            user = _get_locked(AdminUser, identity_id, 'Administrator')
            if user.is_active != bool(active):
                user.is_active = bool(active)
                user.save()

        logger.info(
            f"Administrator {'activated' if active else 'deactivated'}: {user.username}",
            extra={'user_id': str(user.id), 'changed_by': actor.get_username()}
        )
        return user

    @classmethod
    def delete(cls, actor, identity_id) -> None:
        """
        Delete an administrator.

        Grants are removed by the cascade and are not audited individually;
        the identity itself gets one delete record.
        """
        PolicyEvaluator.authorize(actor, 'identities', WRITE)
        if str(actor.pk) == str(identity_id):
            raise InvalidInput("You cannot delete your own account")

        with audited_transaction(actor):
            user = _get_locked(AdminUser, identity_id, 'Administrator')
            username = user.username
            user.delete()

        CacheService.invalidate([PermissionRegistry.cache_key(identity_id)])
        logger.info(
            f"Administrator deleted: {username}",
            extra={'user_id': str(identity_id), 'deleted_by': actor.get_username()}
        )


class PermissionRegistry:
    """
    Capability catalog and grants.

    Grants are written explicitly to the audit trail on the
    ``admin_user_permissions`` resource.
    """

    # Default catalog, loaded by ``manage.py seed_permissions``
    DEFAULT_CAPABILITIES = [
        ('users', 'create', 'Create admin users'),
        ('users', 'read', 'View admin users'),
        ('users', 'update', 'Update admin users'),
        ('users', 'delete', 'Delete admin users'),
        ('panchayaths', 'create', 'Create panchayaths'),
        ('panchayaths', 'read', 'View panchayaths'),
        ('panchayaths', 'update', 'Update panchayaths'),
        ('panchayaths', 'delete', 'Delete panchayaths'),
        ('agents', 'create', 'Create agents'),
        ('agents', 'read', 'View agents'),
        ('agents', 'update', 'Update agents'),
        ('agents', 'delete', 'Delete agents'),
        ('tasks', 'create', 'Create tasks'),
        ('tasks', 'read', 'View tasks'),
        ('tasks', 'update', 'Update tasks'),
        ('tasks', 'delete', 'Delete tasks'),
        ('teams', 'create', 'Create management teams'),
        ('teams', 'read', 'View management teams'),
        ('teams', 'update', 'Update management teams'),
        ('teams', 'delete', 'Delete management teams'),
        ('reports', 'read', 'View reports'),
        ('settings', 'read', 'View system settings'),
        ('settings', 'update', 'Update system settings'),
        ('audit', 'read', 'View audit logs'),
    ]

    @staticmethod
    def cache_key(identity_id):
        return CacheKeys.format(CacheKeys.USER_CAPABILITIES, user_id=identity_id)

    @classmethod
    def invalidate(cls, identity):
        CacheService.invalidate([cls.cache_key(identity.pk)])

    @staticmethod
    def list_capabilities():
        """All capabilities, ordered by module then action."""
        return AdminPermission.objects.order_by('module', 'action')

    @classmethod
    def group_by_module(cls) -> 'OrderedDict[str, List[AdminPermission]]':
        """Capabilities grouped by module, in module order."""
        grouped = OrderedDict()
        for capability in cls.list_capabilities():
            grouped.setdefault(capability.module, []).append(capability)
        return grouped

    @staticmethod
    def grants_for(identity_id):
        return (
            AdminUserPermission.objects
            .filter(user_id=identity_id)
            .select_related('permission')
            .order_by('permission__module', 'permission__action')
        )

    @classmethod
    def capabilities_for(cls, identity) -> Set[str]:
        """
        Return the ``module:action`` codes granted to ``identity``.

        Results are cached for 5 minutes and invalidated on every grant change.
        """
        cache_key = cls.cache_key(identity.pk)
        cached = CacheService.get(cache_key)
        if cached is not None:
            return set(cached)

        codes = {grant.permission.code for grant in cls.grants_for(identity.pk)}
        CacheService.set(cache_key, sorted(codes), CacheTTL.USER_CAPABILITIES)
        return codes

    @staticmethod
    def _grant_snapshot(grant):
        return {
            'user_id': str(grant.user_id),
            'permission_id': str(grant.permission_id),
            'code': grant.permission.code,
            'granted_by_id': str(grant.granted_by_id) if grant.granted_by_id else None,
        }

    @classmethod
    def grant(cls, actor, identity_id, capability_id) -> AdminUserPermission:
        """
        Grant one capability.

        Idempotent: granting a held capability returns the existing grant and
        writes nothing.
        """
        PolicyEvaluator.authorize(actor, 'grants', WRITE)

        with audited_transaction(actor):
            user = _get_locked(AdminUser, identity_id, 'Administrator')
            try:
                capability = AdminPermission.objects.filter(pk=capability_id).first()
            except (ValueError, ValidationError):
                capability = None
            if capability is None:
                raise NotFound("Capability not found", details={'id': str(capability_id)})

            grant, created = AdminUserPermission.objects.get_or_create(
                user=user,
                permission=capability,
                defaults={'granted_by': actor},
            )
            if created:
                AuditRecorder.record(
                    action=AuditLog.ACTION_CREATE,
                    table_name=GRANTS_TABLE,
                    record_id=grant.pk,
                    new_values=cls._grant_snapshot(grant),
                )

        if created:
            cls.invalidate(user)
            logger.info(
                f"Capability {capability.code} granted to {user.username}",
                extra={'user_id': str(user.id), 'granted_by': actor.get_username()}
            )
        return grant

    @classmethod
    def revoke_all(cls, actor, identity_id) -> List[AdminUserPermission]:
        """Remove every grant of an administrator."""
        return cls.replace_grants(actor, identity_id, [])

    @classmethod
    def replace_grants(cls, actor, identity_id, capability_ids) -> List[AdminUserPermission]:
        """
        Replace an administrator's grant set wholesale.

        Delete-then-insert in one transaction: readers see either the full
        old set or the full new set. Every capability is resolved before the
        first write.
        """
        PolicyEvaluator.authorize(actor, 'grants', WRITE)

        wanted = list(OrderedDict.fromkeys(str(cid) for cid in capability_ids))
        try:
            capabilities = list(AdminPermission.objects.filter(pk__in=wanted))
        except (ValueError, ValidationError):
            raise InvalidInput("Invalid capability id", details={'ids': wanted})
        missing = set(wanted) - {str(c.pk) for c in capabilities}
        if missing:
            raise NotFound("Capability not found", details={'ids': sorted(missing)})

        with audited_transaction(actor):
            user = _get_locked(AdminUser, identity_id, 'Administrator')
            old_codes = sorted(grant.permission.code for grant in cls.grants_for(user.pk))

            AdminUserPermission.objects.filter(user=user).delete()
            grants = [
                AdminUserPermission.objects.create(user=user, permission=capability, granted_by=actor)
                for capability in capabilities
            ]
            new_codes = sorted(capability.code for capability in capabilities)

            if old_codes != new_codes:
                AuditRecorder.record(
                    action=AuditLog.ACTION_UPDATE,
                    table_name=GRANTS_TABLE,
                    record_id=user.pk,
                    old_values={'capabilities': old_codes},
                    new_values={'capabilities': new_codes},
                )

        cls.invalidate(user)
        logger.info(
            f"Capabilities replaced for {user.username}",
            extra={'user_id': str(user.id), 'count': len(grants), 'changed_by': actor.get_username()}
        )
        return grants


class AuthService:
    """
    Service for authentication operations: credential checks, lockout, JWT.
    """

    DEFAULT_MAX_LOGIN_ATTEMPTS = 5

    @staticmethod
    def _attempts_key(username):
        return CacheKeys.format(CacheKeys.LOGIN_ATTEMPTS, username=username.lower())

    @classmethod
    def max_login_attempts(cls) -> int:
        try:
            value = int(SettingsStore.get('max_login_attempts', cls.DEFAULT_MAX_LOGIN_ATTEMPTS))
        except (TypeError, ValueError):
            value = cls.DEFAULT_MAX_LOGIN_ATTEMPTS
        return value if value > 0 else cls.DEFAULT_MAX_LOGIN_ATTEMPTS

    @staticmethod
    def lockout_seconds() -> int:
        return getattr(settings, 'LOGIN_LOCKOUT_SECONDS', 900)

    @classmethod
    def _register_failure(cls, username, reason, ip_address=None, user_agent=None):
        key = cls._attempts_key(username)
        attempts = (CacheService.get(key) or 0) + 1
        CacheService.set(key, attempts, cls.lockout_seconds())

        SecurityLogger.log_failed_login(
            username=username,
            ip_address=ip_address,
            user_agent=user_agent,
            reason=reason,
        )
        if attempts == cls.max_login_attempts():
            SecurityLogger.log_account_locked(username, attempts, cls.lockout_seconds())

        raise InvalidCredentials()

    @classmethod
    def is_locked(cls, username) -> bool:
        return (CacheService.get(cls._attempts_key(username)) or 0) >= cls.max_login_attempts()

    @classmethod
    def authenticate(cls, username: str, password: str, ip_address: str = None,
                     user_agent: str = None) -> AdminUser:
        """
        Verify a handle and password.

        Unknown handles, wrong passwords, inactive and locked accounts all
        raise the same ``InvalidCredentials``.
        """
        username = (username or '').strip()
        if not username or not password:
            raise InvalidCredentials()

        if cls.is_locked(username):
            # Keep timing in line with a real check
            make_password(password)
            SecurityLogger.log_failed_login(username, ip_address, user_agent, reason='locked')
            raise InvalidCredentials()

        user = AdminUser.objects.filter(username=username).first()
        if user is None:
            make_password(password)
            cls._register_failure(username, 'unknown_user', ip_address, user_agent)
        if not user.check_password(password):
            cls._register_failure(username, 'wrong_password', ip_address, user_agent)
        if not user.is_active:
            cls._register_failure(username, 'inactive', ip_address, user_agent)

        CacheService.delete(cls._attempts_key(username))
        user.update_last_login()
        return user

    @classmethod
    def token_lifetime(cls) -> timedelta:
        """``session_timeout`` setting (seconds) when valid, else JWT_EXPIRATION_HOURS."""
        try:
            seconds = int(SettingsStore.get('session_timeout') or 0)
        except (TypeError, ValueError):
            seconds = 0
        if seconds > 0:
            return timedelta(seconds=seconds)
        return timedelta(hours=getattr(settings, 'JWT_EXPIRATION_HOURS', 24))

    @classmethod
    def generate_jwt(cls, user: AdminUser) -> str:
        """
        Generate JWT token for an administrator.

        Args:
            user: AdminUser instance

        Returns:
            JWT token string
        """
        now = timezone.now()
        payload = {
            'user_id': str(user.id),
            'username': user.username,
            'role': user.role,
            'exp': now + cls.token_lifetime(),
            'iat': now,
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=getattr(settings, 'JWT_ALGORITHM', 'HS256')
        )

    @classmethod
    def validate_jwt(cls, token: str) -> Optional[Dict[str, Any]]:
        """
        Validate JWT token and return payload.

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @classmethod
    def get_user_from_jwt(cls, token: str) -> Optional[AdminUser]:
        """
        Resolve a token to an active administrator.

        Returns:
            AdminUser instance or None if the token is invalid or the
            account is gone or disabled
        """
        payload = cls.validate_jwt(token)
        if not payload:
            return None

        user_id = payload.get('user_id')
        if not user_id:
            return None

        try:
            return AdminUser.objects.get(id=user_id, is_active=True)
        except (AdminUser.DoesNotExist, ValueError, ValidationError):
            return None

    @classmethod
    def login(cls, username: str, password: str, ip_address: str = None,
              user_agent: str = None) -> Dict[str, Any]:
        """
        Authenticate and issue a token.

        Returns:
            Dict with user, token and expires_in (seconds)
        """
        user = cls.authenticate(username, password, ip_address, user_agent)
        token = cls.generate_jwt(user)

        logger.info(
            f"Administrator logged in: {user.username}",
            extra={'user_id': str(user.id), 'ip': ip_address}
        )
        return {
            'user': user,
            'token': token,
            'expires_in': int(cls.token_lifetime().total_seconds()),
        }

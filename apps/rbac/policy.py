"""
Policy evaluator.

Decides whether an authenticated administrator may perform an operation on a
resource. Each (resource, operation) pair maps to one of two requirements:

- ``ACTIVE_ONLY``: any active administrator
- ``SUPER_ADMIN_ONLY``: an active super_admin

Pairs that are not configured are denied. Deployments can tighten or loosen a
pair with the ``ADMIN_RESOURCE_POLICIES`` setting, e.g.::

    ADMIN_RESOURCE_POLICIES = {'settings': {'write': 'super_admin_only'}}
"""
import logging
from django.conf import settings

from apps.core.exceptions import Unauthorized
from apps.core.logging import SecurityLogger

logger = logging.getLogger(__name__)

ACTIVE_ONLY = 'active_only'
SUPER_ADMIN_ONLY = 'super_admin_only'

READ = 'read'
WRITE = 'write'

# Any active admin may change settings; deployments can restrict it.
DEFAULT_POLICIES = {
    'identities': {READ: ACTIVE_ONLY, WRITE: SUPER_ADMIN_ONLY},
    'grants': {READ: ACTIVE_ONLY, WRITE: SUPER_ADMIN_ONLY},
    'capabilities': {READ: ACTIVE_ONLY},
    'settings': {READ: ACTIVE_ONLY, WRITE: ACTIVE_ONLY},
    'audit': {READ: ACTIVE_ONLY},
    'panchayaths': {READ: ACTIVE_ONLY, WRITE: ACTIVE_ONLY},
    'agents': {READ: ACTIVE_ONLY, WRITE: ACTIVE_ONLY},
    'teams': {READ: ACTIVE_ONLY, WRITE: ACTIVE_ONLY},
    'reports': {READ: ACTIVE_ONLY},
}


class PolicyEvaluator:
    """Role and active-flag checks run before any mutating statement."""

    @staticmethod
    def policies():
        """Return the effective policy table (defaults merged with overrides)."""
        merged = {resource: dict(ops) for resource, ops in DEFAULT_POLICIES.items()}
        overrides = getattr(settings, 'ADMIN_RESOURCE_POLICIES', None) or {}
        for resource, ops in overrides.items():
            merged.setdefault(resource, {}).update(ops)
        return merged

    @staticmethod
    def can_act(identity, required_role=None):
        """
        Return True if ``identity`` may act.

        Inactive or unauthenticated identities never may. With no
        ``required_role`` any active identity may; otherwise the role must
        match exactly.
        """
        if identity is None or not getattr(identity, 'is_authenticated', False):
            return False
        if not getattr(identity, 'is_active', False):
            return False
        if required_role is None:
            return True
        return getattr(identity, 'role', None) == required_role

    @classmethod
    def required_role(cls, resource, operation):
        """
        Resolve the role a (resource, operation) pair requires.

        Returns ``(configured, role)``; ``configured`` is False for pairs that
        have no policy.
        """
        from apps.rbac.models import AdminUser

        requirement = cls.policies().get(resource, {}).get(operation)
        if requirement == ACTIVE_ONLY:
            return True, None
        if requirement == SUPER_ADMIN_ONLY:
            return True, AdminUser.ROLE_SUPER_ADMIN
        if requirement is not None:
            logger.error(
                f"Unknown policy requirement '{requirement}'",
                extra={'resource': resource, 'operation': operation}
            )
        return False, None

    @classmethod
    def is_allowed(cls, identity, resource, operation):
        configured, role = cls.required_role(resource, operation)
        return configured and cls.can_act(identity, role)

    @classmethod
    def authorize(cls, identity, resource, operation):
        """
        Raise ``Unauthorized`` unless ``identity`` may perform ``operation``.

        The raised message is the same for every failed check; the specific
        reason only goes to the security log.
        """
        configured, role = cls.required_role(resource, operation)

        if not configured:
            reason = 'no_policy'
        elif identity is None or not getattr(identity, 'is_authenticated', False):
            reason = 'unauthenticated'
        elif not getattr(identity, 'is_active', False):
            reason = 'inactive'
        elif role is not None and getattr(identity, 'role', None) != role:
            reason = f'requires_{role}'
        else:
            return

        SecurityLogger.log_permission_denied(identity, resource, operation, reason)
        raise Unauthorized()

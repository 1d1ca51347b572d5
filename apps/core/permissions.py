"""
DRF permission class that enforces resource policies on API endpoints.
"""
import logging
from rest_framework.permissions import BasePermission, SAFE_METHODS

logger = logging.getLogger(__name__)


class ResourcePolicyPermission(BasePermission):
    """
    Enforce the policy evaluator before a view handler runs.

    Views declare which resource they expose and, optionally, how HTTP
    methods map onto policy operations::

        class SettingListView(APIView):
            permission_classes = [ResourcePolicyPermission]
            policy_resource = 'settings'
            policy_operations = {'PUT': 'write'}

    Safe methods default to ``read`` and everything else to ``write``.
    Unauthenticated requests return False so DRF answers 401; authenticated
    requests that fail the policy raise ``Unauthorized`` (403).
    """

    def has_permission(self, request, view):
        from apps.rbac.policy import PolicyEvaluator

        user = getattr(request, 'user', None)
        if not user or not user.is_authenticated:
            return False

        resource = getattr(view, 'policy_resource', None)
        operation = 'read' if request.method in SAFE_METHODS else 'write'
        operation = getattr(view, 'policy_operations', {}).get(request.method, operation)

        PolicyEvaluator.authorize(user, resource, operation)

        logger.debug(
            "Policy granted",
            extra={
                'resource': resource,
                'operation': operation,
                'view': view.__class__.__name__,
                'request_id': getattr(request, 'request_id', None),
            }
        )
        return True

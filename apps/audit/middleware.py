"""
Bind request origin metadata to the audit context.
"""
from apps.audit.context import audit_context
from apps.core.middleware import get_client_ip


class AuditContextMiddleware:
    """
    Make the caller's IP address, user agent and request ID available to
    every audit record written while the request is handled.

    Must run after RequestIDMiddleware. The acting administrator is bound
    by the views and services once DRF has authenticated the request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        with audit_context(
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
            request_id=getattr(request, 'request_id', None),
        ):
            return self.get_response(request)

"""
Authentication backend for Django admin.

Routes admin logins through the same credential checks and lockout as the API.
"""
from django.contrib.auth.backends import BaseBackend
from apps.core.exceptions import InvalidCredentials
from apps.core.middleware import get_client_ip
from apps.rbac.models import AdminUser


class UsernameAuthBackend(BaseBackend):
    """
    Authenticate administrators by username and password.

    This backend is compatible with Django admin and session authentication.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        """
        Returns:
            AdminUser instance if authentication succeeds, None otherwise
        """
        from apps.rbac.services import AuthService

        if not username or not password:
            return None

        try:
            return AuthService.authenticate(
                username,
                password,
                ip_address=get_client_ip(request) if request else None,
                user_agent=request.META.get('HTTP_USER_AGENT', '') if request else None,
            )
        except InvalidCredentials:
            return None

    def get_user(self, user_id):
        try:
            return AdminUser.objects.get(pk=user_id, is_active=True)
        except AdminUser.DoesNotExist:
            return None

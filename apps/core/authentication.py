"""
Custom DRF authentication classes.
"""
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed


class JWTAuthentication(BaseAuthentication):
    """
    DRF authentication class for ``Authorization: Bearer <token>`` headers.

    Tokens are issued by ``AuthService.login`` and resolve only to active
    administrators; a token for a deactivated or deleted account is rejected.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        """
        Return the administrator for the bearer token if present.

        Returns:
            tuple: (user, token) if a valid token is supplied, None if no header
        """
        from apps.rbac.services import AuthService

        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None

        if len(auth) != 2:
            raise AuthenticationFailed('Invalid authorization header.')

        try:
            token = auth[1].decode()
        except UnicodeError:
            raise AuthenticationFailed('Invalid authorization header.')

        user = AuthService.get_user_from_jwt(token)
        if user is None:
            raise AuthenticationFailed('Invalid or expired token.')

        return (user, token)

    def authenticate_header(self, request):
        return self.keyword

"""
Authentication REST API views.

Implements endpoints for:
- Login
- Current administrator profile
"""
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django_ratelimit.decorators import ratelimit
from django.utils.decorators import method_decorator
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import InvalidInput, rate_limited_response
from apps.core.middleware import get_client_ip
from apps.rbac.services import AuthService
from apps.rbac.serializers import AdminUserSerializer, LoginSerializer, ProfileSerializer


@extend_schema(
    tags=['Authentication'],
    summary='Login administrator',
    description='''
Authenticate with username and password.

Returns a JWT token for API authentication and the administrator's account.
Unknown usernames, wrong passwords, disabled and locked accounts all return the
same 401 response.

**No authentication required** - this is a public endpoint.

**Rate limit**: 5 requests/minute per IP address
    ''',
    request=LoginSerializer,
    responses={
        200: OpenApiTypes.OBJECT,
        401: OpenApiTypes.OBJECT,
        429: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Login Request',
            value={
                'username': 'district.admin',
                'password': 'SecurePass123!'
            },
            request_only=True
        ),
        OpenApiExample(
            'Invalid Credentials',
            value={
                'error': {
                    'code': 'INVALID_CREDENTIALS',
                    'message': 'Invalid username or password',
                    'details': {}
                },
                'request_id': '7f1c0e8a-1b9e-4c55-9f0e-3d0d3b0f7a11'
            },
            response_only=True,
            status_codes=['401']
        ),
    ]
)
@method_decorator(ratelimit(key='ip', rate='5/m', method='POST', block=False), name='dispatch')
class LoginView(APIView):
    """
    POST /v1/auth/login

    Authenticate and return JWT token.

    No authentication required.
    Rate limited to 5 requests per minute per IP address.
    """
    authentication_classes = []
    permission_classes = []

    def post(self, request):
        """Login administrator."""
        if getattr(request, 'limited', False):
            return rate_limited_response(request)

        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidInput('Validation error', details=serializer.errors)

        result = AuthService.login(
            username=serializer.validated_data['username'],
            password=serializer.validated_data['password'],
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )

        return Response(
            {
                'user': AdminUserSerializer(result['user']).data,
                'token': result['token'],
                'expires_in': result['expires_in'],
                'message': 'Login successful'
            },
            status=status.HTTP_200_OK
        )


@extend_schema(
    tags=['Authentication'],
    summary='Current administrator',
    description='Return the signed-in administrator with their granted capability codes.',
    responses={200: ProfileSerializer, 401: OpenApiTypes.OBJECT}
)
class MeView(APIView):
    """
    GET /v1/auth/me

    Requires JWT authentication.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(ProfileSerializer(request.user).data, status=status.HTTP_200_OK)

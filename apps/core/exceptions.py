"""
Error taxonomy and custom exception handlers for DRF.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django_ratelimit.exceptions import Ratelimited
from django.http import JsonResponse

logger = logging.getLogger(__name__)

LOGIN_RETRY_AFTER = 60


class AdminError(Exception):
    """Base exception for back-office errors."""

    status_code = 400
    code = 'ADMIN_ERROR'
    default_message = 'Request could not be completed'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class DuplicateKey(AdminError):
    """Raised when a username, capability pair or setting key already exists."""
    status_code = 409
    code = 'DUPLICATE_KEY'
    default_message = 'A record with this key already exists'


class InvalidInput(AdminError):
    """Raised when input is rejected before any write happens."""
    status_code = 400
    code = 'INVALID_INPUT'
    default_message = 'Invalid input'


class InvalidRole(InvalidInput):
    """Raised when a role outside the enumerated set is requested."""
    code = 'INVALID_ROLE'
    default_message = 'Invalid role'


class InvalidCredentials(AdminError):
    """
    Raised when authentication fails.

    The message is identical for unknown usernames, wrong passwords and
    inactive or locked accounts.
    """
    status_code = 401
    code = 'INVALID_CREDENTIALS'
    default_message = 'Invalid username or password'


class Unauthorized(AdminError):
    """Raised when the policy evaluator denies an operation."""
    status_code = 403
    code = 'UNAUTHORIZED'
    default_message = 'You are not allowed to perform this operation'


class NotFound(AdminError):
    """Raised when a referenced identity, capability or record is absent."""
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Record not found'


class TransactionFailure(AdminError):
    """Raised when the underlying store fails; the whole unit is rolled back."""
    status_code = 500
    code = 'TRANSACTION_FAILURE'
    default_message = 'The operation could not be completed'


def _rate_limited_payload(request):
    from apps.core.logging import SecurityLogger

    ip_address = request.META.get('REMOTE_ADDR', 'unknown') if request else 'unknown'
    path = request.path if request else None

    SecurityLogger.log_rate_limit_exceeded(
        endpoint=path or 'unknown',
        ip_address=ip_address,
        limit='Rate limit exceeded'
    )

    logger.warning(
        "Rate limit exceeded",
        extra={
            'request_id': getattr(request, 'request_id', None),
            'path': path,
            'method': request.method if request else None,
            'ip': ip_address,
            'retry_after': LOGIN_RETRY_AFTER,
        }
    )

    return {
        'error': {
            'code': 'RATE_LIMIT_EXCEEDED',
            'message': 'Rate limit exceeded. Please try again later.',
            'details': {'retry_after': LOGIN_RETRY_AFTER},
        },
        'request_id': getattr(request, 'request_id', None),
    }


def ratelimit_view(request, exception):
    """
    Custom view for django-ratelimit to return 429 instead of 403.

    Returns 429 with Retry-After header indicating when to retry.
    """
    response = JsonResponse(_rate_limited_payload(request), status=429)
    response['Retry-After'] = str(LOGIN_RETRY_AFTER)
    return response


def rate_limited_response(request):
    """DRF response used by views that check ``request.limited`` themselves."""
    response = Response(_rate_limited_payload(request), status=status.HTTP_429_TOO_MANY_REQUESTS)
    response['Retry-After'] = str(LOGIN_RETRY_AFTER)
    return response


def custom_exception_handler(exc, context):
    """
    Custom exception handler that logs errors and returns consistent format.

    AdminError subclasses render as::

        {"error": {"code": ..., "message": ..., "details": {...}}, "request_id": ...}
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None
    log_extra = {
        'request_id': request_id,
        'path': request.path if request else None,
        'method': request.method if request else None,
    }

    if isinstance(exc, Ratelimited):
        return rate_limited_response(request)

    if isinstance(exc, AdminError):
        log_extra.update({'error_code': exc.code, 'exception': exc.message})
        if exc.status_code >= 500:
            logger.error(f"API Exception: {exc.__class__.__name__}", extra=log_extra, exc_info=True)
        else:
            logger.warning(f"API Exception: {exc.__class__.__name__}", extra=log_extra)

        return Response(
            {
                'error': {
                    'code': exc.code,
                    'message': exc.message,
                    'details': exc.details,
                },
                'request_id': request_id,
            },
            status=exc.status_code
        )

    # Call DRF's default exception handler first
    response = exception_handler(exc, context)

    if response is None:
        logger.error(
            f"API Exception: {exc.__class__.__name__}",
            extra={**log_extra, 'exception': str(exc)},
            exc_info=True
        )
        return Response(
            {
                'error': {
                    'code': 'INTERNAL_ERROR',
                    'message': 'An unexpected error occurred',
                    'details': {},
                },
                'request_id': request_id,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    logger.warning(
        f"API Exception: {exc.__class__.__name__}",
        extra={**log_extra, 'exception': str(exc), 'status_code': response.status_code}
    )

    # Add request_id to all error responses
    if request_id and isinstance(response.data, dict):
        response.data['request_id'] = request_id

    return response

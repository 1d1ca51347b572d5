"""
Tests for the error taxonomy and the DRF exception handler.
"""
import pytest
from django.test import RequestFactory
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.request import Request

from apps.core.exceptions import (
    DuplicateKey, InvalidCredentials, InvalidInput, InvalidRole,
    NotFound, TransactionFailure, Unauthorized,
    custom_exception_handler, ratelimit_view,
)


def handler_context(request_id='req-42'):
    request = RequestFactory().get('/v1/anything')
    request.request_id = request_id
    return {'request': Request(request)}


class TestErrorTaxonomy:
    """Every error kind maps to a stable code and status."""

    @pytest.mark.parametrize('exc_class, code, status_code', [
        (DuplicateKey, 'DUPLICATE_KEY', 409),
        (InvalidInput, 'INVALID_INPUT', 400),
        (InvalidRole, 'INVALID_ROLE', 400),
        (InvalidCredentials, 'INVALID_CREDENTIALS', 401),
        (Unauthorized, 'UNAUTHORIZED', 403),
        (NotFound, 'NOT_FOUND', 404),
        (TransactionFailure, 'TRANSACTION_FAILURE', 500),
    ])
    def test_rendered_payload(self, exc_class, code, status_code):
        response = custom_exception_handler(exc_class(details={'field': 'x'}), handler_context())

        assert response.status_code == status_code
        assert response.data == {
            'error': {
                'code': code,
                'message': exc_class.default_message,
                'details': {'field': 'x'},
            },
            'request_id': 'req-42',
        }

    def test_invalid_role_is_invalid_input(self):
        assert issubclass(InvalidRole, InvalidInput)

    def test_custom_message(self):
        exc = NotFound('Admin user not found')

        assert str(exc) == 'Admin user not found'
        assert exc.details == {}


class TestExceptionHandler:
    """Non-taxonomy exceptions."""

    def test_drf_exception_keeps_status_and_gets_request_id(self):
        response = custom_exception_handler(ValidationError({'name': ['required']}), handler_context())

        assert response.status_code == 400
        assert response.data['request_id'] == 'req-42'

    def test_not_authenticated(self):
        response = custom_exception_handler(NotAuthenticated(), handler_context())

        assert response.status_code == 401

    def test_unexpected_exception_is_internal_error(self):
        response = custom_exception_handler(RuntimeError('boom'), handler_context())

        assert response.status_code == 500
        assert response.data['error']['code'] == 'INTERNAL_ERROR'
        assert 'boom' not in str(response.data)


class TestRatelimitView:
    """Test the django-ratelimit 429 view."""

    def test_returns_429_with_retry_after(self):
        request = RequestFactory().post('/v1/auth/login', REMOTE_ADDR='10.0.0.9')
        request.request_id = 'req-7'

        response = ratelimit_view(request, exception=None)

        assert response.status_code == 429
        assert response['Retry-After'] == '60'
        assert b'RATE_LIMIT_EXCEEDED' in response.content

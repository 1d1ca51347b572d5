"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings
import django


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    settings.SECURE_SSL_REDIRECT = False
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    django.setup()


@pytest.fixture(autouse=True)
def clear_cache():
    """Login counters, rate limits and cached capabilities never leak between tests."""
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def client_for():
    """Return a factory for API clients authenticated as the given administrator."""
    from rest_framework.test import APIClient

    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client_for


@pytest.fixture
def super_admin(db):
    """Create an active super_admin."""
    from apps.rbac.models import AdminUser
    return AdminUser.objects.create_user(
        username='root',
        password='root-pass-123',
        role=AdminUser.ROLE_SUPER_ADMIN,
        email='root@example.com',
    )


@pytest.fixture
def admin_user(db):
    """Create an active admin."""
    from apps.rbac.models import AdminUser
    return AdminUser.objects.create_user(
        username='admin',
        password='admin-pass-123',
        role=AdminUser.ROLE_ADMIN,
    )


@pytest.fixture
def local_admin(db):
    """Create an active local_admin."""
    from apps.rbac.models import AdminUser
    return AdminUser.objects.create_user(
        username='local',
        password='local-pass-123',
        role=AdminUser.ROLE_LOCAL_ADMIN,
    )


@pytest.fixture
def inactive_admin(db):
    """Create a disabled super_admin."""
    from apps.rbac.models import AdminUser
    return AdminUser.objects.create_user(
        username='retired',
        password='retired-pass-123',
        role=AdminUser.ROLE_SUPER_ADMIN,
        is_active=False,
    )


@pytest.fixture
def capabilities(db):
    """Seed the default capability catalog and return it keyed by code."""
    from apps.rbac.models import AdminPermission
    from apps.rbac.services import PermissionRegistry

    for module, action, description in PermissionRegistry.DEFAULT_CAPABILITIES:
        AdminPermission.objects.get_or_create(
            module=module,
            action=action,
            defaults={'description': description},
        )
    return {capability.code: capability for capability in AdminPermission.objects.all()}

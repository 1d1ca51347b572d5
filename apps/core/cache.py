"""
Caching utilities for frequently accessed data.

Provides centralized cache management with consistent TTLs and invalidation patterns.
The cache is never an authority: every cached value can be rebuilt from the database.
"""
import logging
from typing import Any, Iterable
from django.core.cache import cache
from django.db import transaction

logger = logging.getLogger(__name__)


class CacheKeys:
    """Centralized cache key definitions with consistent naming."""

    # Settings store values (TTL: 5 minutes)
    SYSTEM_SETTING = "system_setting:{key}"

    # Capability codes granted to an administrator (TTL: 5 minutes)
    USER_CAPABILITIES = "rbac:capabilities:{user_id}"

    # Consecutive failed logins per username (TTL: lockout window)
    LOGIN_ATTEMPTS = "auth:login_attempts:{username}"

    @classmethod
    def format(cls, key_template: str, **kwargs) -> str:
        """Format a cache key with provided parameters."""
        return key_template.format(**kwargs)


class CacheTTL:
    """Cache TTL (Time To Live) constants in seconds."""

    SYSTEM_SETTING = 300  # 5 minutes
    USER_CAPABILITIES = 300  # 5 minutes


class CacheService:
    """Service for managing cached data with consistent patterns."""

    @staticmethod
    def get(key: str, default: Any = None) -> Any:
        """Get value from cache, returning ``default`` if the backend is unavailable."""
        try:
            value = cache.get(key, default)
            logger.debug(f"Cache {'MISS' if value is default else 'HIT'}: {key}")
            return value
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {str(e)}")
            return default

    @staticmethod
    def set(key: str, value: Any, ttl: int = None) -> bool:
        """Set value in cache."""
        try:
            cache.set(key, value, timeout=ttl)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {str(e)}")
            return False

    @staticmethod
    def delete(key: str) -> bool:
        """Delete value from cache."""
        try:
            cache.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {str(e)}")
            return False

    @staticmethod
    def invalidate(keys: Iterable[str]):
        """
        Drop keys now and again once the surrounding transaction commits.

        The second pass evicts values a concurrent reader may have cached
        from the pre-commit state.
        """
        keys = list(keys)
        for key in keys:
            CacheService.delete(key)
        transaction.on_commit(lambda: [CacheService.delete(key) for key in keys])

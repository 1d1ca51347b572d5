"""
Settings store service.

The database is the single source of truth. Reads go through the Django
cache; every successful write invalidates the keys it touched.
"""
import json
import logging
from typing import Any, Dict, Iterable, List

from apps.audit.services import audited_transaction
from apps.core.cache import CacheKeys, CacheService, CacheTTL
from apps.core.exceptions import InvalidInput
from apps.rbac.policy import PolicyEvaluator, WRITE
from apps.settings_store.models import SystemSetting

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 100

# Defaults of a fresh installation, loaded by ``manage.py seed_settings``
DEFAULT_SETTINGS = [
    ('system_name', 'Panchayath Management System', 'Display name of the system'),
    ('max_login_attempts', 5, 'Consecutive failed logins before an account is locked'),
    ('session_timeout', 3600, 'Session lifetime in seconds'),
    ('enable_guest_registration', True, 'Allow guest registration'),
    ('require_email_verification', False, 'Require email verification for new accounts'),
    ('default_user_role', 'user', 'Role assigned to newly registered users'),
    ('maintenance_mode', False, 'Put the system into maintenance mode'),
]


class SettingsStore:
    """Key/value configuration with last-editor tracking."""

    @staticmethod
    def _cache_key(key):
        return CacheKeys.format(CacheKeys.SYSTEM_SETTING, key=key)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key`` or ``default`` if absent."""
        cache_key = cls._cache_key(key)
        cached = CacheService.get(cache_key)
        if cached is not None:
            return cached['value']

        setting = SystemSetting.objects.filter(key=key).first()
        if setting is None:
            return default

        CacheService.set(cache_key, {'value': setting.value}, CacheTTL.SYSTEM_SETTING)
        return setting.value

    @staticmethod
    def get_all() -> Dict[str, Any]:
        """Return every setting as ``{key: value}``."""
        return SystemSetting.objects.as_dict()

    @staticmethod
    def validate_entry(key, value):
        """
        Reject keys that are not non-empty strings of at most 100 characters
        and values that cannot be stored as JSON.
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidInput("Setting key must be a non-empty string", details={'key': key})
        if len(key) > MAX_KEY_LENGTH:
            raise InvalidInput(
                f"Setting key must be at most {MAX_KEY_LENGTH} characters",
                details={'key': key}
            )
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            raise InvalidInput("Setting value must be JSON-serializable", details={'key': key})

    @staticmethod
    def normalize_entries(entries) -> List[Dict[str, Any]]:
        """
        Accept ``{key: value}`` or ``[{'key', 'value', 'description'?}, ...]``.
        """
        if isinstance(entries, dict):
            return [{'key': key, 'value': value} for key, value in entries.items()]

        normalized = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or 'key' not in entry or 'value' not in entry:
                raise InvalidInput(
                    "Each entry needs a key and a value",
                    details={'index': index}
                )
            normalized.append(entry)
        return normalized

    @staticmethod
    def _upsert(actor, key, value, description=None):
        setting = SystemSetting.objects.select_for_update().filter(key=key).first()
        if setting is None:
            setting = SystemSetting(key=key, description=description or '')
        elif description is not None:
            setting.description = description

        setting.value = value
        setting.updated_by = actor
        setting.save()
        return setting

    @classmethod
    def invalidate(cls, keys: Iterable[str]):
        CacheService.invalidate(cls._cache_key(key) for key in keys)

    @classmethod
    def set(cls, actor, key: str, value: Any, description: str = None) -> SystemSetting:
        """
        Create or overwrite one setting and stamp the editor.

        Raises:
            Unauthorized: If the actor may not write settings
            InvalidInput: If the key or value is rejected
        """
        PolicyEvaluator.authorize(actor, 'settings', WRITE)
        cls.validate_entry(key, value)

        with audited_transaction(actor):
            setting = cls._upsert(actor, key, value, description)

        cls.invalidate([key])
        logger.info(
            f"Setting '{key}' updated",
            extra={'key': key, 'updated_by': actor.get_username()}
        )
        return setting

    @classmethod
    def set_all(cls, actor, entries) -> List[SystemSetting]:
        """
        Write a batch of settings all-or-nothing.

        Every entry is validated before the first write; a failure at any
        point commits none of them.
        """
        PolicyEvaluator.authorize(actor, 'settings', WRITE)
        entries = cls.normalize_entries(entries)

        for index, entry in enumerate(entries):
            try:
                cls.validate_entry(entry['key'], entry['value'])
            except InvalidInput as exc:
                exc.details = {**exc.details, 'index': index}
                raise

        keys = [entry['key'] for entry in entries]
        try:
            with audited_transaction(actor):
                saved = [
                    cls._upsert(actor, entry['key'], entry['value'], entry.get('description'))
                    for entry in entries
                ]
        finally:
            # Also evicts values read while the failed batch held its locks
            cls.invalidate(keys)

        logger.info(
            f"{len(saved)} settings updated",
            extra={'keys': keys, 'updated_by': actor.get_username()}
        )
        return saved

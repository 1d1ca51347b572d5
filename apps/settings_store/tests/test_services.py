"""
Tests for the settings store.
"""
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.audit.models import AuditLog
from apps.core.exceptions import InvalidInput, TransactionFailure, Unauthorized
from apps.settings_store.models import SystemSetting
from apps.settings_store.services import SettingsStore


@pytest.mark.django_db
class TestGetAndSet:
    """Test single-key reads and writes."""

    def test_missing_key_returns_default(self):
        assert SettingsStore.get('max_login_attempts') is None
        assert SettingsStore.get('max_login_attempts', 5) == 5

    def test_set_creates_and_stamps_editor(self, admin_user):
        setting = SettingsStore.set(admin_user, 'max_login_attempts', 3, description='Lockout threshold')

        assert setting.updated_by == admin_user
        assert setting.description == 'Lockout threshold'
        assert SettingsStore.get('max_login_attempts') == 3

    def test_set_overwrites_and_keeps_description(self, admin_user, super_admin):
        SettingsStore.set(admin_user, 'system_name', 'Old', description='Display name')

        setting = SettingsStore.set(super_admin, 'system_name', 'New')

        assert setting.value == 'New'
        assert setting.description == 'Display name'
        assert setting.updated_by == super_admin
        assert SystemSetting.objects.filter(key='system_name').count() == 1

    def test_structured_values(self, admin_user):
        SettingsStore.set(admin_user, 'ward_limits', {'north': [1, 2], 'south': None})

        assert SettingsStore.get('ward_limits') == {'north': [1, 2], 'south': None}

    def test_null_value_is_cached(self, admin_user):
        SettingsStore.set(admin_user, 'banner', None)

        assert SettingsStore.get('banner', 'fallback') is None
        assert SettingsStore.get('banner', 'fallback') is None

    def test_write_invalidates_cached_value(self, admin_user):
        SettingsStore.set(admin_user, 'session_timeout', 3600)
        assert SettingsStore.get('session_timeout') == 3600

        SettingsStore.set(admin_user, 'session_timeout', 600)

        assert SettingsStore.get('session_timeout') == 600

    def test_writes_are_audited(self, admin_user):
        setting = SettingsStore.set(admin_user, 'maintenance_mode', False)
        SettingsStore.set(admin_user, 'maintenance_mode', True)

        entries = AuditLog.objects.by_table('system_settings', setting.pk)
        assert sorted(e.action for e in entries) == ['create', 'update']
        update = entries.by_action('update').get()
        assert update.old_values['value'] is False
        assert update.new_values['value'] is True
        assert update.actor_username == 'admin'

    @pytest.mark.parametrize('key', ['', '   ', None, 'k' * 101])
    def test_invalid_key(self, admin_user, key):
        with pytest.raises(InvalidInput):
            SettingsStore.set(admin_user, key, 1)

        assert SystemSetting.objects.count() == 0

    def test_unserializable_value(self, admin_user):
        with pytest.raises(InvalidInput):
            SettingsStore.set(admin_user, 'bad', object())

    def test_inactive_actor_is_rejected(self, inactive_admin):
        with pytest.raises(Unauthorized):
            SettingsStore.set(inactive_admin, 'system_name', 'x')

        assert SystemSetting.objects.count() == 0

    def test_write_policy_can_be_restricted(self, admin_user, settings):
        settings.ADMIN_RESOURCE_POLICIES = {'settings': {'write': 'super_admin_only'}}

        with pytest.raises(Unauthorized):
            SettingsStore.set(admin_user, 'system_name', 'x')

    def test_get_all(self, admin_user):
        SettingsStore.set(admin_user, 'b', 2)
        SettingsStore.set(admin_user, 'a', 1)

        assert SettingsStore.get_all() == {'a': 1, 'b': 2}


@pytest.mark.django_db
class TestSetAll:
    """Test all-or-nothing batch writes."""

    def test_dict_batch(self, admin_user):
        saved = SettingsStore.set_all(admin_user, {'a': 1, 'b': [True]})

        assert [s.key for s in saved] == ['a', 'b']
        assert SettingsStore.get_all() == {'a': 1, 'b': [True]}

    def test_list_batch_with_descriptions(self, admin_user):
        SettingsStore.set_all(admin_user, [
            {'key': 'a', 'value': 1, 'description': 'first'},
            {'key': 'b', 'value': 2},
        ])

        assert SystemSetting.objects.get(key='a').description == 'first'
        assert SystemSetting.objects.get(key='b').updated_by == admin_user

    def test_invalid_entry_commits_nothing(self, admin_user):
        SettingsStore.set(admin_user, 'a', 1)

        with pytest.raises(InvalidInput) as exc_info:
            SettingsStore.set_all(admin_user, [
                {'key': 'a', 'value': 99},
                {'key': '', 'value': 2},
            ])

        assert exc_info.value.details['index'] == 1
        assert SettingsStore.get_all() == {'a': 1}

    def test_entry_without_value(self, admin_user):
        with pytest.raises(InvalidInput) as exc_info:
            SettingsStore.set_all(admin_user, [{'key': 'a', 'value': 1}, {'key': 'b'}])

        assert exc_info.value.details == {'index': 1}
        assert SystemSetting.objects.count() == 0

    def test_store_failure_mid_batch_commits_nothing(self, admin_user):
        SettingsStore.set(admin_user, 'a', 1)
        assert SettingsStore.get('a') == 1
        original_save = SystemSetting.save
        calls = []

        def failing_save(self, *args, **kwargs):
            calls.append(self.key)
            if len(calls) == 2:
                raise DatabaseError('disk full')
            return original_save(self, *args, **kwargs)

        with patch.object(SystemSetting, 'save', failing_save):
            with pytest.raises(TransactionFailure):
                SettingsStore.set_all(admin_user, {'a': 2, 'b': 3})

        assert SettingsStore.get('a') == 1
        assert SettingsStore.get('b') is None
        assert AuditLog.objects.by_table('system_settings').count() == 1


class TestNormalizeEntries:

    def test_dict(self):
        assert SettingsStore.normalize_entries({'a': 1}) == [{'key': 'a', 'value': 1}]

    def test_list(self):
        entries = [{'key': 'a', 'value': None, 'description': 'd'}]

        assert SettingsStore.normalize_entries(entries) == entries

    def test_non_dict_item(self):
        with pytest.raises(InvalidInput):
            SettingsStore.normalize_entries(['a'])

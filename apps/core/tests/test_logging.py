"""
Tests for log masking, sanitization and formatting.
"""
import json
import logging
import sys
import threading
from unittest.mock import patch

from apps.core.log_sanitizer import SanitizingFilter, SanitizingFormatter
from apps.core.logging import JSONFormatter, PIIMasker, SecurityLogger
from apps.core.middleware import LoggingFilter


def make_record(msg='hello', args=None, exc_info=None, **extra):
    record = logging.LogRecord('apps.test', logging.INFO, __file__, 10, msg, args, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestPIIMasker:
    """Test masking helpers."""

    def test_mask_email(self):
        assert PIIMasker.mask_email('contact root@example.com now') == 'contact r***@example.com now'

    def test_mask_phone(self):
        assert PIIMasker.mask_phone('call 9876543210') == 'call 987*******'

    def test_mask_api_keys(self):
        assert 'abc123' not in PIIMasker.mask_api_keys('token=abc123')

    def test_mask_dict(self):
        masked = PIIMasker.mask_dict({
            'username': 'root',
            'password': 'hunter2',
            'nested': {'secret_key': 'xyz'},
            'contacts': ['root@example.com'],
        })

        assert masked['username'] == 'root'
        assert masked['password'] == '********'
        assert masked['nested']['secret_key'] == '********'
        assert masked['contacts'] == ['r***@example.com']

    def test_non_strings_pass_through(self):
        assert PIIMasker.mask_text(42) == 42
        assert PIIMasker.mask_dict(['x']) == ['x']


class TestJSONFormatter:
    """Test structured output."""

    def test_basic_fields(self):
        output = json.loads(JSONFormatter().format(make_record(request_id='req-1', table_name='agents')))

        assert output['level'] == 'INFO'
        assert output['logger'] == 'apps.test'
        assert output['message'] == 'hello'
        assert output['request_id'] == 'req-1'
        assert output['table_name'] == 'agents'

    def test_masks_message_and_extra(self):
        record = make_record('login for root@example.com', email='root@example.com')

        output = json.loads(JSONFormatter().format(record))

        assert 'root@example.com' not in output['message']
        assert output['email'] == '********'

    def test_exception(self):
        try:
            raise ValueError('bad value')
        except ValueError:
            record = make_record('failed', exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert output['exception']['type'] == 'ValueError'
        assert output['exception']['message'] == 'bad value'

    def test_unserializable_extra_is_stringified(self):
        output = json.loads(JSONFormatter().format(make_record(thing=object())))

        assert output['thing'].startswith('<object object')


class TestSanitizing:
    """Test credential redaction."""

    def test_redacts_bearer_and_password(self):
        text = SanitizingFormatter.sanitize(
            'Authorization header Bearer abcdefghijklmnopqrstuvwxyz password=hunter2'
        )

        assert 'abcdefghijklmnopqrstuvwxyz' not in text
        assert 'hunter2' not in text

    def test_redacts_password_hash(self):
        text = SanitizingFormatter.sanitize('stored pbkdf2_sha256$600000$salt$hash')

        assert '[REDACTED_HASH]' in text

    def test_redacts_database_url(self):
        text = SanitizingFormatter.sanitize('postgres://admin:s3cret@db:5432/panchayath')

        assert 's3cret' not in text

    def test_filter_rewrites_msg_and_args(self):
        record = make_record('login attempt %s', args=('password=hunter2',))

        assert SanitizingFilter().filter(record) is True
        assert 'hunter2' not in record.getMessage()


class TestLoggingFilter:

    def test_copies_thread_request_id(self):
        thread = threading.current_thread()
        thread.request_id = 'req-thread'
        try:
            record = make_record()
            LoggingFilter().filter(record)
        finally:
            del thread.request_id

        assert record.request_id == 'req-thread'


class TestSecurityLogger:
    """Test security event logging."""

    def test_event_is_masked(self):
        with patch('apps.core.logging.logging.getLogger') as get_logger:
            SecurityLogger.log_failed_login('root', ip_address='10.0.0.1', reason='bad_password')

        logged = get_logger.return_value.warning.call_args
        assert logged.args[0] == 'Security event: failed_login'
        assert logged.kwargs['extra']['username'] == 'root'
        assert logged.kwargs['extra']['reason'] == 'bad_password'

    def test_account_locked_alerts_sentry(self):
        with patch('apps.core.logging.sentry_sdk.capture_message') as capture:
            SecurityLogger.log_account_locked('root', attempts=5, lockout_seconds=900)

        capture.assert_called_once()

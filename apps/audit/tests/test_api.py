"""
Tests for audit trail API endpoints.
"""
import csv
from datetime import datetime
from io import StringIO

import pytest
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.panchayaths.models import Panchayath


def make_log(day, **kwargs):
    values = {
        'action': 'create',
        'table_name': 'panchayaths',
        'record_id': '1',
        'created_at': timezone.make_aware(datetime(2026, 3, day, 9, 0)),
    }
    values.update(kwargs)
    return AuditLog.objects.create(**values)


@pytest.mark.django_db
class TestAuditLogListAPI:
    """Test GET /v1/audit-logs."""

    def test_requires_authentication(self, api_client):
        response = api_client.get('/v1/audit-logs')

        assert response.status_code == 401

    def test_inactive_caller_is_forbidden(self, client_for, inactive_admin):
        response = client_for(inactive_admin).get('/v1/audit-logs')

        assert response.status_code == 403

    def test_list_newest_first(self, client_for, local_admin):
        make_log(1, record_id='old')
        make_log(2, record_id='new', actor_username='root', ip_address='10.0.0.1')

        response = client_for(local_admin).get('/v1/audit-logs')

        assert response.status_code == 200
        assert response.data['count'] == 2
        assert [r['record_id'] for r in response.data['results']] == ['new', 'old']

    def test_filters(self, client_for, local_admin):
        make_log(1, action='delete', table_name='agents', actor_username='root')
        make_log(5, action='delete', table_name='agents', actor_username='root', record_id='match')
        make_log(5, action='create', table_name='agents', actor_username='root')

        response = client_for(local_admin).get('/v1/audit-logs', {
            'action': 'delete',
            'table_name': 'agents',
            'user': 'ROO',
            'from_date': '2026-03-05',
            'to_date': '2026-03-05',
        })

        assert response.status_code == 200
        assert [r['record_id'] for r in response.data['results']] == ['match']

    def test_invalid_date(self, client_for, local_admin):
        response = client_for(local_admin).get('/v1/audit-logs', {'from_date': '03/05/2026'})

        assert response.status_code == 400
        assert response.data['error']['code'] == 'INVALID_INPUT'

    def test_writes_via_api_are_listed_with_origin(self, client_for, super_admin):
        client = client_for(super_admin)

        response = client.post(
            '/v1/panchayaths',
            {'name': 'Kottayam', 'district': 'Kottayam', 'state': 'Kerala'},
            format='json',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
            HTTP_USER_AGENT='pytest-agent',
            HTTP_X_REQUEST_ID='req-audit-1',
        )
        assert response.status_code == 201

        entry = AuditLog.objects.by_request('req-audit-1').get()
        assert entry.table_name == 'panchayaths'
        assert entry.actor_username == 'root'
        assert entry.ip_address == '203.0.113.7'
        assert entry.user_agent == 'pytest-agent'

    def test_oversized_request_id_does_not_break_writes(self, client_for, super_admin):
        response = client_for(super_admin).post(
            '/v1/panchayaths',
            {'name': 'Pala', 'district': 'Kottayam', 'state': 'Kerala'},
            format='json',
            HTTP_X_REQUEST_ID='x' * 500,
        )

        assert response.status_code == 201
        entry = AuditLog.objects.by_table('panchayaths', response.data['id']).get()
        assert entry.request_id == response['X-Request-ID']
        assert len(entry.request_id) <= 64


@pytest.mark.django_db
class TestAuditLogExportAPI:
    """Test GET /v1/audit-logs/export."""

    def test_export_csv(self, client_for, local_admin):
        make_log(1, record_id='system-row')
        make_log(2, record_id='user-row', actor_username='root', ip_address='10.0.0.1')

        response = client_for(local_admin).get('/v1/audit-logs/export')

        assert response.status_code == 200
        assert response['Content-Type'].startswith('text/csv')
        assert 'attachment; filename="audit-logs-' in response['Content-Disposition']

        rows = list(csv.reader(StringIO(response.content.decode())))
        assert rows[0] == ['Timestamp', 'User', 'Action', 'Table', 'Record ID', 'IP Address']
        assert rows[1][1:] == ['root', 'create', 'panchayaths', 'user-row', '10.0.0.1']
        assert rows[2][1:] == ['Unknown', 'create', 'panchayaths', 'system-row', '']

    def test_export_applies_filters(self, client_for, local_admin):
        make_log(1, table_name='agents')
        make_log(2, table_name='panchayaths')

        response = client_for(local_admin).get('/v1/audit-logs/export', {'table_name': 'agents'})

        rows = list(csv.reader(StringIO(response.content.decode())))
        assert len(rows) == 2
        assert rows[1][3] == 'agents'

    def test_export_requires_authentication(self, api_client):
        Panchayath.objects.create(name='Kottayam', district='Kottayam', state='Kerala')

        response = api_client.get('/v1/audit-logs/export')

        assert response.status_code == 401

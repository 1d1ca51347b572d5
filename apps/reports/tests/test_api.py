"""
Tests for report endpoints and the report service.
"""
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.core.exceptions import InvalidInput
from apps.panchayaths.models import Agent, ManagementTeam, Panchayath
from apps.reports.services import ReportService


@pytest.fixture
def domain_data(db):
    kottayam = Panchayath.objects.create(name='Kottayam', district='Kottayam', state='Kerala')
    udupi = Panchayath.objects.create(name='Udupi', district='Udupi', state='Karnataka')
    Agent.objects.create(name='Anu', panchayath=kottayam, role=Agent.ROLE_PRO)
    Agent.objects.create(name='Biju', panchayath=kottayam, role=Agent.ROLE_PRO)
    Agent.objects.create(name='Cini', panchayath=udupi, role=Agent.ROLE_COORDINATOR)
    ManagementTeam.objects.create(name='North', panchayath=kottayam)
    ManagementTeam.objects.create(name='Old', is_active=False)


@pytest.mark.django_db
class TestReportService:
    """Test aggregate computations."""

    def test_dashboard(self, super_admin, inactive_admin, domain_data):
        data = ReportService.dashboard()

        assert data['total_admin_users'] == 2
        assert data['active_admin_users'] == 1
        assert data['total_panchayaths'] == 2
        assert data['total_agents'] == 3
        assert data['active_management_teams'] == 1
        assert len(data['recent_activity']) == min(AuditLog.objects.count(), 10)

    def test_breakdown(self, domain_data):
        data = ReportService.breakdown('7d')

        assert data['agents_by_role'] == {
            'coordinator': 1, 'supervisor': 0, 'group-leader': 0, 'pro': 2,
        }
        assert data['panchayaths_by_state'] == {'Karnataka': 1, 'Kerala': 1}

        today = timezone.localdate()
        assert data['end_date'] == today.isoformat()
        assert data['start_date'] == (today - timedelta(days=6)).isoformat()
        assert len(data['audit_activity']) == 7
        assert data['audit_activity'][-1] == {'date': today.isoformat(), 'count': 7}
        assert all(day['count'] == 0 for day in data['audit_activity'][:-1])

    @pytest.mark.parametrize('date_range', ['30', 'd', '0d', '400d', 'abc', '-5d'])
    def test_invalid_range(self, date_range):
        with pytest.raises(InvalidInput):
            ReportService.parse_range(date_range)


@pytest.mark.django_db
class TestReportAPI:
    """Test /v1/reports endpoints."""

    def test_dashboard(self, client_for, local_admin, domain_data):
        response = client_for(local_admin).get('/v1/reports/dashboard')

        assert response.status_code == 200
        assert set(response.data) == {
            'total_admin_users', 'active_admin_users', 'total_panchayaths',
            'total_agents', 'active_management_teams', 'recent_activity',
        }
        assert response.data['total_agents'] == 3

    def test_breakdown_default_range(self, client_for, local_admin):
        response = client_for(local_admin).get('/v1/reports/breakdown')

        assert response.status_code == 200
        assert response.data['date_range'] == '30d'
        assert len(response.data['audit_activity']) == 30

    def test_breakdown_invalid_range(self, client_for, local_admin):
        response = client_for(local_admin).get('/v1/reports/breakdown', {'range': 'week'})

        assert response.status_code == 400
        assert response.data['error']['code'] == 'INVALID_INPUT'

    def test_requires_authentication(self, api_client):
        assert api_client.get('/v1/reports/dashboard').status_code == 401

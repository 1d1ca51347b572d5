"""
Report service for dashboard and breakdown aggregates.

Provides methods for:
- Dashboard counts with the most recent audit activity
- Agents by role, panchayaths by state
- Audit activity per day over a date range
"""
from datetime import timedelta
from django.db.models import Count
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.audit.services import AuditRecorder
from apps.core.exceptions import InvalidInput
from apps.panchayaths.models import Agent, ManagementTeam, Panchayath
from apps.rbac.models import AdminUser


class ReportService:
    """
    Read-only aggregates for the reporting screens.
    """

    RECENT_ACTIVITY_LIMIT = 10
    MAX_RANGE_DAYS = 366

    @classmethod
    def parse_range(cls, date_range='30d'):
        """
        Parse a range like '7d' or '30d' into ``(start_date, end_date)``.

        Raises:
            InvalidInput: If the format is wrong or the range is out of bounds
        """
        if not date_range.endswith('d') or not date_range[:-1].isdigit():
            raise InvalidInput(
                'Invalid date range format. Use format like "7d", "30d"',
                details={'range': date_range}
            )
        days = int(date_range[:-1])
        if days < 1 or days > cls.MAX_RANGE_DAYS:
            raise InvalidInput(
                f'Date range must be between 1 and {cls.MAX_RANGE_DAYS} days',
                details={'range': date_range}
            )
        end_date = timezone.localdate()
        return end_date - timedelta(days=days - 1), end_date

    @classmethod
    def dashboard(cls):
        """
        Returns:
            dict: counts of administrators, panchayaths, agents, active
            management teams and the 10 most recent audit records
        """
        return {
            'total_admin_users': AdminUser.objects.count(),
            'active_admin_users': AdminUser.objects.active().count(),
            'total_panchayaths': Panchayath.objects.count(),
            'total_agents': Agent.objects.count(),
            'active_management_teams': ManagementTeam.objects.filter(is_active=True).count(),
            'recent_activity': list(AuditRecorder.recent(cls.RECENT_ACTIVITY_LIMIT)),
        }

    @classmethod
    def breakdown(cls, date_range='30d'):
        """
        Group counts for charts.

        Audit activity is counted per day between the range start and today,
        both inclusive; days without activity are reported as zero.
        """
        start_date, end_date = cls.parse_range(date_range)

        agents_by_role = {role: 0 for role, _ in Agent.ROLE_CHOICES}
        for row in Agent.objects.values('role').annotate(count=Count('id')):
            agents_by_role[row['role']] = row['count']

        panchayaths_by_state = {
            row['state']: row['count']
            for row in Panchayath.objects.values('state').annotate(count=Count('id')).order_by('state')
        }

        daily = {
            row['day']: row['count']
            for row in AuditRecorder.list(date_from=start_date, date_to=end_date)
            .order_by()
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(count=Count('id'))
        }
        audit_activity = []
        day = start_date
        while day <= end_date:
            audit_activity.append({'date': day.isoformat(), 'count': daily.get(day, 0)})
            day += timedelta(days=1)

        return {
            'date_range': date_range,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'agents_by_role': agents_by_role,
            'panchayaths_by_state': panchayaths_by_state,
            'audit_activity': audit_activity,
        }

"""
Serializers for report payloads.
"""
from rest_framework import serializers
from apps.audit.serializers import AuditLogSerializer


class DashboardSerializer(serializers.Serializer):
    total_admin_users = serializers.IntegerField()
    active_admin_users = serializers.IntegerField()
    total_panchayaths = serializers.IntegerField()
    total_agents = serializers.IntegerField()
    active_management_teams = serializers.IntegerField()
    recent_activity = AuditLogSerializer(many=True)


class DailyCountSerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()


class BreakdownSerializer(serializers.Serializer):
    date_range = serializers.CharField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    agents_by_role = serializers.DictField(child=serializers.IntegerField())
    panchayaths_by_state = serializers.DictField(child=serializers.IntegerField())
    audit_activity = DailyCountSerializer(many=True)

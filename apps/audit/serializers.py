"""
Serializers for audit records.
"""
from rest_framework import serializers
from apps.audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for AuditLog model."""

    class Meta:
        model = AuditLog
        fields = [
            'id', 'actor_id', 'actor_username', 'action',
            'table_name', 'record_id', 'old_values', 'new_values',
            'ip_address', 'user_agent', 'request_id',
            'created_at'
        ]
        read_only_fields = fields

"""
Serializers for system settings.
"""
from rest_framework import serializers
from apps.settings_store.models import SystemSetting


class SystemSettingSerializer(serializers.ModelSerializer):
    updated_by = serializers.CharField(source='updated_by.username', read_only=True, default=None)

    class Meta:
        model = SystemSetting
        fields = ['id', 'key', 'value', 'description', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = fields


class SettingValueSerializer(serializers.Serializer):
    """Body of a single-setting write."""

    value = serializers.JSONField(allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)


class SettingEntrySerializer(serializers.Serializer):
    key = serializers.CharField(max_length=100)
    value = serializers.JSONField(allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)


class SettingBatchSerializer(serializers.Serializer):
    """Body of an all-or-nothing batch write."""

    settings = SettingEntrySerializer(many=True, allow_empty=False)

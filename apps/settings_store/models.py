"""
System setting model.
"""
from django.conf import settings
from django.db import models
from apps.audit.models import AuditedManager, AuditedModel


class SystemSettingManager(AuditedManager):
    """Manager for SystemSetting queries."""

    def as_dict(self):
        return dict(self.order_by('key').values_list('key', 'value'))


class SystemSetting(AuditedModel):
    """
    One configuration entry.

    The value is opaque structured data; callers interpret it consistently
    by key.
    """

    key = models.CharField(
        max_length=100,
        unique=True,
        help_text="Setting key (e.g., 'max_login_attempts')"
    )
    value = models.JSONField(
        null=True,
        blank=True,
        help_text="Setting value (number, boolean, string or nested object)"
    )
    description = models.TextField(
        blank=True,
        help_text="What this setting controls"
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='settings_updated',
        help_text="Administrator who last changed the setting"
    )

    objects = SystemSettingManager()

    class Meta:
        db_table = 'system_settings'
        ordering = ['key']

    def __str__(self):
        return self.key

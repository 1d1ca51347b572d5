"""
Django admin configuration for system settings.
"""
from django.contrib import admin
from apps.audit.admin import AuditedAdminMixin
from .models import SystemSetting


@admin.register(SystemSetting)
class SystemSettingAdmin(AuditedAdminMixin, admin.ModelAdmin):
    """
    Settings edited here are stamped with the signed-in administrator and
    evicted from the cache like API writes.
    """
    list_display = ['key', 'value', 'updated_by', 'updated_at']
    search_fields = ['key', 'description']
    readonly_fields = ['updated_by', 'created_at', 'updated_at']
    ordering = ['key']

    def save_model(self, request, obj, form, change):
        from apps.settings_store.services import SettingsStore

        obj.updated_by = request.user
        super().save_model(request, obj, form, change)
        SettingsStore.invalidate([obj.key])

    def delete_model(self, request, obj):
        from apps.settings_store.services import SettingsStore

        super().delete_model(request, obj)
        SettingsStore.invalidate([obj.key])

"""
Django admin configuration for the audit trail.
"""
from django.contrib import admin
from apps.audit.context import audit_context
from apps.audit.models import AuditLog


class AuditedAdminMixin:
    """
    Attribute Django admin edits of tracked models to the signed-in
    administrator.
    """

    def save_model(self, request, obj, form, change):
        with audit_context(actor=request.user):
            super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        with audit_context(actor=request.user):
            super().delete_model(request, obj)

    def delete_queryset(self, request, queryset):
        with audit_context(actor=request.user):
            super().delete_queryset(request, queryset)


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only admin interface for AuditLog model."""
    list_display = ['created_at', 'actor_username', 'action', 'table_name', 'record_id', 'ip_address']
    list_filter = ['action', 'table_name', 'created_at']
    search_fields = ['actor_username', 'table_name', 'record_id', 'request_id']
    readonly_fields = [field.name for field in AuditLog._meta.fields]
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

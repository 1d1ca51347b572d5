"""
Django admin configuration for RBAC app.
"""
from django import forms
from django.contrib import admin
from apps.audit.admin import AuditedAdminMixin
from .models import AdminUser, AdminPermission, AdminUserPermission


class AdminUserForm(forms.ModelForm):
    """Accepts a plain password and stores its hash."""

    new_password = forms.CharField(
        required=False,
        widget=forms.PasswordInput,
        help_text="Leave empty to keep the current password"
    )

    class Meta:
        model = AdminUser
        fields = ['username', 'email', 'role', 'is_active']

    def clean(self):
        cleaned = super().clean()
        if not self.instance.pk and not cleaned.get('new_password'):
            self.add_error('new_password', 'A password is required for new accounts')
        return cleaned

    def save(self, commit=True):
        user = super().save(commit=False)
        if self.cleaned_data.get('new_password'):
            user.set_password(self.cleaned_data['new_password'])
        if commit:
            user.save()
        return user


class AdminUserPermissionInline(admin.TabularInline):
    model = AdminUserPermission
    fk_name = 'user'
    extra = 0
    readonly_fields = ['permission', 'granted_by', 'created_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(AdminUser)
class AdminUserAdmin(AuditedAdminMixin, admin.ModelAdmin):
    """
    Admin for administrator accounts.

    Grants are read-only here; they are changed through the API so every
    change is recorded on the grants resource.
    """
    form = AdminUserForm
    list_display = ['username', 'email', 'role', 'is_active', 'last_login_at', 'created_at']
    list_filter = ['role', 'is_active', 'created_at']
    search_fields = ['username', 'email']
    ordering = ['-created_at']
    readonly_fields = ['last_login_at', 'created_at', 'updated_at']
    inlines = [AdminUserPermissionInline]

    fieldsets = (
        (None, {
            'fields': ('username', 'email', 'new_password')
        }),
        ('Access', {
            'fields': ('role', 'is_active')
        }),
        ('Activity', {
            'fields': ('last_login_at', 'created_at', 'updated_at')
        }),
    )


@admin.register(AdminPermission)
class AdminPermissionAdmin(admin.ModelAdmin):
    """Admin interface for the capability catalog."""
    list_display = ['code', 'module', 'action', 'description']
    list_filter = ['module']
    search_fields = ['module', 'action', 'description']
    ordering = ['module', 'action']

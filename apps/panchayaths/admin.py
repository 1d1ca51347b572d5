"""
Django admin configuration for panchayath domain resources.
"""
from django.contrib import admin
from apps.audit.admin import AuditedAdminMixin
from .models import Panchayath, Agent, ManagementTeam


@admin.register(Panchayath)
class PanchayathAdmin(AuditedAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'district', 'state', 'created_at']
    list_filter = ['state', 'district']
    search_fields = ['name', 'district']


@admin.register(Agent)
class AgentAdmin(AuditedAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'role', 'panchayath', 'ward', 'phone', 'superior']
    list_filter = ['role', 'panchayath__state']
    search_fields = ['name', 'phone', 'email', 'ward']
    raw_id_fields = ['panchayath', 'superior']


@admin.register(ManagementTeam)
class ManagementTeamAdmin(AuditedAdminMixin, admin.ModelAdmin):
    list_display = ['name', 'panchayath', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'description']

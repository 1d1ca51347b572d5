"""
URL configuration for the audit trail API.
"""
from django.urls import path
from apps.audit import views

app_name = 'audit'

urlpatterns = [
    path('audit-logs', views.AuditLogListView.as_view(), name='audit-log-list'),
    path('audit-logs/export', views.AuditLogExportView.as_view(), name='audit-log-export'),
]

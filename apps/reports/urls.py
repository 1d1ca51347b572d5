"""
URL configuration for reports.
"""
from django.urls import path
from apps.reports import views

app_name = 'reports'

urlpatterns = [
    path('reports/dashboard', views.DashboardView.as_view(), name='dashboard'),
    path('reports/breakdown', views.BreakdownView.as_view(), name='breakdown'),
]

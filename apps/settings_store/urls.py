"""
URL configuration for system settings.
"""
from django.urls import path
from apps.settings_store import views

app_name = 'settings_store'

urlpatterns = [
    path('settings', views.SettingListView.as_view(), name='setting-list'),
    path('settings/<str:key>', views.SettingDetailView.as_view(), name='setting-detail'),
]

"""
URL configuration for the Panchayath admin back-office.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API v1
    path('v1/', include('apps.core.urls')),

    # Authentication endpoints
    path('v1/auth/', include('apps.rbac.urls_auth')),  # Login, me

    # Administrators, capability grants and the capability catalog
    path('v1/', include('apps.rbac.urls')),

    # System settings
    path('v1/', include('apps.settings_store.urls')),

    # Audit trail and CSV export
    path('v1/', include('apps.audit.urls')),

    # Panchayaths, agents and management teams
    path('v1/', include('apps.panchayaths.urls')),

    # Dashboard and breakdowns
    path('v1/', include('apps.reports.urls')),
]

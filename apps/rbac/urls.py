"""
URL configuration for RBAC endpoints.
"""
from django.urls import path
from apps.rbac import views

app_name = 'rbac'

urlpatterns = [
    # Administrator accounts
    path('admin-users', views.AdminUserListView.as_view(), name='admin-user-list'),
    path('admin-users/<uuid:user_id>', views.AdminUserDetailView.as_view(), name='admin-user-detail'),
    path('admin-users/<uuid:user_id>/active', views.AdminUserActiveView.as_view(), name='admin-user-active'),

    # Grants
    path('admin-users/<uuid:user_id>/permissions', views.AdminUserPermissionsView.as_view(), name='admin-user-permissions'),
    path('admin-users/<uuid:user_id>/permissions/grant', views.AdminUserGrantView.as_view(), name='admin-user-grant'),

    # Capability catalog
    path('permissions', views.PermissionListView.as_view(), name='permission-list'),
]

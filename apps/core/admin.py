"""
Django admin configuration for core app.
"""
from django.contrib import admin


# Customize admin site header and title
admin.site.site_header = "Panchayath Management System Administration"
admin.site.site_title = "Panchayath Admin"
admin.site.index_title = "Back-office administration"

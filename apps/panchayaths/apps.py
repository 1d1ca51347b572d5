from django.apps import AppConfig


class PanchayathsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.panchayaths'
    verbose_name = 'Panchayaths'

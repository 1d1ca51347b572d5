# Generated migration for system settings

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SystemSetting',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('key', models.CharField(help_text="Setting key (e.g., 'max_login_attempts')", max_length=100, unique=True)),
                ('value', models.JSONField(blank=True, help_text='Setting value (number, boolean, string or nested object)', null=True)),
                ('description', models.TextField(blank=True, help_text='What this setting controls')),
                ('updated_by', models.ForeignKey(blank=True, help_text='Administrator who last changed the setting', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='settings_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'system_settings',
                'ordering': ['key'],
            },
        ),
    ]

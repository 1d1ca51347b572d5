# Generated migration for the audit trail

from django.db import migrations, models
import django.utils.timezone
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('actor_id', models.UUIDField(blank=True, db_index=True, help_text='ID of the administrator who made the change', null=True)),
                ('actor_username', models.CharField(blank=True, db_index=True, help_text='Username of the actor at the time of the change', max_length=150)),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete')], db_index=True, help_text='Operation kind', max_length=10)),
                ('table_name', models.CharField(db_index=True, help_text="Affected resource (e.g., 'admin_users', 'panchayaths')", max_length=100)),
                ('record_id', models.CharField(db_index=True, help_text='Identifier of the affected record', max_length=100)),
                ('old_values', models.JSONField(blank=True, help_text='State before the change (update and delete)', null=True)),
                ('new_values', models.JSONField(blank=True, help_text='State after the change (create and update)', null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='IP address of the request', null=True)),
                ('user_agent', models.TextField(blank=True, help_text='User agent string')),
                ('request_id', models.CharField(blank=True, db_index=True, help_text='Request ID for tracing', max_length=64)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the change was recorded')),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='auditlog',
            index=models.Index(fields=['table_name', 'record_id'], name='audit_logs_table_record_idx'),
        ),
        migrations.AddIndex(
            model_name='auditlog',
            index=models.Index(fields=['action', 'created_at'], name='audit_logs_action_created_idx'),
        ),
        migrations.AddIndex(
            model_name='auditlog',
            index=models.Index(fields=['actor_id', 'created_at'], name='audit_logs_actor_created_idx'),
        ),
    ]

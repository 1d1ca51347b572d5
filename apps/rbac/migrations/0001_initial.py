# Generated migration for administrator identities and capabilities

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='AdminUser',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('username', models.CharField(help_text='Login handle (unique globally)', max_length=150, unique=True)),
                ('email', models.EmailField(blank=True, help_text='Optional email address', max_length=254, null=True, unique=True)),
                ('password_hash', models.CharField(db_column='password_hash', help_text='Hashed password', max_length=255)),
                ('role', models.CharField(choices=[('super_admin', 'Super Admin'), ('admin', 'Admin'), ('local_admin', 'Local Admin')], db_index=True, default='admin', help_text='Administrative role', max_length=20)),
                ('is_active', models.BooleanField(db_index=True, default=True, help_text='Whether the account can be used')),
                ('last_login_at', models.DateTimeField(blank=True, help_text='Last successful authentication', null=True)),
            ],
            options={
                'db_table': 'admin_users',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AdminPermission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('module', models.CharField(db_index=True, help_text="Module name (e.g., 'users', 'panchayaths')", max_length=50)),
                ('action', models.CharField(help_text="Action name (e.g., 'create', 'read')", max_length=50)),
                ('description', models.TextField(blank=True, help_text='Human-readable description')),
            ],
            options={
                'db_table': 'admin_permissions',
                'ordering': ['module', 'action'],
                'unique_together': {('module', 'action')},
            },
        ),
        migrations.CreateModel(
            name='AdminUserPermission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True, help_text='Timestamp when the record was last updated')),
                ('granted_by', models.ForeignKey(blank=True, help_text='Administrator who made the grant', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='grants_given', to=settings.AUTH_USER_MODEL)),
                ('permission', models.ForeignKey(help_text='Granted capability', on_delete=django.db.models.deletion.CASCADE, related_name='grants', to='rbac.adminpermission')),
                ('user', models.ForeignKey(help_text='Administrator holding the capability', on_delete=django.db.models.deletion.CASCADE, related_name='capability_grants', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'admin_user_permissions',
                'ordering': ['-created_at'],
                'unique_together': {('user', 'permission')},
            },
        ),
        migrations.AddIndex(
            model_name='adminuser',
            index=models.Index(fields=['role', 'is_active'], name='admin_users_role_active_idx'),
        ),
    ]

"""
Management command to seed default system settings.

Existing keys keep their current values. This command is idempotent and
safe to re-run.
"""
from django.core.management.base import BaseCommand
from apps.audit.services import audited_transaction
from apps.settings_store.models import SystemSetting
from apps.settings_store.services import DEFAULT_SETTINGS, SettingsStore


class Command(BaseCommand):
    help = 'Seed default system settings (idempotent)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite existing values with the defaults',
        )

    def handle(self, *args, **options):
        reset = options['reset']
        created_count = 0
        reset_count = 0

        self.stdout.write('Seeding system settings...\n')

        with audited_transaction():
            for key, value, description in DEFAULT_SETTINGS:
                setting = SystemSetting.objects.select_for_update().filter(key=key).first()
                if setting is None:
                    SystemSetting.objects.create(key=key, value=value, description=description)
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f'✓ Created: {key} = {value!r}'))
                elif reset and setting.value != value:
                    setting.value = value
                    setting.save()
                    reset_count += 1
                    self.stdout.write(self.style.WARNING(f'↻ Reset: {key} = {value!r}'))
                else:
                    self.stdout.write(self.style.HTTP_INFO(f'  Exists: {key} = {setting.value!r}'))

        SettingsStore.invalidate(key for key, _, _ in DEFAULT_SETTINGS)

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✓ Seeding complete: {created_count} created, {reset_count} reset'
            )
        )

"""
Management command to seed the capability catalog.

Creates every default (module, action) capability. This command is
idempotent and safe to re-run.
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.rbac.models import AdminPermission
from apps.rbac.services import PermissionRegistry


class Command(BaseCommand):
    help = 'Seed default capabilities (idempotent)'

    def handle(self, *args, **options):
        """Create or update all default capabilities."""

        created_count = 0
        updated_count = 0

        self.stdout.write('Seeding capabilities...\n')

        with transaction.atomic():
            for module, action, description in PermissionRegistry.DEFAULT_CAPABILITIES:
                capability, created = AdminPermission.objects.get_or_create(
                    module=module,
                    action=action,
                    defaults={'description': description},
                )

                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f'✓ Created: {capability.code}'))
                elif capability.description != description:
                    capability.description = description
                    capability.save(update_fields=['description', 'updated_at'])
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f'↻ Updated: {capability.code}'))
                else:
                    self.stdout.write(self.style.HTTP_INFO(f'  Exists: {capability.code}'))

        total = len(PermissionRegistry.DEFAULT_CAPABILITIES)
        self.stdout.write(
            self.style.SUCCESS(
                f'\n✓ Seeding complete: {created_count} created, {updated_count} updated, '
                f'{total - created_count - updated_count} unchanged'
            )
        )

        self.stdout.write('\n' + '=' * 70)
        self.stdout.write('Capabilities by Module:')
        self.stdout.write('=' * 70)

        for module, capabilities in PermissionRegistry.group_by_module().items():
            self.stdout.write(f'\n{module.upper()}:')
            for capability in capabilities:
                self.stdout.write(f'  • {capability.code:<25} {capability.description}')

        self.stdout.write(f'\nTotal capabilities: {AdminPermission.objects.count()}')

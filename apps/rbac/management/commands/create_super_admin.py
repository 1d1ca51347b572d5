"""
Management command to bootstrap a super_admin account.

The first super_admin cannot be created through the API because creating
administrators requires one.
"""
from django.core.management.base import BaseCommand, CommandError
from apps.audit.services import audited_transaction
from apps.core.exceptions import AdminError
from apps.rbac.models import AdminUser


class Command(BaseCommand):
    help = 'Create a super_admin account (or promote an existing one)'

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            '--username',
            type=str,
            required=True,
            help='Login handle',
        )
        parser.add_argument(
            '--password',
            type=str,
            help='Password (required when the account does not exist)',
        )
        parser.add_argument(
            '--email',
            type=str,
            default=None,
            help='Optional email address',
        )

    def handle(self, *args, **options):
        username = options['username'].strip()
        password = options.get('password')
        email = options.get('email') or None

        if not username:
            raise CommandError('--username must not be empty')

        user = AdminUser.objects.by_username(username)

        try:
            with audited_transaction():
                if user is None:
                    if not password:
                        raise CommandError(
                            f'Administrator not found: {username}\n'
                            f'Pass --password to create the account'
                        )
                    user = AdminUser.objects.create_superuser(username, password, email=email)
                    self.stdout.write(self.style.SUCCESS(f'✓ Created super_admin: {username}'))
                elif user.role != AdminUser.ROLE_SUPER_ADMIN or not user.is_active:
                    user.role = AdminUser.ROLE_SUPER_ADMIN
                    user.is_active = True
                    if password:
                        user.set_password(password)
                    user.save()
                    self.stdout.write(self.style.WARNING(f'↻ Promoted to super_admin: {username}'))
                else:
                    self.stdout.write(f'Already a super_admin: {username}')
        except AdminError as e:
            raise CommandError(e.message)

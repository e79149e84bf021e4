"""
Seed (or re-seed) an administrator account.

    python manage.py create_admin admin@school.edu --password secret

The password may also come from the ADMIN_PASSWORD environment variable.
Running the command for an existing account promotes it to admin and
re-approves it.
"""

from decouple import config  # pyright: ignore[reportMissingImports]
from django.core.management.base import BaseCommand, CommandError  # pyright: ignore[reportMissingModuleSource]

from elections import accounts


class Command(BaseCommand):
    help = 'Create an administrator account, or promote an existing one.'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('--password', default=None)
        parser.add_argument('--display-name', default='Admin User')

    def handle(self, *args, **options):
        email = options['email']
        password = options['password'] or config('ADMIN_PASSWORD', default=None)

        if password is None and accounts.find_by_email(email) is None:
            raise CommandError('A password is required to create a new admin account.')

        account, created = accounts.create_admin(
            email, password=password, display_name=options['display_name']
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'Admin user created: {account.email}'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Admin permissions updated: {account.email}'))

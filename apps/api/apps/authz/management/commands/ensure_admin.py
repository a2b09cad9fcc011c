"""
Create the initial admin account if it does not exist (container startup).
"""
import os

from django.core.management.base import BaseCommand

from apps.authz.models import RoleChoices, User


class Command(BaseCommand):
    help = 'Create an admin-role superuser from DJANGO_SUPERUSER_EMAIL / DJANGO_SUPERUSER_PASSWORD'

    def handle(self, *args, **options):
        email = os.environ.get('DJANGO_SUPERUSER_EMAIL', 'admin@sehatnama.local')
        password = os.environ.get('DJANGO_SUPERUSER_PASSWORD', 'admin123dev')

        if User.objects.filter(email=email).exists():
            self.stdout.write(self.style.WARNING(f'Admin "{email}" already exists'))
            return

        User.objects.create_superuser(
            email=email,
            password=password,
            first_name='Clinic',
            last_name='Admin',
            role=RoleChoices.ADMIN,
        )
        self.stdout.write(self.style.SUCCESS(f'Admin "{email}" created'))

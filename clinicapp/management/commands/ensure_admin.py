import os

from django.core.management.base import BaseCommand, CommandError

from clinicapp.models import Account, STATUS_APPROVED, normalize_email


class Command(BaseCommand):
    help = "Ensure an admin account exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.getenv('ADMIN_EMAIL'))
        parser.add_argument('--password', default=os.getenv('ADMIN_PASSWORD'))
        parser.add_argument('--name', default=os.getenv('ADMIN_NAME', 'Administrator'))

    def handle(self, *args, **opts):
        email = normalize_email(opts['email'])
        password = opts['password']
        if not email or not password:
            raise CommandError('--email and --password (or ADMIN_EMAIL/ADMIN_PASSWORD) are required')

        account = Account.objects.filter(email=email).first()
        if account is None:
            Account.objects.create_superuser(email=email, password=password, name=opts['name'])
            self.stdout.write(self.style.SUCCESS(f"created admin {email}"))
            return

        # bring an existing account back to a working admin
        account.set_password(password)
        account.role = Account.ROLE_ADMIN
        account.account_status = STATUS_APPROVED
        account.is_active = True
        account.is_staff = True
        account.is_superuser = True
        account.save()
        self.stdout.write(self.style.SUCCESS(f"refreshed admin {email}"))

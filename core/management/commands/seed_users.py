from django.core.management.base import BaseCommand

from core.models import User

SEED_USERS = [
    {'email': 'admin@oneevent.com', 'password': 'admin123', 'name': 'Admin User', 'role': User.Role.ADMIN},
    {'email': 'guest@oneevent.com', 'password': 'guest123', 'name': 'Guest User', 'role': User.Role.GUEST},
]


class Command(BaseCommand):
    help = "Creates the default admin and guest accounts if they are missing."

    def handle(self, *args, **options):
        for data in SEED_USERS:
            data = dict(data)
            email = data.pop('email')
            if User.objects.filter(email=email).exists():
                self.stdout.write(f"{email} already exists, skipping")
                continue
            password = data.pop('password')
            is_admin = data['role'] == User.Role.ADMIN
            User.objects.create_user(
                email, password, is_email_verified=True, is_staff=is_admin, **data
            )
            self.stdout.write(self.style.SUCCESS(f"Created {data['role']} user {email}"))

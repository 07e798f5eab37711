from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from accounts.models import Role

User = get_user_model()

DEFAULT_USERS = [
    {'name': 'Administrator', 'email': 'admin@example.com', 'password': 'admin123', 'role': Role.ADMIN},
    {'name': 'Member User', 'email': 'member@example.com', 'password': 'member123', 'role': Role.MEMBER},
]


class Command(BaseCommand):
    help = "Creates the default admin and member accounts when they are missing"

    def handle(self, *args, **options):
        for data in DEFAULT_USERS:
            if User.objects.filter(email=data['email']).exists():
                self.stdout.write(f"{data['email']} already exists, skipping")
                continue
            User.objects.create_user(**data)
            self.stdout.write(self.style.SUCCESS(f"Created {data['role']} {data['email']}"))

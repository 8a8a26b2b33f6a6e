# clinic/management/commands/ensure_demo_users.py
from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import Patient, Staff, User

DEMO_PASSWORD = "123456"

DEMO_SET = [
    ("admin@gmail.com", "Demo Admin", "admin"),
    ("doctor@gmail.com", "Demo Doctor", "doctor"),
    ("staff@gmail.com", "Demo Staff", "staff"),
    ("patient@gmail.com", "Demo Patient", "patient"),
]


class Command(BaseCommand):
    help = "Ensure demo accounts exist with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default=DEMO_PASSWORD)

    def handle(self, *args, **opts):
        password = opts["password"]
        for email, name, role in DEMO_SET:
            with transaction.atomic():
                user = User.objects.filter(email=email).first()
                if user is None:
                    user = User.objects.create_user(email=email, password=password, name=name, role=role)
                else:
                    # reset password, role and active flag
                    user.set_password(password)
                    user.role = role
                    user.is_active = True
                    user.save()
                self._link_record(user)
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))

    def _link_record(self, user):
        if user.role == "patient":
            Patient.objects.get_or_create(user=user, defaults={"name": user.name, "email": user.email})
        elif user.role == "doctor":
            Staff.objects.get_or_create(
                email=user.email,
                defaults={"user": user, "name": user.name, "role": "doctor",
                          "department": "General Medicine", "specialization": "General Physician"},
            )
        elif user.role == "staff":
            Staff.objects.get_or_create(
                email=user.email,
                defaults={"user": user, "name": user.name, "role": "receptionist", "department": "Front Desk"},
            )

import logging
from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.authentication import issue_token
from clinic.models import Patient, Staff, User

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _test_settings(settings):
    # throttle counters live in the cache
    cache.clear()
    settings.NOTIFICATIONS_ASYNC = False
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.SMS_API_URL = ""
    yield
    cache.clear()


@pytest.fixture
def clinic_logs(caplog, monkeypatch):
    """caplog for the ``clinic`` logger, which does not propagate to root."""
    monkeypatch.setattr(logging.getLogger("clinic"), "propagate", True)
    caplog.set_level(logging.INFO, logger="clinic")
    return caplog


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    def _make(email, role="patient", name=None, password=PASSWORD, **extra):
        return User.objects.create_user(
            email=email, password=password, name=name or email.split("@")[0].title(), role=role, **extra
        )
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@gmail.com", role="admin", name="Site Admin")


@pytest.fixture
def doctor_user(make_user):
    return make_user("house@example.com", role="doctor", name="Greg House", specialization="Diagnostics")


@pytest.fixture
def staff_user(make_user):
    return make_user("desk@example.com", role="staff", name="Front Desk")


@pytest.fixture
def patient_user(make_user):
    return make_user("jane@example.com", role="patient", name="Jane Doe", phone="9876543210")


@pytest.fixture
def client_for(db):
    """Return an APIClient sending a bearer token for ``user``."""
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")
        return client
    return _client


@pytest.fixture
def doctor(doctor_user):
    return Staff.objects.create(
        user=doctor_user,
        name=doctor_user.name,
        email=doctor_user.email,
        phone="9000000001",
        role="doctor",
        department="Diagnostics",
        specialization="Diagnostics",
        license_number="LIC-100",
    )


@pytest.fixture
def patient(db):
    return Patient.objects.create(
        name="John Smith", email="john@example.com", phone="9111111111", gender="male", age=40
    )


@pytest.fixture
def tomorrow():
    return timezone.localdate() + timedelta(days=1)

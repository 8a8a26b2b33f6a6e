import time

import pytest
from django.core import mail
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from clinic.models import AuditEvent, Patient, Staff, User

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def register(client, **overrides):
    payload = {
        "name": "Mary Major",
        "email": "mary@example.com",
        "password": "hunter22",
        "phone": "9123456780",
    }
    payload.update(overrides)
    return client.post(reverse("auth-register"), payload, format="json")


def old_token(user, seconds=120):
    token = AccessToken.for_user(user)
    token["iat"] = int(time.time()) - seconds
    return str(token)


def test_register_creates_patient_record(api_client):
    r = register(api_client, email="Mary@Example.com")
    assert r.status_code == 201
    body = r.data
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["user"]["email"] == "mary@example.com"
    assert body["data"]["user"]["role"] == "patient"
    user = User.objects.get(email="mary@example.com")
    assert user.last_login is not None
    assert Patient.objects.filter(user=user, name="Mary Major").exists()


def test_register_doctor_requires_specialization(api_client):
    r = register(api_client, role="doctor")
    assert r.status_code == 400
    assert r.data["error"] == "validation_error"
    assert "specialization" in r.data["errors"]

    r = register(api_client, role="doctor", specialization="Cardiology", licenseNumber="MED-1")
    assert r.status_code == 201
    staff = Staff.objects.get(email="mary@example.com")
    assert staff.role == "doctor"
    assert staff.license_number == "MED-1"


def test_register_staff_defaults_to_receptionist(api_client):
    r = register(api_client, role="staff")
    assert r.status_code == 201
    assert Staff.objects.get(email="mary@example.com").role == "receptionist"


def test_register_doctor_adopts_existing_staff_record(api_client):
    existing = Staff.objects.create(
        name="Mary Major", email="mary@example.com", role="doctor", department="Cardiology",
        specialization="Cardiology", license_number="LIC-9",
    )
    r = register(api_client, role="doctor", specialization="Cardiology", licenseNumber="LIC-9")
    assert r.status_code == 201
    existing.refresh_from_db()
    assert existing.user == User.objects.get(email="mary@example.com")
    assert existing.license_number == "LIC-9"
    assert Staff.objects.count() == 1


def test_register_doctor_with_taken_license(api_client):
    Staff.objects.create(
        name="Other Doc", email="other@example.com", role="doctor", department="Cardiology",
        specialization="Cardiology", license_number="LIC-9",
    )
    r = register(api_client, role="doctor", specialization="Cardiology", licenseNumber="LIC-9")
    assert r.status_code == 400
    assert r.data["error"] == "duplicate_record"
    assert not User.objects.filter(email="mary@example.com").exists()


def test_register_duplicate_email(api_client):
    assert register(api_client).status_code == 201
    r = register(api_client, name="Someone Else")
    assert r.status_code == 400
    assert r.data["success"] is False
    assert r.data["error"] == "duplicate_email"
    assert User.objects.filter(email="mary@example.com").count() == 1


def test_register_rejects_short_phone(api_client):
    r = register(api_client, phone="12345")
    assert r.status_code == 400
    assert r.data["message"] == "Phone number must be 10 digits"


def test_register_sends_welcome_email(api_client, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        assert register(api_client).status_code == 201
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["mary@example.com"]


def test_login_success_records_last_login(api_client, patient_user):
    r = api_client.post(reverse("auth-login"), {"email": "JANE@example.com", "password": PASSWORD}, format="json")
    assert r.status_code == 200
    assert r.data["data"]["user"]["id"] == patient_user.id
    patient_user.refresh_from_db()
    assert patient_user.last_login is not None
    assert AuditEvent.objects.filter(action="login", user=patient_user).exists()


def test_login_wrong_password_leaves_last_login(api_client, patient_user):
    r = api_client.post(reverse("auth-login"), {"email": patient_user.email, "password": "nope"}, format="json")
    assert r.status_code == 401
    assert r.data["error"] == "invalid_credentials"
    patient_user.refresh_from_db()
    assert patient_user.last_login is None


def test_login_unknown_email_matches_wrong_password(api_client):
    r = api_client.post(reverse("auth-login"), {"email": "ghost@example.com", "password": "x"}, format="json")
    assert r.status_code == 401
    assert r.data["message"] == "Invalid email or password."


def test_login_disabled_account(api_client, patient_user):
    patient_user.is_active = False
    patient_user.save()
    r = api_client.post(reverse("auth-login"), {"email": patient_user.email, "password": PASSWORD}, format="json")
    assert r.status_code == 401
    assert r.data["error"] == "account_disabled"


def test_login_is_throttled(api_client, patient_user):
    url = reverse("auth-login")
    codes = [
        api_client.post(url, {"email": patient_user.email, "password": "bad"}, format="json").status_code
        for _ in range(11)
    ]
    assert codes[:10] == [401] * 10
    assert codes[10] == 429


def test_me_requires_token(api_client):
    r = api_client.get(reverse("auth-me"))
    assert r.status_code == 401
    assert r.data == {"success": False, "message": r.data["message"], "error": "missing_token"}


def test_me_rejects_garbage_token(api_client):
    api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
    r = api_client.get(reverse("auth-me"))
    assert r.status_code == 401
    assert r.data["error"] == "invalid_token"


def test_me_accepts_raw_token(api_client, patient_user):
    api_client.credentials(HTTP_AUTHORIZATION=old_token(patient_user, seconds=0))
    r = api_client.get(reverse("auth-me"))
    assert r.status_code == 200
    assert r.data["data"]["user"]["email"] == patient_user.email


def test_me_includes_linked_records(client_for, doctor):
    r = client_for(doctor.user).get(reverse("auth-me"))
    assert r.status_code == 200
    assert r.data["data"]["staff"]["id"] == doctor.id
    assert "patient" not in r.data["data"]


def test_token_for_deactivated_user(client_for, patient_user):
    client = client_for(patient_user)
    patient_user.is_active = False
    patient_user.save()
    r = client.get(reverse("auth-me"))
    assert r.status_code == 401
    assert r.data["error"] == "account_disabled"


def test_token_issued_before_password_change_is_stale(patient_user):
    token = old_token(patient_user)
    patient_user.set_password("brand-new-pass")
    patient_user.save()

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    r = client.get(reverse("auth-me"))
    assert r.status_code == 401
    assert r.data["error"] == "stale_token"


def test_new_user_has_no_password_change_stamp(patient_user):
    assert patient_user.password_changed_at is None
    assert patient_user.changed_password_after(0) is False


def test_change_password_returns_fresh_token(patient_user):
    stale = old_token(patient_user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {stale}")
    r = client.put(
        reverse("auth-change-password"),
        {"currentPassword": PASSWORD, "newPassword": "another-pass"},
        format="json",
    )
    assert r.status_code == 200
    fresh = r.data["data"]["token"]

    assert client.get(reverse("auth-me")).data["error"] == "stale_token"
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {fresh}")
    assert client.get(reverse("auth-me")).status_code == 200
    patient_user.refresh_from_db()
    assert patient_user.check_password("another-pass")


def test_change_password_wrong_current(client_for, patient_user):
    r = client_for(patient_user).put(
        reverse("auth-change-password"),
        {"currentPassword": "wrong", "newPassword": "another-pass"},
        format="json",
    )
    assert r.status_code == 401
    assert r.data["error"] == "invalid_credentials"


def test_update_profile_mirrors_to_patient(client_for, make_user):
    user = make_user("pat@example.com")
    Patient.objects.create(user=user, name=user.name, email=user.email)
    r = client_for(user).put(
        reverse("auth-update-profile"), {"name": "Pat Renamed", "phone": "9000011111"}, format="json"
    )
    assert r.status_code == 200
    assert r.data["data"]["patient"]["name"] == "Pat Renamed"
    assert Patient.objects.get(user=user).phone == "9000011111"


def test_forgot_and_reset_password(api_client, patient_user, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        r = api_client.post(reverse("auth-forgot-password"), {"email": patient_user.email}, format="json")
    assert r.status_code == 200
    assert len(mail.outbox) == 1
    assert "/reset-password/" in mail.outbox[0].body

    patient_user.refresh_from_db()
    raw = patient_user.create_password_reset_token()
    patient_user.save()
    r = api_client.post(reverse("auth-reset-password"), {"token": raw, "password": "reset-pass"}, format="json")
    assert r.status_code == 200
    assert r.data["data"]["token"]
    patient_user.refresh_from_db()
    assert patient_user.check_password("reset-pass")
    assert patient_user.password_reset_token == ""

    r = api_client.post(reverse("auth-reset-password"), {"token": raw, "password": "again-pass"}, format="json")
    assert r.status_code == 400
    assert r.data["error"] == "invalid_token"


def test_forgot_password_unknown_email_is_silent(api_client):
    r = api_client.post(reverse("auth-forgot-password"), {"email": "ghost@example.com"}, format="json")
    assert r.status_code == 200
    assert len(mail.outbox) == 0


def test_admin_login_checks_domain(api_client, make_user):
    make_user("boss@hospital.org", role="admin")
    r = api_client.post(reverse("admin-login"), {"email": "boss@hospital.org", "password": PASSWORD}, format="json")
    assert r.status_code == 400


def test_admin_login_and_verify(api_client, admin_user, patient_user):
    r = api_client.post(reverse("admin-login"), {"email": admin_user.email, "password": PASSWORD}, format="json")
    assert r.status_code == 200
    token = r.data["data"]["token"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    assert api_client.get(reverse("admin-verify")).status_code == 200

    patient_user.email = "patient@gmail.com"
    patient_user.save()
    anon = APIClient()
    r = anon.post(reverse("admin-login"), {"email": "patient@gmail.com", "password": PASSWORD}, format="json")
    assert r.status_code == 401


def test_admin_login_disabled_admin(api_client, admin_user):
    admin_user.is_active = False
    admin_user.save()
    r = api_client.post(reverse("admin-login"), {"email": admin_user.email, "password": PASSWORD}, format="json")
    assert r.status_code == 403
    assert r.data["error"] == "forbidden"


def test_non_admin_cannot_verify(client_for, patient_user):
    r = client_for(patient_user).get(reverse("admin-verify"))
    assert r.status_code == 403
    assert r.data["error"] == "forbidden"

import pytest
import requests
from django.core import mail

from clinic.services import notifications

pytestmark = pytest.mark.django_db


class FakeResponse:
    def __init__(self, status=200):
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} from gateway")


def test_sms_without_gateway_only_logs(monkeypatch, clinic_logs):
    def fail(*args, **kwargs):
        raise AssertionError("gateway must not be called")

    monkeypatch.setattr(notifications.requests, "post", fail)
    notifications.send_sms("9000000000", "hello")
    assert "SMS to 9000000000" in clinic_logs.text


def test_sms_posts_to_gateway(settings, monkeypatch):
    settings.SMS_API_URL = "https://sms.example.com/send"
    settings.SMS_API_KEY = "k"
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers, timeout))
        return FakeResponse()

    monkeypatch.setattr(notifications.requests, "post", fake_post)
    notifications.send_sms("9000000000", "hello")
    assert calls == [(
        "https://sms.example.com/send",
        {"to": "9000000000", "message": "hello"},
        {"Authorization": "Bearer k"},
        settings.SMS_TIMEOUT,
    )]


def test_gateway_error_is_logged_not_raised(settings, monkeypatch, clinic_logs, django_capture_on_commit_callbacks):
    settings.SMS_API_URL = "https://sms.example.com/send"
    monkeypatch.setattr(notifications.requests, "post", lambda *a, **kw: FakeResponse(502))
    with django_capture_on_commit_callbacks(execute=True):
        notifications.dispatch(notifications.send_sms, "9000000000", "hello")
    assert "Notification send_sms failed" in clinic_logs.text


def test_dispatch_waits_for_commit(patient_user, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks() as callbacks:
        notifications.notify_welcome(patient_user)
        assert len(mail.outbox) == 0
    assert len(callbacks) == 1
    callbacks[0]()
    assert mail.outbox[0].subject == "Welcome to MediCare Hospital"

"""
Best-effort email and SMS notifications.

Every notification is queued with :func:`dispatch`, which runs the job
after the surrounding transaction commits.  When ``NOTIFICATIONS_ASYNC``
is on the job runs on a daemon thread so the response never waits on
SMTP or the SMS gateway.  Failures are logged and never reach the caller.
"""
from __future__ import annotations

import logging
import threading

import requests
from django.conf import settings
from django.core.mail import send_mail
from django.db import connections, transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from ..models import Appointment, HospitalSettings, LabTest, User

logger = logging.getLogger(__name__)


def _deliver(job, *args) -> None:
    try:
        job(*args)
    except Exception:
        logger.exception("Notification %s failed", job.__name__)


def _deliver_in_thread(job, *args) -> None:
    try:
        _deliver(job, *args)
    finally:
        connections.close_all()


def dispatch(job, *args) -> None:
    """Run ``job(*args)`` once the current transaction commits."""
    def run():
        if settings.NOTIFICATIONS_ASYNC:
            threading.Thread(target=_deliver_in_thread, args=(job, *args), daemon=True).start()
        else:
            _deliver(job, *args)

    transaction.on_commit(run)


# ---------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------
def send_email(to: str, subject: str, template: str, context: dict) -> None:
    html = render_to_string(f"clinic/email/{template}.html", {
        **context,
        "client_url": settings.CLIENT_URL,
        "year": timezone.localdate().year,
    })
    send_mail(subject, strip_tags(html), settings.DEFAULT_FROM_EMAIL, [to], html_message=html)
    logger.info("Email '%s' sent to %s", subject, to)


def send_sms(phone: str, message: str) -> None:
    if not settings.SMS_API_URL:
        logger.info("SMS to %s: %s", phone, message)
        return
    resp = requests.post(
        settings.SMS_API_URL,
        json={"to": phone, "message": message},
        headers={"Authorization": f"Bearer {settings.SMS_API_KEY}"},
        timeout=settings.SMS_TIMEOUT,
    )
    resp.raise_for_status()
    logger.info("SMS sent to %s", phone)


# ---------------------------------------------------------------------
# Jobs (run after commit; reload rows by id)
# ---------------------------------------------------------------------
def send_welcome_email(user_id: int) -> None:
    user = User.objects.get(pk=user_id)
    send_email(user.email, "Welcome to MediCare Hospital", "welcome", {"user": user})


def send_appointment_confirmation(appointment_id: int) -> None:
    appointment = Appointment.objects.select_related("patient", "doctor").get(pk=appointment_id)
    send_email(
        appointment.patient.email,
        "Appointment Confirmation - MediCare Hospital",
        "appointment_confirmation",
        {
            "appointment": appointment,
            "patient": appointment.patient,
            "doctor": appointment.doctor,
            "date": timezone.localtime(appointment.appointment_date).date(),
        },
    )


def send_test_results(test_id: int) -> None:
    test = LabTest.objects.select_related("patient").get(pk=test_id)
    send_email(
        test.patient.email,
        "Test Results Available - MediCare Hospital",
        "test_results",
        {"test": test, "patient": test.patient},
    )


def send_password_reset(user_id: int, raw_token: str) -> None:
    user = User.objects.get(pk=user_id)
    send_email(
        user.email,
        "Password Reset - MediCare Hospital",
        "password_reset",
        {"user": user, "reset_url": f"{settings.CLIENT_URL}/reset-password/{raw_token}"},
    )


# ---------------------------------------------------------------------
# Triggers used by the services
# ---------------------------------------------------------------------
def notify_welcome(user: User) -> None:
    if HospitalSettings.load().email_notifications:
        dispatch(send_welcome_email, user.pk)


def notify_appointment_booked(appointment: Appointment) -> None:
    prefs = HospitalSettings.load()
    patient = appointment.patient
    if prefs.email_notifications and patient.email:
        dispatch(send_appointment_confirmation, appointment.pk)
    if prefs.sms_notifications and patient.phone:
        when = timezone.localtime(appointment.appointment_date)
        dispatch(
            send_sms,
            patient.phone,
            f"Dear {patient.name}, your appointment on {when:%d/%m/%Y} at "
            f"{appointment.appointment_time} is booked. - {prefs.hospital_name}",
        )


def notify_test_results(test: LabTest) -> None:
    prefs = HospitalSettings.load()
    patient = test.patient
    if prefs.email_notifications and patient.email:
        dispatch(send_test_results, test.pk)
    if prefs.sms_notifications and patient.phone:
        dispatch(
            send_sms,
            patient.phone,
            f"Dear {patient.name}, your {test.test_name} results are ready. - {prefs.hospital_name}",
        )


def notify_password_reset(user: User, raw_token: str) -> None:
    # Sent regardless of the hospital notification switches.
    dispatch(send_password_reset, user.pk, raw_token)

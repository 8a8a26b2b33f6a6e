"""
Account lifecycle: registration, login, password change and reset.

Each successful sign-in returns ``(user, token)``; failures raise the
API errors from :mod:`clinic.exceptions`.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from ..authentication import issue_token
from ..exceptions import (
    AccountDisabled,
    BadRequest,
    DuplicateEmail,
    Forbidden,
    InvalidCredentials,
)
from ..models import Patient, Staff, User
from . import notifications
from .audit import log_action
from .directory import check_license

logger = logging.getLogger(__name__)


def _create_role_profile(user: User, fields: dict) -> None:
    if user.role == 'patient':
        Patient.objects.create(
            user=user,
            name=user.name,
            email=user.email,
            phone=user.phone,
            gender=fields.get('gender') or 'other',
            age=fields.get('age'),
            address=fields.get('address', ''),
        )
        return

    staff_role = (fields.get('staffRole') or 'receptionist') if user.role == 'staff' else user.role
    license_number = (fields.get('licenseNumber') or '').strip() or None
    # Adopt a directory row created for this email before the account existed.
    staff = Staff.objects.filter(email=user.email, user__isnull=True).first()
    if staff is None:
        staff = Staff(email=user.email)
    check_license(license_number, exclude_id=staff.pk)
    staff.user = user
    staff.name = user.name
    staff.phone = user.phone
    staff.role = staff_role
    staff.department = fields.get('department') or 'General'
    staff.specialization = fields.get('specialization', '')
    staff.qualification = fields.get('qualification', '')
    staff.experience = fields.get('experience') or 0
    staff.license_number = license_number
    staff.save()


def register(*, name: str, email: str, password: str, phone: str, role: str = 'patient',
             ip: Optional[str] = None, **fields) -> tuple[User, str]:
    """Create an account plus its Patient or Staff record and sign it in."""
    if User.objects.filter(email=email).exists():
        raise DuplicateEmail()
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                name=name,
                phone=phone,
                role=role,
                department=fields.get('department', ''),
                specialization=fields.get('specialization', ''),
                last_login=timezone.now(),
            )
            _create_role_profile(user, fields)
    except IntegrityError:
        raise DuplicateEmail()

    log_action(user=user, action='register', object_type='user', object_id=user.id,
               detail={'role': role, 'ip': ip})
    logger.info("Registered %s account %s", role, user.email)
    notifications.notify_welcome(user)
    return user, issue_token(user)


def _check_credentials(user: Optional[User], password: str) -> bool:
    if user is None:
        # Run the hasher once for unknown emails too.
        User().set_password(password)
        return False
    return user.check_password(password)


def _record_login(user: User, action: str, ip: Optional[str]) -> str:
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    log_action(user=user, action=action, object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    return issue_token(user)


def login(*, email: str, password: str, ip: Optional[str] = None) -> tuple[User, str]:
    user = User.objects.filter(email=email).first()
    if not _check_credentials(user, password):
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'email': email, 'ip': ip})
        logger.warning("Failed login for %s from %s", email, ip)
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDisabled()
    return user, _record_login(user, 'login', ip)


def admin_login(*, email: str, password: str, ip: Optional[str] = None) -> tuple[User, str]:
    """Admin console sign-in: admin role and the configured email domain only."""
    domain = settings.ADMIN_EMAIL_DOMAIN
    if not email.endswith(domain):
        raise BadRequest(f'Admin login requires an {domain} email address.')
    user = User.objects.filter(email=email, role='admin').first()
    if not _check_credentials(user, password):
        log_action(user=None, action='admin_login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'email': email, 'ip': ip})
        logger.warning("Failed admin login for %s from %s", email, ip)
        raise InvalidCredentials('Invalid admin credentials.')
    if not user.is_active:
        raise Forbidden('Admin account is deactivated.')
    return user, _record_login(user, 'admin_login', ip)


def change_password(user: User, *, current_password: str, new_password: str) -> str:
    """Replace the password; every token issued earlier becomes stale."""
    if not user.check_password(current_password):
        raise InvalidCredentials('Current password is incorrect.')
    user.set_password(new_password)
    user.save(update_fields=['password', 'password_changed_at', 'updated_at'])
    log_action(user=user, action='change_password', object_type='user', object_id=user.id)
    return issue_token(user)


def forgot_password(email: str) -> None:
    user = User.objects.filter(email=email, is_active=True).first()
    if user is None:
        logger.info("Password reset requested for unknown email %s", email)
        return
    raw = user.create_password_reset_token()
    user.save(update_fields=['password_reset_token', 'password_reset_expires'])
    log_action(user=user, action='forgot_password', object_type='user', object_id=user.id)
    notifications.notify_password_reset(user, raw)


def reset_password(*, token: str, password: str) -> tuple[User, str]:
    digest = hashlib.sha256(token.encode()).hexdigest()
    user = User.objects.filter(
        password_reset_token=digest, password_reset_expires__gt=timezone.now()
    ).first()
    if user is None:
        raise BadRequest('Token is invalid or has expired.', code='invalid_token')
    user.set_password(password)
    user.password_reset_token = ''
    user.password_reset_expires = None
    user.save()
    log_action(user=user, action='reset_password', object_type='user', object_id=user.id)
    return user, issue_token(user)


def update_account(user: User, data: dict) -> User:
    """Update the account and mirror shared fields to its Patient/Staff record."""
    with transaction.atomic():
        for field in ('name', 'phone', 'department', 'specialization'):
            if field in data:
                setattr(user, field, data[field])
        user.save()

        patient = Patient.objects.filter(user=user).first()
        if patient is not None:
            for field in ('name', 'phone', 'address', 'age', 'gender'):
                if field in data:
                    setattr(patient, field, data[field])
            patient.save()

        staff = Staff.objects.filter(user=user).first()
        if staff is not None:
            for field in ('name', 'phone', 'department', 'specialization'):
                if field in data:
                    setattr(staff, field, data[field])
            staff.save()
    return user

"""
Patient and staff directory writes.

Email and phone act as dedup keys on creation; the license number must be
unique across staff.  The checks run before the insert and unique
constraints back the email and license columns of ``Staff``.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import Q

from ..exceptions import DuplicateRecord
from ..models import Patient, Staff

logger = logging.getLogger(__name__)


def _contact_filter(email: str, phone: str) -> Q:
    q = Q()
    if email:
        q |= Q(email=email)
    if phone:
        q |= Q(phone=phone)
    return q


def create_patient(data: dict) -> Patient:
    dup = _contact_filter(data.get('email', ''), data.get('phone', ''))
    if dup and Patient.objects.filter(dup).exists():
        raise DuplicateRecord('Patient with this email or phone already exists.')
    patient = Patient.objects.create(**data)
    logger.info("Patient %s created", patient.pk)
    return patient


def check_license(license_number, exclude_id=None) -> None:
    if not license_number:
        return
    qs = Staff.objects.filter(license_number=license_number)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise DuplicateRecord('License number already exists.')


def create_staff(data: dict) -> Staff:
    dup = _contact_filter(data.get('email', ''), data.get('phone', ''))
    if dup and Staff.objects.filter(dup).exists():
        raise DuplicateRecord('Staff member with this email or phone already exists.')
    check_license(data.get('license_number'))
    try:
        with transaction.atomic():
            staff = Staff.objects.create(**data)
    except IntegrityError:
        raise DuplicateRecord()
    logger.info("Staff %s (%s) created", staff.pk, staff.role)
    return staff


def update_staff(staff: Staff, data: dict) -> Staff:
    if data.get('email') and Staff.objects.filter(email=data['email']).exclude(pk=staff.pk).exists():
        raise DuplicateRecord('Staff member with this email already exists.')
    check_license(data.get('license_number'), exclude_id=staff.pk)
    for field, value in data.items():
        setattr(staff, field, value)
    try:
        with transaction.atomic():
            staff.save()
    except IntegrityError:
        raise DuplicateRecord()
    return staff

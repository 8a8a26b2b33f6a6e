"""
Appointment scheduling.

A slot is the (doctor, local calendar day, time) triple.  A new booking
is refused while another appointment holds the slot in an active status
(scheduled or confirmed).  The check and the insert run in one
transaction with the doctor's row locked, so concurrent bookings for the
same doctor are serialized on databases that support row locks.
Updates do not re-check the slot.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from ..exceptions import DoctorNotFound, InvalidTransition, PatientNotFound, SlotConflict
from ..models import Appointment, Patient, Staff, User
from ..utils import local_day_bounds, today_bounds
from . import notifications
from .audit import log_action

logger = logging.getLogger(__name__)


def _can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    transitions = {
        'scheduled': ['confirmed', 'cancelled'],
        'confirmed': ['completed', 'cancelled'],
        'completed': [],
        'cancelled': [],
    }
    return current == new or new in transitions.get(current, [])


def _get_patient(patient_id) -> Patient:
    patient = Patient.objects.filter(pk=patient_id).first()
    if patient is None:
        raise PatientNotFound()
    return patient


def _get_doctor(doctor_id, *, lock: bool = False) -> Staff:
    qs = Staff.objects.filter(pk=doctor_id, role__in=Staff.CLINICAL_ROLES)
    if lock:
        qs = qs.select_for_update()
    doctor = qs.first()
    if doctor is None:
        raise DoctorNotFound()
    return doctor


def find_conflict(doctor: Staff, when: datetime, time: str) -> Optional[Appointment]:
    """Return the active appointment already holding the slot, if any."""
    start, end = local_day_bounds(timezone.localtime(when).date())
    return Appointment.objects.filter(
        doctor=doctor,
        appointment_date__gte=start,
        appointment_date__lt=end,
        appointment_time=time,
        status__in=Appointment.ACTIVE_STATUSES,
    ).first()


def create_appointment(*, patient_id, appointment_date: datetime, appointment_time: str, reason: str,
                       doctor_id=None, type: str = 'consultation', duration: int = 30, notes: str = '',
                       requested_by: Optional[User] = None) -> Appointment:
    with transaction.atomic():
        patient = _get_patient(patient_id)
        doctor = None
        if doctor_id is not None:
            doctor = _get_doctor(doctor_id, lock=True)
            if find_conflict(doctor, appointment_date, appointment_time) is not None:
                logger.info("Slot conflict for doctor %s on %s at %s",
                            doctor.pk, appointment_date.date(), appointment_time)
                raise SlotConflict()
        appointment = Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            reason=reason,
            type=type,
            duration=duration,
            notes=notes,
            status='scheduled',
            user=requested_by,
            created_by=requested_by,
        )
        log_action(user=requested_by, action='appointment_create', object_type='appointment',
                   object_id=appointment.id, detail={'doctor': doctor_id, 'time': appointment_time})
        notifications.notify_appointment_booked(appointment)
    logger.info("Appointment %s booked for patient %s", appointment.pk, patient.pk)
    return appointment


def book_public_appointment(*, name: str, email: str, phone: str, gender: str,
                            appointment_date: datetime, appointment_time: str, reason: str,
                            age: Optional[int] = None, date_of_birth: Optional[date] = None,
                            address: str = '', blood_group: str = '', type: str = 'consultation',
                            notes: str = '') -> Appointment:
    """Book an unassigned appointment from the public form.

    The patient is matched on email or phone and refreshed with the
    submitted details, or created.  Two simultaneous submissions for a new
    patient can still create two patient rows.
    """
    demographics = {
        'name': name,
        'email': email,
        'phone': phone,
        'gender': gender,
        'age': age,
        'date_of_birth': date_of_birth,
        'address': address or 'Not provided',
        'blood_group': blood_group,
    }
    with transaction.atomic():
        patient = Patient.objects.filter(Q(email=email) | Q(phone=phone)).order_by('created_at', 'id').first()
        if patient is None:
            patient = Patient.objects.create(**demographics)
        else:
            for field, value in demographics.items():
                setattr(patient, field, value)
            patient.save()
        appointment = Appointment.objects.create(
            patient=patient,
            doctor=None,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            reason=reason,
            type=type,
            notes=notes,
            status='scheduled',
        )
        log_action(user=None, action='appointment_book', object_type='appointment',
                   object_id=appointment.id, detail={'patient': patient.id})
        notifications.notify_appointment_booked(appointment)
    logger.info("Public booking %s for patient %s", appointment.pk, patient.pk)
    return appointment


def get_appointment(appointment_id) -> Appointment:
    appointment = appointment_queryset().filter(pk=appointment_id).first()
    if appointment is None:
        raise NotFound('Appointment not found.')
    return appointment


def update_appointment(appointment_id, changes: dict) -> Appointment:
    """Apply ``changes`` (model field names); status must follow the lifecycle."""
    with transaction.atomic():
        appointment = Appointment.objects.select_for_update().filter(pk=appointment_id).first()
        if appointment is None:
            raise NotFound('Appointment not found.')
        new_status = changes.get('status')
        if new_status and not _can_transition(appointment.status, new_status):
            raise InvalidTransition(f'Cannot change status from {appointment.status} to {new_status}.')
        if changes.get('doctor_id') is not None:
            _get_doctor(changes['doctor_id'])
        for field, value in changes.items():
            setattr(appointment, field, value)
        appointment.save()
    return get_appointment(appointment.pk)


def delete_appointment(appointment_id) -> None:
    deleted, _ = Appointment.objects.filter(pk=appointment_id).delete()
    if not deleted:
        raise NotFound('Appointment not found.')


def appointment_queryset():
    return Appointment.objects.select_related('patient', 'doctor')


def filter_appointments(*, status: Optional[str] = None, day: Optional[date] = None,
                        doctor_id=None, patient_id=None):
    """AND-composed filters, newest appointment date first."""
    qs = appointment_queryset()
    if status:
        qs = qs.filter(status=status)
    if day is not None:
        start, end = local_day_bounds(day)
        qs = qs.filter(appointment_date__gte=start, appointment_date__lt=end)
    if doctor_id:
        qs = qs.filter(doctor_id=doctor_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    return qs.order_by('-appointment_date', '-created_at', '-id')


def todays_appointments():
    start, end = today_bounds()
    return appointment_queryset().filter(
        appointment_date__gte=start, appointment_date__lt=end
    ).order_by('appointment_time', 'id')


def doctor_appointments(doctor_id, *, day: Optional[date] = None, status: Optional[str] = None):
    _get_doctor(doctor_id)
    qs = appointment_queryset().filter(doctor_id=doctor_id)
    if day is not None:
        start, end = local_day_bounds(day)
        qs = qs.filter(appointment_date__gte=start, appointment_date__lt=end)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('appointment_date', 'appointment_time', 'id')


def patient_appointments(patient_id):
    _get_patient(patient_id)
    return filter_appointments(patient_id=patient_id)

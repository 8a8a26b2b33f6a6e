"""
Lab test workflow.

``LabTest.save`` stamps ``report_date`` the first time a test is saved as
completed.  A completed test with results triggers the results-ready
notification; attaching results through :func:`update_test_results`
always does.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from rest_framework.exceptions import NotFound

from ..exceptions import PatientNotFound
from ..models import LabTest, Patient, Staff
from ..utils import today_bounds
from . import notifications

logger = logging.getLogger(__name__)


def _get_staff(staff_id) -> Optional[Staff]:
    if staff_id is None:
        return None
    staff = Staff.objects.filter(pk=staff_id).first()
    if staff is None:
        raise NotFound('Technician not found.')
    return staff


def test_queryset():
    return LabTest.objects.select_related('patient', 'technician')


def get_test(test_id) -> LabTest:
    test = test_queryset().filter(pk=test_id).first()
    if test is None:
        raise NotFound('Test not found.')
    return test


def create_test(*, patient_id, test_name: str, test_type: str, scheduled_date, technician_id=None,
                **fields) -> LabTest:
    patient = Patient.objects.filter(pk=patient_id).first()
    if patient is None:
        raise PatientNotFound()
    test = LabTest.objects.create(
        patient=patient,
        technician=_get_staff(technician_id),
        test_name=test_name,
        test_type=test_type,
        scheduled_date=scheduled_date,
        status='scheduled',
        **fields,
    )
    logger.info("Test %s (%s) scheduled for patient %s", test.pk, test.test_name, patient.pk)
    return test


def update_test(test_id, changes: dict) -> LabTest:
    """Apply ``changes`` (model field names) and notify once results are in."""
    with transaction.atomic():
        test = LabTest.objects.select_for_update().filter(pk=test_id).first()
        if test is None:
            raise NotFound('Test not found.')
        if 'technician_id' in changes:
            test.technician = _get_staff(changes.pop('technician_id'))
        for field, value in changes.items():
            setattr(test, field, value)
        test.save()
        if test.status == 'completed' and test.results.strip():
            notifications.notify_test_results(test)
    logger.info("Test %s updated (status=%s)", test.pk, test.status)
    return get_test(test.pk)


def update_test_results(test_id, *, results: str, status: str = 'completed') -> LabTest:
    with transaction.atomic():
        test = LabTest.objects.select_for_update().filter(pk=test_id).first()
        if test is None:
            raise NotFound('Test not found.')
        test.results = results
        test.status = status
        if status == 'completed':
            test.report_ready = True
        test.save()
        notifications.notify_test_results(test)
    logger.info("Results recorded for test %s", test.pk)
    return get_test(test.pk)


def delete_test(test_id) -> None:
    deleted, _ = LabTest.objects.filter(pk=test_id).delete()
    if not deleted:
        raise NotFound('Test not found.')


def pending_tests():
    return test_queryset().filter(status__in=('scheduled', 'in-progress')).order_by('scheduled_date', 'id')


def todays_tests():
    start, end = today_bounds()
    return test_queryset().filter(scheduled_date__gte=start, scheduled_date__lt=end).order_by('scheduled_date', 'id')


def patient_tests(patient_id):
    if not Patient.objects.filter(pk=patient_id).exists():
        raise PatientNotFound()
    return test_queryset().filter(patient_id=patient_id).order_by('-scheduled_date', '-id')

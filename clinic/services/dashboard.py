"""
Read-only aggregates for the admin, staff and patient dashboards.

Everything is counted fresh per request.  "Today" is the local calendar
day of ``TIME_ZONE``.
"""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from ..models import Appointment, LabTest, Patient, Report, Staff
from ..utils import today_bounds

RECENT_LIMIT = 5


def _as_float(value) -> float:
    return float(value or Decimal('0'))


def admin_stats() -> dict:
    start, end = today_bounds()
    completed = LabTest.objects.filter(status='completed')
    return {
        'totalPatients': Patient.objects.count(),
        'totalStaff': Staff.objects.count(),
        'activeStaff': Staff.objects.filter(is_active=True).count(),
        'totalDoctors': Staff.objects.filter(role='doctor').count(),
        'totalAppointments': Appointment.objects.count(),
        'todayAppointments': Appointment.objects.filter(
            appointment_date__gte=start, appointment_date__lt=end
        ).count(),
        'todayPatients': Patient.objects.filter(created_at__gte=start, created_at__lt=end).count(),
        'todayStaff': Staff.objects.filter(created_at__gte=start, created_at__lt=end).count(),
        'totalTests': LabTest.objects.count(),
        'pendingTests': LabTest.objects.filter(status__in=LabTest.PENDING_STATUSES).count(),
        'completedTests': completed.count(),
        'totalReports': Report.objects.count(),
        'totalRevenue': _as_float(completed.aggregate(total=Sum('price'))['total']),
    }


def recent_appointments(limit: int = RECENT_LIMIT):
    return Appointment.objects.select_related('patient', 'doctor').order_by('-created_at', '-id')[:limit]


def recent_patients(limit: int = RECENT_LIMIT):
    return Patient.objects.order_by('-created_at', '-id')[:limit]


def _months_ago(months: int):
    start = timezone.localtime().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    for _ in range(months - 1):
        start = (start - timedelta(days=1)).replace(day=1)
    return start


def monthly_patients(months: int = 12) -> list[dict]:
    rows = (
        Patient.objects.filter(created_at__gte=_months_ago(months))
        .annotate(month=TruncMonth('created_at'))
        .values('month')
        .annotate(count=Count('id'))
        .order_by('month')
    )
    return [{'month': row['month'].strftime('%Y-%m'), 'count': row['count']} for row in rows]


def monthly_revenue(months: int = 12) -> list[dict]:
    rows = (
        LabTest.objects.filter(status='completed', report_date__gte=_months_ago(months))
        .annotate(month=TruncMonth('report_date'))
        .values('month')
        .annotate(revenue=Sum('price'), tests=Count('id'))
        .order_by('month')
    )
    return [
        {'month': row['month'].strftime('%Y-%m'), 'revenue': _as_float(row['revenue']), 'tests': row['tests']}
        for row in rows
    ]


def staff_stats(staff: Staff) -> dict:
    start, end = today_bounds()
    appointments = Appointment.objects.filter(doctor=staff)
    return {
        'todayAppointments': appointments.filter(appointment_date__gte=start, appointment_date__lt=end).count(),
        'totalAppointments': appointments.count(),
        'completedAppointments': appointments.filter(status='completed').count(),
        'totalPatients': appointments.values('patient_id').distinct().count(),
        'assignedTests': LabTest.objects.filter(technician=staff).count(),
    }


def staff_schedule(staff: Staff):
    start, end = today_bounds()
    base = Appointment.objects.select_related('patient', 'doctor').filter(doctor=staff)
    today = base.filter(appointment_date__gte=start, appointment_date__lt=end).order_by('appointment_time', 'id')
    upcoming = base.filter(
        appointment_date__gte=end, status__in=Appointment.ACTIVE_STATUSES
    ).order_by('appointment_date', 'appointment_time', 'id')[:10]
    return today, upcoming


def patient_overview(patient: Patient) -> dict:
    appointments = Appointment.objects.select_related('patient', 'doctor').filter(patient=patient)
    tests = LabTest.objects.select_related('patient', 'technician').filter(patient=patient)
    reports = Report.objects.filter(patient_name__iexact=patient.name)
    return {
        'appointments': appointments.order_by('-appointment_date', '-id')[:RECENT_LIMIT],
        'tests': tests.order_by('-scheduled_date', '-id')[:RECENT_LIMIT],
        'reports': reports.order_by('-report_date', '-id')[:RECENT_LIMIT],
        'stats': {
            'totalAppointments': appointments.count(),
            'upcomingAppointments': appointments.filter(
                appointment_date__gte=today_bounds()[0], status__in=Appointment.ACTIVE_STATUSES
            ).count(),
            'totalTests': tests.count(),
            'pendingTests': tests.filter(status__in=LabTest.PENDING_STATUSES).count(),
            'totalReports': reports.count(),
        },
    }

"""
Diagnostic report endpoints.

Listing is limited to admin, doctor and staff accounts; creating needs
admin or doctor and deleting needs admin.  Name filters are
case-insensitive substring matches.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..models import Report
from ..permissions import IsClinician, require_role
from ..serializers.records import ReportSerializer
from ..utils import page_params, paginate, success


def _get_report(pk) -> Report:
    report = Report.objects.filter(pk=pk).first()
    if report is None:
        raise NotFound('Report not found.')
    return report


def _ordered(qs):
    return qs.order_by('-report_date', '-id')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def reports(request):
    if request.method == 'POST':
        require_role(request.user, 'admin', 'doctor')
        s = ReportSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        report = s.save()
        return success({'report': ReportSerializer(report).data}, 'Report created successfully', status=201)

    require_role(request.user, 'admin', 'doctor', 'staff')
    params = request.query_params
    qs = Report.objects.all()
    if params.get('patientName'):
        qs = qs.filter(patient_name__icontains=params['patientName'])
    if params.get('doctorName'):
        qs = qs.filter(doctor_name__icontains=params['doctorName'])
    if params.get('reportType'):
        qs = qs.filter(report_type__icontains=params['reportType'])
    if params.get('status'):
        qs = qs.filter(status=params['status'])
    page, limit = page_params(request)
    items, pagination = paginate(_ordered(qs), page, limit)
    return success({'reports': ReportSerializer(items, many=True).data, 'pagination': pagination},
                   count=len(items))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def report_detail(request, pk: int):
    report = _get_report(pk)
    if request.method == 'DELETE':
        require_role(request.user, 'admin')
        report.delete()
        return success(message='Report deleted successfully')
    if request.method == 'PUT':
        s = ReportSerializer(report, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        report = s.save()
        return success({'report': ReportSerializer(report).data}, 'Report updated successfully')
    return success({'report': ReportSerializer(report).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reports_by_patient(request, name: str):
    qs = _ordered(Report.objects.filter(patient_name__icontains=name))
    items = ReportSerializer(qs, many=True).data
    return success({'reports': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reports_by_doctor(request, name: str):
    qs = _ordered(Report.objects.filter(doctor_name__icontains=name))
    items = ReportSerializer(qs, many=True).data
    return success({'reports': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinician])
def critical_reports(request):
    qs = _ordered(Report.objects.filter(is_critical=True))
    items = ReportSerializer(qs, many=True).data
    return success({'reports': items}, count=len(items))

"""
Patient directory endpoints.

Any signed-in user may create or view a patient; listing and editing
need a staff role and deleting needs admin.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..exceptions import PatientNotFound
from ..models import Patient
from ..permissions import require_role
from ..serializers.directory import PatientSerializer
from ..serializers.lab import LabTestSerializer
from ..serializers.records import ReportSerializer
from ..serializers.scheduling import AppointmentSerializer
from ..services import dashboard, directory
from ..utils import page_params, paginate, success


def _get_patient(pk) -> Patient:
    patient = Patient.objects.filter(pk=pk).first()
    if patient is None:
        raise PatientNotFound()
    return patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'POST':
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = directory.create_patient(dict(s.validated_data))
        return success({'patient': PatientSerializer(patient).data}, 'Patient created successfully', status=201)

    require_role(request.user, 'admin', 'doctor', 'staff')
    qs = Patient.objects.all()
    search = (request.query_params.get('search') or '').strip()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search))
    page, limit = page_params(request)
    items, pagination = paginate(qs.order_by('-created_at', '-id'), page, limit)
    return success({'patients': PatientSerializer(items, many=True).data, 'pagination': pagination},
                   count=len(items))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, pk: int):
    patient = _get_patient(pk)
    if request.method == 'DELETE':
        require_role(request.user, 'admin')
        patient.delete()
        return success(message='Patient deleted successfully')
    if request.method == 'PUT':
        require_role(request.user, 'admin', 'doctor', 'staff')
        s = PatientSerializer(patient, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        patient = s.save()
        return success({'patient': PatientSerializer(patient).data}, 'Patient updated successfully')
    return success({'patient': PatientSerializer(patient).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_dashboard(request, pk: int):
    patient = _get_patient(pk)
    overview = dashboard.patient_overview(patient)
    return success({
        'patient': PatientSerializer(patient).data,
        'stats': overview['stats'],
        'recentAppointments': AppointmentSerializer(overview['appointments'], many=True).data,
        'recentTests': LabTestSerializer(overview['tests'], many=True).data,
        'recentReports': ReportSerializer(overview['reports'], many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def medical_history(request, pk: int):
    patient = _get_patient(pk)
    return success({
        'patientName': patient.name,
        'bloodGroup': patient.blood_group,
        'medicalHistory': patient.medical_history,
        'allergies': patient.allergies,
    })

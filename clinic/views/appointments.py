"""
Appointment endpoints.

Booking with a doctor goes through the slot check in
:mod:`clinic.services.scheduling`; the public ``/book`` form creates an
unassigned appointment and needs no account.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..serializers.scheduling import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
    PublicBookingSerializer,
)
from ..services import scheduling
from ..utils import int_param, page_params, paginate, parse_day, success

_UPDATE_FIELDS = {
    'doctor': 'doctor_id',
    'appointmentDate': 'appointment_date',
    'appointmentTime': 'appointment_time',
    'reason': 'reason',
    'type': 'type',
    'duration': 'duration',
    'status': 'status',
    'notes': 'notes',
}


def _list_response(qs, request, message=None):
    page, limit = page_params(request)
    items, pagination = paginate(qs, page, limit)
    return success(
        {'appointments': AppointmentSerializer(items, many=True).data, 'pagination': pagination},
        message,
        count=len(items),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'POST':
        s = AppointmentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        appointment = scheduling.create_appointment(
            patient_id=vd['patient'],
            doctor_id=vd.get('doctor'),
            appointment_date=vd['appointmentDate'],
            appointment_time=vd['appointmentTime'],
            reason=vd['reason'],
            type=vd['type'],
            duration=vd['duration'],
            notes=vd.get('notes', ''),
            requested_by=request.user,
        )
        return success({'appointment': AppointmentSerializer(appointment).data},
                       'Appointment created successfully', status=201)

    params = request.query_params
    day = parse_day(params['date']) if params.get('date') else None
    qs = scheduling.filter_appointments(
        status=params.get('status'),
        day=day,
        doctor_id=int_param(params, 'doctor'),
        patient_id=int_param(params, 'patient'),
    )
    return _list_response(qs, request)


@api_view(['POST'])
@permission_classes([AllowAny])
def book_appointment(request):
    s = PublicBookingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appointment = scheduling.book_public_appointment(
        name=vd['patientName'],
        email=vd['patientEmail'],
        phone=vd['patientPhone'],
        gender=vd['patientGender'],
        age=vd.get('patientAge'),
        date_of_birth=vd.get('patientDOB'),
        address=vd.get('patientAddress', ''),
        blood_group=vd.get('patientBloodGroup', ''),
        appointment_date=vd['appointmentDate'],
        appointment_time=vd['appointmentTime'],
        reason=vd['reason'],
        type=vd['type'],
        notes=vd.get('notes', ''),
    )
    return success({'appointment': AppointmentSerializer(appointment).data},
                   'Appointment booked successfully!', status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def todays_appointments(request):
    items = AppointmentSerializer(scheduling.todays_appointments(), many=True).data
    return success({'appointments': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_appointments(request, pk: int):
    return _list_response(scheduling.patient_appointments(pk), request)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_appointments(request, pk: int):
    params = request.query_params
    day = parse_day(params['date']) if params.get('date') else None
    qs = scheduling.doctor_appointments(pk, day=day, status=params.get('status'))
    items = AppointmentSerializer(qs, many=True).data
    return success({'appointments': items}, count=len(items))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    if request.method == 'DELETE':
        scheduling.delete_appointment(pk)
        return success(message='Appointment deleted successfully')
    if request.method == 'PUT':
        s = AppointmentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        changes = {_UPDATE_FIELDS[k]: v for k, v in s.validated_data.items()}
        appointment = scheduling.update_appointment(pk, changes)
        return success({'appointment': AppointmentSerializer(appointment).data},
                       'Appointment updated successfully')
    appointment = scheduling.get_appointment(pk)
    return success({'appointment': AppointmentSerializer(appointment).data})

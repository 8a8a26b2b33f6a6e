"""
Staff directory endpoints, the doctor picker and per-staff dashboards.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..exceptions import BadRequest
from ..models import Staff
from ..permissions import IsAdminRole, require_role
from ..serializers.directory import AvailabilitySerializer, StaffSerializer
from ..serializers.scheduling import AppointmentSerializer
from ..services import dashboard, directory
from ..utils import page_params, paginate, success

_TRUE = ('true', '1', 'yes')


def _get_staff(pk) -> Staff:
    staff = Staff.objects.filter(pk=pk).first()
    if staff is None:
        raise NotFound('Staff member not found.')
    return staff


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def staff_list(request):
    if request.method == 'POST':
        s = StaffSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        staff = directory.create_staff(dict(s.validated_data))
        return success({'staff': StaffSerializer(staff).data}, 'Staff member created successfully', status=201)

    params = request.query_params
    qs = Staff.objects.all()
    if params.get('role'):
        qs = qs.filter(role=params['role'])
    if params.get('department'):
        qs = qs.filter(department__icontains=params['department'])
    if params.get('isActive') not in (None, ''):
        qs = qs.filter(is_active=params['isActive'].lower() in _TRUE)
    page, limit = page_params(request)
    items, pagination = paginate(qs.order_by('name', 'id'), page, limit)
    return success({'staff': StaffSerializer(items, many=True).data, 'pagination': pagination},
                   count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors(request):
    params = request.query_params
    qs = Staff.objects.filter(role='doctor', is_active=True)
    if params.get('department'):
        qs = qs.filter(department__icontains=params['department'])
    if params.get('specialization'):
        qs = qs.filter(specialization__icontains=params['specialization'])
    items = StaffSerializer(qs.order_by('name', 'id'), many=True).data
    return success({'doctors': items}, count=len(items))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def staff_by_role(request, role: str):
    if role not in dict(Staff.ROLE_CHOICES):
        raise BadRequest(f'Unknown staff role: {role}')
    qs = Staff.objects.filter(role=role, is_active=True).order_by('name', 'id')
    items = StaffSerializer(qs, many=True).data
    return success({'staff': items}, count=len(items))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def staff_detail(request, pk: int):
    staff = _get_staff(pk)
    if request.method == 'DELETE':
        require_role(request.user, 'admin')
        staff.delete()
        return success(message='Staff member deleted successfully')
    if request.method == 'PUT':
        require_role(request.user, 'admin')
        s = StaffSerializer(staff, data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        staff = directory.update_staff(staff, dict(s.validated_data))
        return success({'staff': StaffSerializer(staff).data}, 'Staff member updated successfully')
    return success({'staff': StaffSerializer(staff).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def staff_dashboard(request, pk: int):
    staff = _get_staff(pk)
    today, upcoming = dashboard.staff_schedule(staff)
    return success({
        'staff': StaffSerializer(staff).data,
        'stats': dashboard.staff_stats(staff),
        'todayAppointments': AppointmentSerializer(today, many=True).data,
        'upcomingAppointments': AppointmentSerializer(upcoming, many=True).data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def staff_availability(request, pk: int):
    staff = _get_staff(pk)
    if request.user.role != 'admin' and staff.user_id != request.user.pk:
        require_role(request.user, 'admin')
    s = AvailabilitySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    staff.available_slots = s.validated_data['availableSlots']
    fields = ['available_slots', 'updated_at']
    if 'shift' in s.validated_data:
        staff.shift = s.validated_data['shift']
        fields.append('shift')
    staff.save(update_fields=fields)
    return success({'staff': StaffSerializer(staff).data}, 'Availability updated successfully')

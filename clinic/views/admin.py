"""
Administrative dashboard, user management and analytics.

Every endpoint here requires the admin role.
"""
from __future__ import annotations

from django.db.models import Q
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from ..exceptions import BadRequest
from ..models import User
from ..permissions import IsAdminRole
from ..serializers.accounts import UserSerializer
from ..serializers.directory import PatientSerializer
from ..serializers.scheduling import AppointmentSerializer
from ..services import dashboard
from ..services.audit import log_action, recent_events
from ..utils import page_params, paginate, success


def _serialize_event(event) -> dict:
    return {
        'id': event.id,
        'action': event.action,
        'objectType': event.object_type,
        'objectId': event.object_id,
        'user': event.user.email if event.user else None,
        'detail': event.detail,
        'createdAt': event.created_at.isoformat(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Totals, today's counts, revenue and the latest appointments and patients."""
    return success({
        'stats': dashboard.admin_stats(),
        'recentAppointments': AppointmentSerializer(dashboard.recent_appointments(), many=True).data,
        'recentPatients': PatientSerializer(dashboard.recent_patients(), many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def recent_activities(request):
    return success({'activities': [_serialize_event(e) for e in recent_events()]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def list_users(request):
    qs = User.objects.all()
    role = request.query_params.get('role')
    if role:
        qs = qs.filter(role=role)
    search = (request.query_params.get('search') or '').strip()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search))
    page, limit = page_params(request)
    users, pagination = paginate(qs.order_by('-created_at', '-id'), page, limit)
    return success({'users': UserSerializer(users, many=True).data, 'pagination': pagination})


def _get_user(pk) -> User:
    user = User.objects.filter(pk=pk).first()
    if user is None:
        raise NotFound('User not found.')
    return user


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def update_user_status(request, pk: int):
    user = _get_user(pk)
    is_active = request.data.get('isActive')
    if not isinstance(is_active, bool):
        raise BadRequest('isActive must be true or false.')
    if user.pk == request.user.pk and not is_active:
        raise BadRequest('You cannot deactivate your own account.')
    user.is_active = is_active
    user.save(update_fields=['is_active', 'updated_at'])
    log_action(user=request.user, action='user_status', object_type='user', object_id=user.id,
               detail={'isActive': is_active})
    state = 'activated' if is_active else 'deactivated'
    return success({'user': UserSerializer(user).data}, f'User {state} successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def delete_user(request, pk: int):
    user = _get_user(pk)
    if user.pk == request.user.pk:
        raise BadRequest('You cannot delete your own account.')
    user.delete()
    log_action(user=request.user, action='user_delete', object_type='user', object_id=pk)
    return success(message='User deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def patients_monthly(request):
    return success({'months': dashboard.monthly_patients()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def revenue_stats(request):
    rows = dashboard.monthly_revenue()
    return success({'months': rows, 'totalRevenue': sum(r['revenue'] for r in rows)})

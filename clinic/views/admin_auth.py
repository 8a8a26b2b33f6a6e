"""
Admin console sign-in under ``/api/admin/auth/``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..permissions import IsAdminRole
from ..serializers.accounts import LoginSerializer, UserSerializer
from ..services import accounts
from ..utils import client_ip, success


@api_view(['POST'])
@permission_classes([AllowAny])
def admin_login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, token = accounts.admin_login(ip=client_ip(request), **s.validated_data)
    return success({'user': UserSerializer(user).data, 'token': token}, 'Admin login successful')


admin_login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def admin_logout_view(request):
    return success(message='Admin logged out successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_verify_view(request):
    return success({'user': UserSerializer(request.user).data}, 'Token is valid')

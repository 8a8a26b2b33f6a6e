"""
Account endpoints under ``/api/auth/``.

Register, login and password change answer with ``data: {user, token}``.
Tokens are stateless; logout is an acknowledgement only and a token stays
valid until it expires or the password changes.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated

from ..models import Patient, Staff
from ..serializers.accounts import (
    ChangePasswordSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    UpdateAccountSerializer,
    UserSerializer,
)
from ..serializers.directory import PatientSerializer, StaffSerializer
from ..services import accounts
from ..utils import client_ip, success


def _account_payload(user) -> dict:
    data = {'user': UserSerializer(user).data}
    patient = Patient.objects.filter(user=user).first()
    if patient is not None:
        data['patient'] = PatientSerializer(patient).data
    staff = Staff.objects.filter(user=user).first()
    if staff is not None:
        data['staff'] = StaffSerializer(staff).data
    return data


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, token = accounts.register(ip=client_ip(request), **s.validated_data)
    return success({'user': UserSerializer(user).data, 'token': token},
                   'User registered successfully', status=201)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, token = accounts.login(ip=client_ip(request), **s.validated_data)
    return success({'user': UserSerializer(user).data, 'token': token}, 'Login successful')


# ScopedRateThrottle reads throttle_scope from the wrapped APIView class.
login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return success(_account_payload(request.user))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_account_view(request):
    s = UpdateAccountSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.update_account(request.user, s.validated_data)
    return success(_account_payload(user), 'Profile updated successfully')


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    token = accounts.change_password(
        request.user,
        current_password=s.validated_data['currentPassword'],
        new_password=s.validated_data['newPassword'],
    )
    return success({'user': UserSerializer(request.user).data, 'token': token},
                   'Password updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    return success(message='Logged out successfully')


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.forgot_password(s.validated_data['email'])
    return success(message='If an account exists for this email, a reset link has been sent.')


forgot_password_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, token = accounts.reset_password(**s.validated_data)
    return success({'user': UserSerializer(user).data, 'token': token}, 'Password reset successful')

from rest_framework import serializers

from ..models import Staff, User
from ..utils import clean_text

PHONE_REGEX = r'^\d{10}$'


class UserSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    lastLogin = serializers.DateTimeField(source='last_login', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'name', 'email', 'role', 'phone', 'department', 'specialization',
            'isActive', 'lastLogin', 'createdAt',
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    phone = serializers.RegexField(PHONE_REGEX, error_messages={'invalid': 'Phone number must be 10 digits'})
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default='patient')
    # Role specific fields
    gender = serializers.ChoiceField(choices=['male', 'female', 'other'], required=False)
    age = serializers.IntegerField(required=False, min_value=0, max_value=150)
    address = serializers.CharField(required=False, allow_blank=True)
    department = serializers.CharField(required=False, allow_blank=True, max_length=100)
    specialization = serializers.CharField(required=False, allow_blank=True, max_length=100)
    qualification = serializers.CharField(required=False, allow_blank=True)
    experience = serializers.IntegerField(required=False, min_value=0)
    licenseNumber = serializers.CharField(required=False, allow_blank=True, max_length=50)
    staffRole = serializers.ChoiceField(choices=Staff.ROLE_CHOICES, required=False)

    def validate_name(self, v):
        return clean_text(v)

    def validate_email(self, v):
        return v.strip().lower()

    def validate(self, attrs):
        if attrs.get('role') == 'doctor' and not attrs.get('specialization'):
            raise serializers.ValidationError({'specialization': 'Specialization is required for doctors'})
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_email(self, v):
        return v.strip().lower()


class UpdateAccountSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, min_length=2, max_length=50)
    phone = serializers.RegexField(PHONE_REGEX, required=False)
    department = serializers.CharField(required=False, allow_blank=True, max_length=100)
    specialization = serializers.CharField(required=False, allow_blank=True, max_length=100)
    address = serializers.CharField(required=False, allow_blank=True)
    age = serializers.IntegerField(required=False, min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=['male', 'female', 'other'], required=False)

    def validate_name(self, v):
        return clean_text(v)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(min_length=6, write_only=True)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, v):
        return v.strip().lower()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(min_length=6, write_only=True)

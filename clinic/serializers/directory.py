import bleach
from rest_framework import serializers

from ..models import BLOOD_GROUP_CHOICES, Patient, Staff
from ..utils import clean_text

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday']
TIME_REGEX = r'^([01]\d|2[0-3]):[0-5]\d$'


class PatientSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150)
    bloodGroup = serializers.ChoiceField(
        source='blood_group', choices=BLOOD_GROUP_CHOICES, required=False, allow_blank=True
    )
    medicalHistory = serializers.ListField(
        source='medical_history', child=serializers.CharField(), required=False
    )
    allergies = serializers.ListField(child=serializers.CharField(), required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id', 'userId', 'name', 'email', 'phone', 'gender', 'age', 'dateOfBirth',
            'address', 'bloodGroup', 'medicalHistory', 'allergies', 'createdAt', 'updatedAt',
        ]

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_email(self, v):
        return (v or '').strip().lower()


class PatientSummarySerializer(serializers.ModelSerializer):
    bloodGroup = serializers.CharField(source='blood_group', read_only=True)
    dateOfBirth = serializers.DateField(source='date_of_birth', read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'name', 'email', 'phone', 'gender', 'age', 'dateOfBirth', 'address', 'bloodGroup']


class SlotSerializer(serializers.Serializer):
    day = serializers.ChoiceField(choices=WEEKDAYS)
    startTime = serializers.RegexField(TIME_REGEX)
    endTime = serializers.RegexField(TIME_REGEX)
    breakStart = serializers.RegexField(TIME_REGEX, required=False, allow_blank=True)
    breakEnd = serializers.RegexField(TIME_REGEX, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs['startTime'] >= attrs['endTime']:
            raise serializers.ValidationError('startTime must be before endTime')
        return attrs


class StaffSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    email = serializers.EmailField()
    licenseNumber = serializers.CharField(
        source='license_number', required=False, allow_null=True, allow_blank=True, max_length=50
    )
    availableSlots = serializers.ListField(source='available_slots', child=SlotSerializer(), required=False)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    dateOfJoining = serializers.DateField(source='date_of_joining', required=False)
    experience = serializers.IntegerField(required=False, min_value=0, max_value=60)
    isActive = serializers.BooleanField(source='is_active', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Staff
        fields = [
            'id', 'userId', 'name', 'email', 'phone', 'role', 'department', 'specialization',
            'qualification', 'experience', 'licenseNumber', 'shift', 'availableSlots',
            'dateOfBirth', 'dateOfJoining', 'salary', 'isActive', 'createdAt', 'updatedAt',
        ]

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_email(self, v):
        return v.strip().lower()

    def validate_licenseNumber(self, v):
        return (v or '').strip() or None

    def validate(self, attrs):
        role = attrs.get('role', getattr(self.instance, 'role', None))
        specialization = attrs.get('specialization', getattr(self.instance, 'specialization', ''))
        if role == 'doctor' and not specialization:
            raise serializers.ValidationError({'specialization': 'Specialization is required for doctors'})
        return attrs


class StaffSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ['id', 'name', 'email', 'phone', 'role', 'department', 'specialization']


class AvailabilitySerializer(serializers.Serializer):
    availableSlots = SlotSerializer(many=True)
    shift = serializers.ChoiceField(choices=Staff.SHIFT_CHOICES, required=False)

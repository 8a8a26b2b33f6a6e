from rest_framework import serializers

from ..exceptions import BadRequest
from ..models import BLOOD_GROUP_CHOICES, Appointment
from ..utils import clean_text, parse_datetime_value
from .directory import TIME_REGEX, PatientSummarySerializer, StaffSummarySerializer


class LocalDateTimeField(serializers.Field):
    """Accepts ``YYYY-MM-DD`` (local midnight) or a full ISO datetime."""
    default_error_messages = {'invalid': 'Enter a valid date or datetime.'}

    def to_internal_value(self, data):
        try:
            return parse_datetime_value(data)
        except BadRequest:
            self.fail('invalid')

    def to_representation(self, value):
        return value.isoformat()


class AppointmentSerializer(serializers.ModelSerializer):
    patient = PatientSummarySerializer(read_only=True)
    doctor = StaffSummarySerializer(read_only=True)
    appointmentDate = serializers.DateTimeField(source='appointment_date', read_only=True)
    appointmentTime = serializers.CharField(source='appointment_time', read_only=True)
    userId = serializers.IntegerField(source='user_id', read_only=True)
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient', 'doctor', 'appointmentDate', 'appointmentTime', 'reason', 'type',
            'duration', 'status', 'notes', 'userId', 'createdBy', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.Serializer):
    patient = serializers.IntegerField()
    doctor = serializers.IntegerField(required=False, allow_null=True)
    appointmentDate = LocalDateTimeField()
    appointmentTime = serializers.RegexField(TIME_REGEX, error_messages={'invalid': 'Time must be HH:MM'})
    reason = serializers.CharField(max_length=500)
    type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, default='consultation')
    duration = serializers.IntegerField(min_value=15, max_value=240, default=30)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_reason(self, v):
        return clean_text(v)


class AppointmentUpdateSerializer(serializers.Serializer):
    doctor = serializers.IntegerField(required=False, allow_null=True)
    appointmentDate = LocalDateTimeField(required=False)
    appointmentTime = serializers.RegexField(TIME_REGEX, required=False)
    reason = serializers.CharField(required=False, max_length=500)
    type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, required=False)
    duration = serializers.IntegerField(required=False, min_value=15, max_value=240)
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_reason(self, v):
        return clean_text(v)


class PublicBookingSerializer(serializers.Serializer):
    patientName = serializers.CharField(max_length=100)
    patientEmail = serializers.EmailField()
    patientPhone = serializers.CharField(max_length=20)
    patientGender = serializers.ChoiceField(choices=['male', 'female', 'other'])
    patientAge = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150)
    patientDOB = serializers.DateField(required=False, allow_null=True)
    patientAddress = serializers.CharField(required=False, allow_blank=True, default='')
    patientBloodGroup = serializers.CharField(required=False, allow_blank=True, default='')
    appointmentDate = LocalDateTimeField()
    appointmentTime = serializers.RegexField(TIME_REGEX)
    reason = serializers.CharField(max_length=500)
    type = serializers.ChoiceField(choices=Appointment.TYPE_CHOICES, default='consultation')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def to_internal_value(self, data):
        # Empty optional inputs from HTML forms arrive as "".
        if hasattr(data, 'copy'):
            data = data.copy()
            for key in ('patientAge', 'patientDOB'):
                if data.get(key) == '':
                    data[key] = None
        return super().to_internal_value(data)

    def validate_patientName(self, v):
        return clean_text(v)

    def validate_patientEmail(self, v):
        return v.strip().lower()

    def validate_patientBloodGroup(self, v):
        # "Not Specified" and other free text mean no blood group on record.
        return v if v in dict(BLOOD_GROUP_CHOICES) else ''

"""
Serializers for the pass-through records: reports, referrals, the hospital
settings singleton and user profiles.
"""
from rest_framework import serializers

from ..models import BLOOD_GROUP_CHOICES, HospitalSettings, Profile, Referral, Report
from ..utils import clean_text


class ReportSerializer(serializers.ModelSerializer):
    patientName = serializers.CharField(source='patient_name', max_length=100)
    doctorName = serializers.CharField(source='doctor_name', max_length=100)
    reportType = serializers.CharField(source='report_type', max_length=100)
    testType = serializers.CharField(source='test_type', required=False, allow_blank=True, max_length=100)
    amount = serializers.CharField(max_length=50)
    isCritical = serializers.BooleanField(source='is_critical', required=False)
    reportDate = serializers.DateTimeField(source='report_date', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Report
        fields = [
            'id', 'patientName', 'doctorName', 'reportType', 'testType', 'findings',
            'diagnosis', 'recommendations', 'amount', 'status', 'isCritical', 'reportDate',
            'createdAt', 'updatedAt',
        ]

    def validate_patientName(self, v):
        return clean_text(v)

    def validate_doctorName(self, v):
        return clean_text(v)


class ReferralSerializer(serializers.ModelSerializer):
    patientName = serializers.CharField(source='patient_name', max_length=100)
    patientEmail = serializers.EmailField(source='patient_email')
    patientPhone = serializers.CharField(source='patient_phone', max_length=20)
    patientAge = serializers.IntegerField(source='patient_age', required=False, allow_null=True, min_value=0)
    patientGender = serializers.CharField(source='patient_gender', required=False, allow_blank=True)
    referringDoctor = serializers.CharField(source='referring_doctor', required=False, allow_blank=True)
    referralHospital = serializers.CharField(source='referral_hospital', required=False, allow_blank=True)
    medicalCondition = serializers.CharField(source='medical_condition', required=False, allow_blank=True)
    preferredDate = serializers.DateField(source='preferred_date', required=False, allow_null=True)
    preferredTime = serializers.CharField(source='preferred_time', required=False, allow_blank=True)
    additionalNotes = serializers.CharField(source='additional_notes', required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Referral
        fields = [
            'id', 'patientName', 'patientEmail', 'patientPhone', 'patientAge', 'patientGender',
            'referringDoctor', 'referralHospital', 'medicalCondition', 'urgency', 'preferredDate',
            'preferredTime', 'additionalNotes', 'status', 'createdAt',
        ]

    def validate_patientName(self, v):
        return clean_text(v)


class ReferralStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Referral.STATUS_CHOICES)


class WorkingHoursSerializer(serializers.Serializer):
    start = serializers.RegexField(r'^\d{2}:\d{2}$', required=False)
    end = serializers.RegexField(r'^\d{2}:\d{2}$', required=False)


class LabSettingsSerializer(serializers.Serializer):
    reportValidity = serializers.IntegerField(required=False, min_value=1, max_value=365)
    criticalResultAlert = serializers.BooleanField(required=False)
    autoGenerateReports = serializers.BooleanField(required=False)


class BillingSettingsSerializer(serializers.Serializer):
    taxRate = serializers.FloatField(required=False, min_value=0, max_value=50)
    discountEligibility = serializers.BooleanField(required=False)
    paymentModes = serializers.ListField(
        child=serializers.ChoiceField(choices=['cash', 'card', 'upi', 'netbanking']), required=False
    )


class HospitalSettingsSerializer(serializers.ModelSerializer):
    hospitalName = serializers.CharField(source='hospital_name', required=False, max_length=200)
    hospitalEmail = serializers.EmailField(source='hospital_email', required=False)
    hospitalPhone = serializers.CharField(source='hospital_phone', required=False, max_length=30)
    hospitalAddress = serializers.CharField(source='hospital_address', required=False, allow_blank=True)
    appointmentDuration = serializers.IntegerField(
        source='appointment_duration', required=False, min_value=15, max_value=120
    )
    workingHours = WorkingHoursSerializer(source='working_hours', required=False)
    smsNotifications = serializers.BooleanField(source='sms_notifications', required=False)
    emailNotifications = serializers.BooleanField(source='email_notifications', required=False)
    autoBackup = serializers.BooleanField(source='auto_backup', required=False)
    backupFrequency = serializers.ChoiceField(
        source='backup_frequency', choices=['daily', 'weekly', 'monthly'], required=False
    )
    currency = serializers.ChoiceField(choices=['INR', 'USD', 'EUR'], required=False)
    timezone = serializers.CharField(required=False, max_length=64)
    dateFormat = serializers.ChoiceField(
        source='date_format', choices=['DD/MM/YYYY', 'MM/DD/YYYY', 'YYYY-MM-DD'], required=False
    )
    maxAppointmentsPerDay = serializers.IntegerField(
        source='max_appointments_per_day', required=False, min_value=10, max_value=200
    )
    emergencyContact = serializers.CharField(source='emergency_contact', required=False, max_length=30)
    labSettings = LabSettingsSerializer(source='lab_settings', required=False)
    billingSettings = BillingSettingsSerializer(source='billing_settings', required=False)
    updatedBy = serializers.IntegerField(source='updated_by_id', read_only=True)
    lastUpdated = serializers.DateTimeField(source='last_updated', read_only=True)

    class Meta:
        model = HospitalSettings
        fields = [
            'hospitalName', 'hospitalEmail', 'hospitalPhone', 'hospitalAddress',
            'appointmentDuration', 'workingHours', 'smsNotifications', 'emailNotifications',
            'autoBackup', 'backupFrequency', 'currency', 'timezone', 'dateFormat',
            'maxAppointmentsPerDay', 'emergencyContact', 'labSettings', 'billingSettings',
            'updatedBy', 'lastUpdated',
        ]

    def update(self, instance, validated_data):
        # Nested groups are merged key by key instead of replaced.
        for key in ('working_hours', 'lab_settings', 'billing_settings'):
            if key in validated_data:
                merged = dict(getattr(instance, key) or {})
                merged.update(validated_data.pop(key))
                setattr(instance, key, merged)
        return super().update(instance, validated_data)


class ProfileSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source='user_id', read_only=True)
    email = serializers.EmailField(read_only=True)
    experience = serializers.IntegerField(required=False, min_value=0, max_value=50)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    bloodGroup = serializers.ChoiceField(
        source='blood_group', choices=BLOOD_GROUP_CHOICES, required=False, allow_blank=True
    )
    bio = serializers.CharField(required=False, allow_blank=True, max_length=500)
    socialLinks = serializers.DictField(source='social_links', child=serializers.CharField(allow_blank=True), required=False)
    notifications = serializers.DictField(child=serializers.BooleanField(), required=False)
    preferences = serializers.DictField(child=serializers.CharField(), required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Profile
        fields = [
            'id', 'userId', 'name', 'email', 'phone', 'avatar', 'department', 'specialization',
            'experience', 'qualification', 'address', 'city', 'state', 'pincode', 'dateOfBirth',
            'gender', 'bloodGroup', 'bio', 'socialLinks', 'notifications', 'preferences',
            'createdAt', 'updatedAt',
        ]

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_bio(self, v):
        return clean_text(v)


class PublicProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ['name', 'avatar', 'department', 'specialization', 'experience', 'qualification', 'bio']
        read_only_fields = fields


class PreferencesSerializer(serializers.Serializer):
    language = serializers.CharField(required=False, max_length=10)
    theme = serializers.ChoiceField(choices=['light', 'dark', 'system'], required=False)
    timezone = serializers.CharField(required=False, max_length=64)
    notifications = serializers.DictField(child=serializers.BooleanField(), required=False)


class AvatarSerializer(serializers.Serializer):
    avatar = serializers.CharField()

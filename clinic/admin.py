"""
Django admin registrations for the clinic models.

Superusers can inspect and correct records through ``/admin/``.  Only
list displays, filters and search fields are configured.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    HospitalSettings,
    LabTest,
    Patient,
    Profile,
    Referral,
    Report,
    Staff,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'is_active', 'last_login')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'name', 'phone')
    exclude = ('password', 'password_reset_token')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'email', 'phone', 'gender', 'blood_group', 'created_at')
    list_filter = ('gender', 'blood_group')
    search_fields = ('name', 'email', 'phone')


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'role', 'department', 'specialization', 'is_active')
    list_filter = ('role', 'department', 'is_active')
    search_fields = ('name', 'email', 'phone', 'license_number')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'appointment_date', 'appointment_time', 'status')
    list_filter = ('status', 'type')
    search_fields = ('patient__name', 'doctor__name', 'reason')


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ('id', 'test_name', 'patient', 'technician', 'scheduled_date', 'status', 'price')
    list_filter = ('status', 'priority', 'sample_type')
    search_fields = ('test_name', 'test_type', 'patient__name')


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient_name', 'doctor_name', 'report_type', 'status', 'is_critical', 'report_date')
    list_filter = ('status', 'is_critical')
    search_fields = ('patient_name', 'doctor_name', 'report_type')


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient_name', 'urgency', 'status', 'created_at')
    list_filter = ('urgency', 'status')
    search_fields = ('patient_name', 'patient_email', 'referring_doctor')


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'name', 'department', 'specialization')
    search_fields = ('name', 'email')


@admin.register(HospitalSettings)
class HospitalSettingsAdmin(admin.ModelAdmin):
    list_display = ('hospital_name', 'hospital_email', 'last_updated', 'updated_by')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    search_fields = ('action', 'user__email')

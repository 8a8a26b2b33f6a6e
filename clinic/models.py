"""
Database models for the MediCare lab backend.

These models capture the concepts of the system: user accounts, the
patient and staff directory, appointments, lab tests, free-standing
reports, the hospital settings singleton, per-user profiles, referrals
and an audit trail.  Field names follow Django conventions; the API layer
maps them to the camelCase keys the front-end expects.
"""
from __future__ import annotations

import hashlib
import math
import secrets
from datetime import timedelta

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UserManager(BaseUserManager):
    """Manager for the email-keyed :class:`User`."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("Email is required")
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", "admin")
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Account used to sign in to the API.

    The email address is the login identifier.  ``password_changed_at`` is
    compared against a token's ``iat`` claim so that changing the password
    invalidates every token issued before the change.
    """
    ROLE_CHOICES = [
        ('patient', 'Patient'),
        ('doctor', 'Doctor'),
        ('admin', 'Administrator'),
        ('staff', 'Staff'),
    ]
    username = None
    first_name = None
    last_name = None

    name = models.CharField(max_length=50)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=10, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='patient', db_index=True)
    department = models.CharField(max_length=100, blank=True)
    specialization = models.CharField(max_length=100, blank=True)
    password_changed_at = models.DateTimeField(null=True, blank=True)
    password_reset_token = models.CharField(max_length=64, blank=True)
    password_reset_expires = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    def get_full_name(self) -> str:
        return self.name

    def get_short_name(self) -> str:
        return self.name

    def set_password(self, raw_password):
        super().set_password(raw_password)
        # Only an existing account "changes" its password; backdating by a
        # second keeps the token issued in the same request valid.
        if self.pk:
            self.password_changed_at = timezone.now() - timedelta(seconds=1)

    def changed_password_after(self, iat) -> bool:
        """Return True if the password changed after a token issued at ``iat``."""
        if self.password_changed_at is None or iat is None:
            return False
        return int(iat) < int(self.password_changed_at.timestamp())

    def create_password_reset_token(self) -> str:
        """Generate a reset token, store its digest and return the raw value."""
        raw = secrets.token_hex(32)
        self.password_reset_token = hashlib.sha256(raw.encode()).hexdigest()
        self.password_reset_expires = timezone.now() + timedelta(minutes=10)
        return raw


BLOOD_GROUP_CHOICES = [(g, g) for g in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')]


class Patient(TimeStampedModel):
    """Demographic and medical profile.

    A patient does not need an account: the public booking form creates
    patients without a linked :class:`User`.
    """
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('other', 'Other')]

    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_profile'
    )
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, db_index=True)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default='other')
    age = models.PositiveIntegerField(null=True, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.CharField(max_length=255, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    medical_history = models.JSONField(default=list, blank=True)
    allergies = models.JSONField(default=list, blank=True)

    def __str__(self) -> str:
        return self.name


class Staff(TimeStampedModel):
    """Employee profile, optionally linked to a login account."""
    ROLE_CHOICES = [
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('technician', 'Technician'),
        ('receptionist', 'Receptionist'),
        ('admin', 'Administrator'),
        ('pharmacist', 'Pharmacist'),
    ]
    SHIFT_CHOICES = [
        ('morning', 'Morning'),
        ('evening', 'Evening'),
        ('night', 'Night'),
        ('general', 'General'),
    ]
    # Roles that may own an appointment slot.
    CLINICAL_ROLES = ('doctor', 'nurse')

    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff_profile'
    )
    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, db_index=True)
    department = models.CharField(max_length=100, db_index=True)
    specialization = models.CharField(max_length=100, blank=True)
    qualification = models.CharField(max_length=255, blank=True)
    experience = models.PositiveIntegerField(default=0)
    license_number = models.CharField(max_length=50, unique=True, null=True, blank=True)
    shift = models.CharField(max_length=10, choices=SHIFT_CHOICES, default='general')
    available_slots = models.JSONField(default=list, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    date_of_joining = models.DateField(default=timezone.localdate)
    salary = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        verbose_name_plural = 'staff'

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"


class Appointment(TimeStampedModel):
    """A patient visit, optionally assigned to a clinician."""
    TYPE_CHOICES = [
        ('consultation', 'Consultation'),
        ('follow-up', 'Follow-up'),
        ('checkup', 'Checkup'),
        ('emergency', 'Emergency'),
        ('surgery', 'Surgery'),
    ]
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('confirmed', 'Confirmed'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    # Statuses that hold a doctor's slot.
    ACTIVE_STATUSES = ('scheduled', 'confirmed')

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    appointment_date = models.DateTimeField()
    appointment_time = models.CharField(max_length=10)
    reason = models.CharField(max_length=500)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='consultation')
    duration = models.PositiveIntegerField(default=30)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    notes = models.TextField(blank=True)
    user = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='created_appointments'
    )

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'appointment_date', 'appointment_time']),
            models.Index(fields=['patient', 'appointment_date']),
        ]

    def __str__(self) -> str:
        return f"{self.patient} @ {self.appointment_date:%Y-%m-%d} {self.appointment_time}"


class LabTest(TimeStampedModel):
    """A lab order.  ``report_date`` is stamped once, on first completion."""
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('in-progress', 'In progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('pending', 'Pending'),
    ]
    SAMPLE_CHOICES = [(s, s.title()) for s in ('blood', 'urine', 'tissue', 'saliva', 'other')]
    PRIORITY_CHOICES = [('routine', 'Routine'), ('urgent', 'Urgent'), ('stat', 'STAT')]
    PENDING_STATUSES = ('scheduled', 'in-progress', 'pending')

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='lab_tests')
    technician = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_tests'
    )
    requested_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='requested_tests'
    )
    approved_by = models.ForeignKey(
        Staff, null=True, blank=True, on_delete=models.SET_NULL, related_name='approved_tests'
    )
    test_name = models.CharField(max_length=200)
    test_type = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    scheduled_date = models.DateTimeField()
    status = models.CharField(max_length=15, choices=STATUS_CHOICES, default='scheduled', db_index=True)
    results = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    sample_type = models.CharField(max_length=10, choices=SAMPLE_CHOICES, default='blood')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='routine')
    sample_collected = models.BooleanField(default=False)
    sample_collection_date = models.DateTimeField(null=True, blank=True)
    report_ready = models.BooleanField(default=False)
    report_date = models.DateTimeField(null=True, blank=True)
    normal_range = models.CharField(max_length=255, blank=True)
    units = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'scheduled_date']),
            models.Index(fields=['status', 'scheduled_date']),
        ]

    def __str__(self) -> str:
        return f"{self.test_name} for {self.patient}"

    def save(self, *args, **kwargs):
        if self.status == 'completed' and self.report_date is None:
            self.report_date = timezone.now()
            update_fields = kwargs.get('update_fields')
            if update_fields is not None:
                kwargs['update_fields'] = set(update_fields) | {'report_date'}
        super().save(*args, **kwargs)

    def is_overdue(self) -> bool:
        return self.status == 'scheduled' and self.scheduled_date < timezone.now()

    @property
    def duration_days(self):
        if self.sample_collection_date and self.report_date:
            delta = self.report_date - self.sample_collection_date
            return math.ceil(delta.total_seconds() / 86400)
        return None


class Report(TimeStampedModel):
    """Free-standing diagnostic report.

    Patient and doctor are identified by name, not by foreign key, so a
    report can be written for someone who is not in the directory.
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('generated', 'Generated'),
        ('reviewed', 'Reviewed'),
        ('approved', 'Approved'),
        ('archived', 'Archived'),
    ]

    patient_name = models.CharField(max_length=100, db_index=True)
    doctor_name = models.CharField(max_length=100, db_index=True)
    report_type = models.CharField(max_length=100)
    test_type = models.CharField(max_length=100, blank=True)
    findings = models.TextField()
    diagnosis = models.TextField(blank=True)
    recommendations = models.TextField(blank=True)
    amount = models.CharField(max_length=50)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='generated')
    is_critical = models.BooleanField(default=False, db_index=True)
    report_date = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return f"{self.report_type} for {self.patient_name}"


def default_working_hours():
    return {'start': '08:00', 'end': '20:00'}


def default_lab_settings():
    return {'reportValidity': 30, 'criticalResultAlert': True, 'autoGenerateReports': False}


def default_billing_settings():
    return {'taxRate': 18, 'discountEligibility': True, 'paymentModes': ['cash', 'card', 'upi']}


class HospitalSettings(TimeStampedModel):
    """System-wide configuration stored as a single row with ``pk=1``."""
    SINGLETON_PK = 1

    hospital_name = models.CharField(max_length=200, default='Advanced Lab Diagnostic Center')
    hospital_email = models.EmailField(default='info@advancedlab.com')
    hospital_phone = models.CharField(max_length=30, default='+91-6381095854')
    hospital_address = models.CharField(max_length=255, default='Madurai Rd, kadaiyanallur, Tamilnadu-627751')
    appointment_duration = models.PositiveIntegerField(default=30)
    working_hours = models.JSONField(default=default_working_hours)
    sms_notifications = models.BooleanField(default=True)
    email_notifications = models.BooleanField(default=True)
    auto_backup = models.BooleanField(default=True)
    backup_frequency = models.CharField(max_length=10, default='daily')
    currency = models.CharField(max_length=3, default='INR')
    timezone = models.CharField(max_length=64, default='Asia/Kolkata')
    date_format = models.CharField(max_length=12, default='DD/MM/YYYY')
    max_appointments_per_day = models.PositiveIntegerField(default=100)
    emergency_contact = models.CharField(max_length=30, default='6381095854')
    lab_settings = models.JSONField(default=default_lab_settings)
    billing_settings = models.JSONField(default=default_billing_settings)
    updated_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='+')
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = 'hospital settings'

    def __str__(self) -> str:
        return self.hospital_name

    @classmethod
    def load(cls) -> "HospitalSettings":
        obj, _ = cls.objects.get_or_create(pk=cls.SINGLETON_PK)
        return obj

    @classmethod
    def reset(cls) -> "HospitalSettings":
        cls.objects.filter(pk=cls.SINGLETON_PK).delete()
        return cls.objects.create(pk=cls.SINGLETON_PK)


def default_notification_prefs():
    return {'email': True, 'sms': False, 'push': True}


def default_preferences():
    return {'language': 'en', 'theme': 'light', 'timezone': 'Asia/Kolkata'}


class Profile(TimeStampedModel):
    """Extended, user-editable profile created lazily on first access."""
    GENDER_CHOICES = [('male', 'Male'), ('female', 'Female'), ('other', 'Other')]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    name = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)
    avatar = models.TextField(blank=True)
    department = models.CharField(max_length=100, default='Administration')
    specialization = models.CharField(max_length=100, default='Hospital Management')
    experience = models.PositiveIntegerField(default=0)
    qualification = models.CharField(max_length=255, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, blank=True)
    bio = models.CharField(max_length=500, blank=True)
    social_links = models.JSONField(default=dict, blank=True)
    notifications = models.JSONField(default=default_notification_prefs)
    preferences = models.JSONField(default=default_preferences)

    def __str__(self) -> str:
        return f"Profile of {self.name}"


class Referral(TimeStampedModel):
    """Referral submitted by an outside doctor or hospital."""
    URGENCY_CHOICES = [(u, u.title()) for u in ('low', 'normal', 'high', 'critical')]
    STATUS_CHOICES = [(s, s.title()) for s in ('pending', 'confirmed', 'scheduled', 'completed', 'cancelled')]

    patient_name = models.CharField(max_length=100)
    patient_email = models.EmailField()
    patient_phone = models.CharField(max_length=20)
    patient_age = models.PositiveIntegerField(null=True, blank=True)
    patient_gender = models.CharField(max_length=10, blank=True)
    referring_doctor = models.CharField(max_length=100, blank=True)
    referral_hospital = models.CharField(max_length=200, blank=True)
    medical_condition = models.TextField(blank=True)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='normal')
    preferred_date = models.DateField(null=True, blank=True)
    preferred_time = models.CharField(max_length=10, blank=True)
    additional_notes = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)

    def __str__(self) -> str:
        return f"Referral for {self.patient_name} ({self.status})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.object_type}:{self.object_id}"

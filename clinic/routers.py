"""
URL mappings for the clinic API.

Paths carry no trailing slash.  Fixed segments such as ``today`` or
``pending`` are listed before the ``<int:pk>`` routes that share a prefix.
"""
from django.urls import path

from .views import (
    admin,
    appointments,
    hospital_settings,
    lab_tests,
    patients,
    profile,
    referrals,
    reports,
    staff,
)
from .views.admin_auth import admin_login_view, admin_logout_view, admin_verify_view
from .views.auth import (
    change_password_view,
    forgot_password_view,
    login_view,
    logout_view,
    me_view,
    register_view,
    reset_password_view,
    update_account_view,
)
from .views.health import health


urlpatterns = [
    path('api/health', health, name='health'),
    # Authentication
    path('api/auth/register', register_view, name='auth-register'),
    path('api/auth/login', login_view, name='auth-login'),
    path('api/auth/me', me_view, name='auth-me'),
    path('api/auth/update-profile', update_account_view, name='auth-update-profile'),
    path('api/auth/change-password', change_password_view, name='auth-change-password'),
    path('api/auth/logout', logout_view, name='auth-logout'),
    path('api/auth/forgot-password', forgot_password_view, name='auth-forgot-password'),
    path('api/auth/reset-password', reset_password_view, name='auth-reset-password'),
    # Admin authentication
    path('api/admin/auth/login', admin_login_view, name='admin-login'),
    path('api/admin/login', admin_login_view),
    path('api/admin/auth/logout', admin_logout_view, name='admin-logout'),
    path('api/admin/auth/verify', admin_verify_view, name='admin-verify'),
    # Admin dashboard and user management
    path('api/admin/dashboard', admin.admin_dashboard, name='admin-dashboard'),
    path('api/admin/recent-activities', admin.recent_activities, name='admin-recent-activities'),
    path('api/admin/users', admin.list_users, name='admin-users'),
    path('api/admin/users/<int:pk>/status', admin.update_user_status, name='admin-user-status'),
    path('api/admin/users/<int:pk>', admin.delete_user, name='admin-user-delete'),
    path('api/admin/analytics/patients-monthly', admin.patients_monthly, name='admin-patients-monthly'),
    path('api/admin/analytics/revenue', admin.revenue_stats, name='admin-revenue'),
    # Appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/book', appointments.book_appointment, name='appointments-book'),
    path('api/appointments/today', appointments.todays_appointments, name='appointments-today'),
    path('api/appointments/patient/<int:pk>', appointments.patient_appointments, name='appointments-patient'),
    path('api/appointments/doctor/<int:pk>', appointments.doctor_appointments, name='appointments-doctor'),
    path('api/appointments/<int:pk>', appointments.appointment_detail, name='appointment-detail'),
    # Lab tests
    path('api/tests', lab_tests.tests, name='tests'),
    path('api/tests/pending', lab_tests.pending_tests, name='tests-pending'),
    path('api/tests/today', lab_tests.todays_tests, name='tests-today'),
    path('api/tests/patient/<int:pk>', lab_tests.patient_tests, name='tests-patient'),
    path('api/tests/<int:pk>/results', lab_tests.test_results, name='test-results'),
    path('api/tests/<int:pk>', lab_tests.test_detail, name='test-detail'),
    # Reports
    path('api/reports', reports.reports, name='reports'),
    path('api/reports/critical', reports.critical_reports, name='reports-critical'),
    path('api/reports/patient/<str:name>', reports.reports_by_patient, name='reports-patient'),
    path('api/reports/doctor/<str:name>', reports.reports_by_doctor, name='reports-doctor'),
    path('api/reports/<int:pk>', reports.report_detail, name='report-detail'),
    # Patients
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/<int:pk>', patients.patient_detail, name='patient-detail'),
    path('api/patients/<int:pk>/dashboard', patients.patient_dashboard, name='patient-dashboard'),
    path('api/patients/<int:pk>/medical-history', patients.medical_history, name='patient-medical-history'),
    # Staff
    path('api/staff', staff.staff_list, name='staff'),
    path('api/staff/doctors', staff.doctors, name='staff-doctors'),
    path('api/staff/role/<str:role>', staff.staff_by_role, name='staff-role'),
    path('api/staff/<int:pk>', staff.staff_detail, name='staff-detail'),
    path('api/staff/<int:pk>/dashboard', staff.staff_dashboard, name='staff-dashboard'),
    path('api/staff/<int:pk>/availability', staff.staff_availability, name='staff-availability'),
    # Profile
    path('api/profile/me', profile.my_profile, name='profile-me'),
    path('api/profile/update', profile.update_profile, name='profile-update'),
    path('api/profile/avatar', profile.update_avatar, name='profile-avatar'),
    path('api/profile/preferences', profile.update_preferences, name='profile-preferences'),
    path('api/profile/public/<int:user_id>', profile.public_profile, name='profile-public'),
    # Settings
    path('api/settings', hospital_settings.get_settings, name='settings'),
    path('api/settings/update', hospital_settings.update_settings, name='settings-update'),
    path('api/settings/reset', hospital_settings.reset_settings, name='settings-reset'),
    path('api/settings/<str:key>', hospital_settings.get_setting, name='settings-key'),
    # Referrals
    path('api/referrals', referrals.referrals, name='referrals'),
    path('api/referrals/<int:pk>', referrals.referral_detail, name='referral-detail'),
]

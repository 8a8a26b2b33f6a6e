"""Clinic application for the MediCare lab backend.

This package contains the models, services, serializers, views and route
registrations behind the ``/api/`` surface: accounts, the patient and
staff directory, appointment scheduling, lab tests, reports, settings,
profiles, referrals and the admin dashboards.
"""

import pytest
from django.urls import reverse

from clinic.models import Patient, Staff

pytestmark = pytest.mark.django_db


def staff_payload(**overrides):
    payload = {
        "name": "Meredith Grey",
        "email": "grey@example.com",
        "phone": "9444444444",
        "role": "doctor",
        "department": "Surgery",
        "specialization": "General Surgery",
        "licenseNumber": "LIC-200",
    }
    payload.update(overrides)
    return payload


def test_create_patient_and_dedup(client_for, patient_user):
    client = client_for(patient_user)
    payload = {"name": "Tony Stark", "email": "Tony@Example.com", "phone": "9555555555", "gender": "male"}
    r = client.post(reverse("patients"), payload, format="json")
    assert r.status_code == 201
    assert r.data["data"]["patient"]["email"] == "tony@example.com"

    r = client.post(reverse("patients"), {**payload, "email": "other@example.com"}, format="json")
    assert r.status_code == 400
    assert r.data["error"] == "duplicate_record"
    assert Patient.objects.count() == 1


def test_patient_list_requires_staff_role(client_for, patient_user, staff_user, patient):
    assert client_for(patient_user).get(reverse("patients")).status_code == 403
    r = client_for(staff_user).get(reverse("patients"), {"search": "smith"})
    assert r.status_code == 200
    assert [p["id"] for p in r.data["data"]["patients"]] == [patient.id]


def test_patient_update_and_admin_delete(client_for, staff_user, admin_user, patient):
    url = reverse("patient-detail", args=[patient.id])
    r = client_for(staff_user).put(url, {"bloodGroup": "O+", "allergies": ["penicillin"]}, format="json")
    assert r.status_code == 200
    assert r.data["data"]["patient"]["allergies"] == ["penicillin"]
    assert client_for(staff_user).delete(url).status_code == 403
    assert client_for(admin_user).delete(url).status_code == 200
    assert not Patient.objects.filter(pk=patient.id).exists()


def test_medical_history(client_for, staff_user, patient):
    patient.medical_history = ["asthma"]
    patient.save()
    r = client_for(staff_user).get(reverse("patient-medical-history", args=[patient.id]))
    assert r.data["data"]["medicalHistory"] == ["asthma"]
    r = client_for(staff_user).get(reverse("patient-medical-history", args=[123456]))
    assert r.status_code == 404


def test_staff_create_is_admin_only(client_for, staff_user):
    r = client_for(staff_user).post(reverse("staff"), staff_payload(), format="json")
    assert r.status_code == 403


def test_staff_create_and_license_uniqueness(client_for, admin_user):
    client = client_for(admin_user)
    r = client.post(reverse("staff"), staff_payload(), format="json")
    assert r.status_code == 201
    r = client.post(
        reverse("staff"),
        staff_payload(email="bailey@example.com", phone="9666666666", name="Miranda Bailey"),
        format="json",
    )
    assert r.status_code == 400
    assert r.data["message"] == "License number already exists."
    r = client.post(reverse("staff"), staff_payload(licenseNumber="LIC-201"), format="json")
    assert r.status_code == 400
    assert r.data["error"] == "duplicate_record"


def test_blank_licenses_do_not_collide(client_for, admin_user):
    client = client_for(admin_user)
    for i, email in enumerate(("n1@example.com", "n2@example.com")):
        r = client.post(reverse("staff"), staff_payload(
            email=email, phone=f"900000000{i}", role="nurse", specialization="", licenseNumber=""
        ), format="json")
        assert r.status_code == 201
    assert Staff.objects.filter(license_number__isnull=True).count() == 2


def test_doctor_requires_specialization(client_for, admin_user):
    r = client_for(admin_user).post(reverse("staff"), staff_payload(specialization=""), format="json")
    assert r.status_code == 400
    assert "specialization" in r.data["errors"]


def test_doctors_picker_lists_active_doctors(client_for, patient_user, doctor):
    Staff.objects.create(name="Retired", email="old@example.com", role="doctor", department="Diagnostics",
                         specialization="Diagnostics", is_active=False)
    Staff.objects.create(name="Nurse Joy", email="joy@example.com", role="nurse", department="Diagnostics")
    r = client_for(patient_user).get(reverse("staff-doctors"), {"department": "diag"})
    assert r.status_code == 200
    assert [d["id"] for d in r.data["data"]["doctors"]] == [doctor.id]


def test_staff_by_role(client_for, staff_user, doctor):
    r = client_for(staff_user).get(reverse("staff-role", args=["doctor"]))
    assert r.data["count"] == 1
    assert client_for(staff_user).get(reverse("staff-role", args=["wizard"])).status_code == 400


def test_staff_update(client_for, admin_user, doctor):
    r = client_for(admin_user).put(
        reverse("staff-detail", args=[doctor.id]), {"department": "Internal Medicine"}, format="json"
    )
    assert r.status_code == 200
    doctor.refresh_from_db()
    assert doctor.department == "Internal Medicine"


def test_availability_update(client_for, doctor_user, staff_user, doctor):
    url = reverse("staff-availability", args=[doctor.id])
    slots = [{"day": "monday", "startTime": "09:00", "endTime": "13:00"}]
    r = client_for(doctor_user).put(url, {"availableSlots": slots, "shift": "morning"}, format="json")
    assert r.status_code == 200
    doctor.refresh_from_db()
    assert doctor.shift == "morning"
    assert doctor.available_slots[0]["day"] == "monday"

    bad = [{"day": "monday", "startTime": "13:00", "endTime": "09:00"}]
    assert client_for(doctor_user).put(url, {"availableSlots": bad}, format="json").status_code == 400
    assert client_for(staff_user).put(url, {"availableSlots": slots}, format="json").status_code == 403

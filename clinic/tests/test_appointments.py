"""
Integration tests for appointment booking.

These cover the doctor slot check, the public booking form, status
transitions and the list filters.
"""
from datetime import timedelta

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from clinic.authentication import issue_token
from clinic.models import Appointment, HospitalSettings, Patient, Staff, User
from clinic.utils import local_day_bounds


class AppointmentAPITests(APITestCase):
    def setUp(self) -> None:
        self.staff_user = User.objects.create_user(
            email="desk@example.com", password="secret123", name="Desk", role="staff"
        )
        self.doctor = Staff.objects.create(
            name="Dr. Strange", email="strange@example.com", role="doctor",
            department="Neurology", specialization="Neurosurgery",
        )
        self.technician = Staff.objects.create(
            name="Lab Tech", email="tech@example.com", role="technician", department="Lab",
        )
        self.patient = Patient.objects.create(name="Bruce Banner", email="bruce@example.com", phone="9222222222")
        self.day = timezone.localdate() + timedelta(days=1)
        self.client = self.authenticate(self.staff_user)

    def authenticate(self, user: User) -> APIClient:
        """Return an APIClient carrying a bearer token for the given user."""
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(user)}")
        return client

    def book(self, time="10:00", day=None, doctor=None, **extra):
        payload = {
            "patient": self.patient.id,
            "doctor": self.doctor.id if doctor is None else doctor,
            "appointmentDate": (day or self.day).isoformat(),
            "appointmentTime": time,
            "reason": "Follow-up",
        }
        payload.update(extra)
        return self.client.post(reverse("appointments"), payload, format="json")

    def test_booking_with_doctor(self):
        response = self.book()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        appointment = Appointment.objects.get(pk=response.data["data"]["appointment"]["id"])
        self.assertEqual(appointment.status, "scheduled")
        self.assertEqual(appointment.created_by, self.staff_user)
        self.assertEqual(response.data["data"]["appointment"]["doctor"]["id"], self.doctor.id)

    def test_same_slot_is_rejected(self):
        self.assertEqual(self.book().status_code, status.HTTP_201_CREATED)
        response = self.book()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"], "slot_conflict")
        self.assertEqual(Appointment.objects.count(), 1)

    def test_slot_is_per_local_day(self):
        self.book()
        # a later instant on the same local day still holds the slot
        start, _ = local_day_bounds(self.day)
        same_day = (start + timedelta(hours=15)).isoformat()
        self.assertEqual(self.book(appointmentDate=same_day).status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(self.book(day=self.day + timedelta(days=1)).status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.book(time="10:30").status_code, status.HTTP_201_CREATED)

    def test_cancelled_appointment_frees_the_slot(self):
        first = self.book().data["data"]["appointment"]["id"]
        self.assertEqual(self.book().status_code, status.HTTP_409_CONFLICT)
        response = self.client.put(
            reverse("appointment-detail", args=[first]), {"status": "cancelled"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["appointment"]["status"], "cancelled")
        self.assertEqual(self.book().status_code, status.HTTP_201_CREATED)
        self.assertEqual(Appointment.objects.filter(status="scheduled").count(), 1)

    def test_completed_appointment_frees_the_slot(self):
        first = self.book().data["data"]["appointment"]["id"]
        Appointment.objects.filter(pk=first).update(status="completed")
        self.assertEqual(self.book().status_code, status.HTTP_201_CREATED)

    def test_unknown_patient_and_non_clinical_doctor(self):
        response = self.book(patient=999999)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")
        response = self.book(doctor=self.technician.id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Doctor not found.")

    def test_validation_errors(self):
        response = self.book(time="25:00")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")
        response = self.book(appointmentDate="next tuesday")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_booking_requires_token(self):
        response = APIClient().post(reverse("appointments"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "missing_token")

    def test_booking_sends_confirmation(self):
        settings = HospitalSettings.load()
        settings.sms_notifications = False
        settings.save()
        with self.captureOnCommitCallbacks(execute=True):
            self.book()
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["bruce@example.com"])

    def test_email_switch_off_sends_nothing(self):
        settings = HospitalSettings.load()
        settings.email_notifications = False
        settings.sms_notifications = False
        settings.save()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.book()
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)

    def test_status_transitions(self):
        pk = self.book().data["data"]["appointment"]["id"]
        url = reverse("appointment-detail", args=[pk])
        response = self.client.put(url, {"status": "completed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.put(url, {"status": "confirmed"}, format="json").status_code, 200)
        self.assertEqual(self.client.put(url, {"status": "completed"}, format="json").status_code, 200)
        response = self.client.put(url, {"status": "cancelled"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Appointment.objects.get(pk=pk).status, "completed")

    def test_update_fields_and_delete(self):
        pk = self.book().data["data"]["appointment"]["id"]
        url = reverse("appointment-detail", args=[pk])
        response = self.client.put(url, {"notes": "Bring scans", "duration": 45}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["appointment"]["notes"], "Bring scans")
        response = self.client.put(url, {"reason": "<img src=x onerror=alert(1)>Chest pain"}, format="json")
        self.assertEqual(response.data["data"]["appointment"]["reason"], "Chest pain")
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_list_is_paginated(self):
        start, _ = local_day_bounds(self.day)
        for i in range(12):
            Appointment.objects.create(
                patient=self.patient, appointment_date=start + timedelta(days=i),
                appointment_time="09:00", reason="Checkup",
            )
        response = self.client.get(reverse("appointments"), {"page": 3, "limit": 5})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        pagination = response.data["data"]["pagination"]
        self.assertEqual(pagination, {"page": 3, "limit": 5, "total": 12, "pages": 3})
        self.assertEqual(len(response.data["data"]["appointments"]), 2)
        self.assertEqual(response.data["count"], 2)
        # newest appointment date first
        first_page = self.client.get(reverse("appointments"), {"limit": 5}).data["data"]["appointments"]
        dates = [a["appointmentDate"] for a in first_page]
        self.assertEqual(dates, sorted(dates, reverse=True))

    def test_list_filters_by_date_and_doctor(self):
        self.book()
        self.book(day=self.day + timedelta(days=3))
        response = self.client.get(reverse("appointments"), {"date": self.day.isoformat()})
        self.assertEqual(response.data["data"]["pagination"]["total"], 1)
        response = self.client.get(reverse("appointments"), {"doctor": self.doctor.id, "status": "scheduled"})
        self.assertEqual(response.data["data"]["pagination"]["total"], 2)
        response = self.client.get(reverse("appointments"), {"doctor": "abc"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_todays_and_doctor_lists(self):
        now = timezone.localtime()
        Appointment.objects.create(
            patient=self.patient, doctor=self.doctor, appointment_date=now, appointment_time="08:00", reason="Now",
        )
        self.book()
        today = self.client.get(reverse("appointments-today")).data
        self.assertEqual(today["count"], 1)
        doctor_list = self.client.get(reverse("appointments-doctor", args=[self.doctor.id])).data
        self.assertEqual(doctor_list["count"], 2)
        patient_list = self.client.get(reverse("appointments-patient", args=[self.patient.id])).data
        self.assertEqual(patient_list["data"]["pagination"]["total"], 2)


class PublicBookingTests(APITestCase):
    def setUp(self) -> None:
        self.day = timezone.localdate() + timedelta(days=2)

    def form(self, **overrides):
        payload = {
            "patientName": "Walk In",
            "patientEmail": "walkin@example.com",
            "patientPhone": "9333333333",
            "patientGender": "female",
            "patientAge": "",
            "patientDOB": "",
            "patientBloodGroup": "Not Specified",
            "appointmentDate": self.day.isoformat(),
            "appointmentTime": "11:00",
            "reason": "Fever",
        }
        payload.update(overrides)
        return payload

    def test_public_booking_creates_patient(self):
        response = APIClient().post(reverse("appointments-book"), self.form(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        patient = Patient.objects.get(email="walkin@example.com")
        self.assertIsNone(patient.age)
        self.assertEqual(patient.blood_group, "")
        self.assertEqual(patient.address, "Not provided")
        appointment = Appointment.objects.get()
        self.assertIsNone(appointment.doctor)
        self.assertEqual(appointment.patient, patient)

    def test_public_booking_reuses_patient_by_phone(self):
        APIClient().post(reverse("appointments-book"), self.form(), format="json")
        response = APIClient().post(
            reverse("appointments-book"),
            self.form(patientName="Walk In Again", patientEmail="other@example.com", patientAge=33),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Patient.objects.count(), 1)
        patient = Patient.objects.get()
        self.assertEqual(patient.name, "Walk In Again")
        self.assertEqual(patient.age, 33)
        self.assertEqual(Appointment.objects.count(), 2)

    def test_public_booking_requires_contact(self):
        response = APIClient().post(reverse("appointments-book"), self.form(patientEmail=""), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Patient.objects.count(), 0)

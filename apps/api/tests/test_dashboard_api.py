"""
Integration tests for GET /api/v1/dashboard/stats/.
"""
from datetime import date, time, timedelta

import pytest
from django.utils import timezone
from rest_framework import status

from apps.clinical.models import Appointment, LabReport, Prescription

ENDPOINT = '/api/v1/dashboard/stats/'


@pytest.fixture
def clinic_day(doctor_user, other_doctor_user, patient, other_patient):
    today = timezone.localdate()
    Appointment.objects.create(
        patient=patient, doctor=doctor_user, date=today, time=time(9, 0),
        purpose='Checkup', status='Completed'
    )
    Appointment.objects.create(
        patient=patient, doctor=doctor_user, date=today, time=time(11, 0), purpose='Review'
    )
    Appointment.objects.create(
        patient=other_patient, doctor=other_doctor_user, date=today, time=time(10, 0), purpose='Checkup'
    )
    Appointment.objects.create(
        patient=other_patient, doctor=doctor_user, date=today - timedelta(days=7),
        time=time(10, 0), purpose='Old visit'
    )
    Prescription.objects.create(patient=patient, doctor=doctor_user, medications=[])
    Prescription.objects.create(patient=other_patient, doctor=other_doctor_user, medications=[])
    LabReport.objects.create(patient=patient, requested_by=doctor_user, test_type='CBC')
    LabReport.objects.create(
        patient=other_patient, requested_by=other_doctor_user, test_type='LFT',
        date=date(2024, 1, 1), status='Completed'
    )


@pytest.mark.django_db
class TestDashboardStats:

    def test_doctor_scoped_counts(self, doctor_client, clinic_day):
        response = doctor_client.get(ENDPOINT)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            'total_patients': 2,
            'appointments_today': 2,
            'remaining_appointments': 1,
            'prescriptions': 1,
            'lab_reports': 2,
            'pending_reports': 1,
        }

    def test_admin_clinic_wide_counts(self, admin_client, clinic_day):
        response = admin_client.get(ENDPOINT)

        assert response.data['total_patients'] == 2
        assert response.data['appointments_today'] == 3
        assert response.data['remaining_appointments'] == 2
        assert response.data['prescriptions'] == 2

    def test_patient_forbidden(self, patient_client):
        response = patient_client.get(ENDPOINT)
        assert response.status_code == status.HTTP_403_FORBIDDEN

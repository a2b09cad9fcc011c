"""
Integration tests for Appointment API endpoints.

Tests standard and manual-entry booking, scoping, the day views and search.
"""
from datetime import date, time

import pytest
from django.utils import timezone
from rest_framework import status

from apps.clinical.models import Appointment, AppointmentStatusChoices


@pytest.fixture
def appointment(patient, doctor_user):
    return Appointment.objects.create(
        patient=patient,
        doctor=doctor_user,
        date=date(2024, 1, 10),
        time=time(10, 0),
        purpose='Checkup',
    )


@pytest.mark.django_db
class TestAppointmentCreate:
    """Test POST /api/v1/appointments/."""

    endpoint = '/api/v1/appointments/'

    def test_doctor_books_standard_appointment(self, doctor_client, doctor_user, patient):
        payload = {
            'patient': patient.patient_id,
            'date': '2024-01-10',
            'time': '10:00',
            'purpose': 'Checkup',
        }

        response = doctor_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['patient'] == 'P-1001'
        assert response.data['patient_name'] == 'Ali Khan'
        assert response.data['doctor'] == doctor_user.pk
        assert response.data['doctor_name'] == 'Dr. Imran Qureshi'
        assert response.data['time'] == '10:00'
        assert response.data['status'] == AppointmentStatusChoices.SCHEDULED
        assert response.data['manual_entry'] is False

    def test_manual_entry_without_patient(self, admin_client):
        payload = {
            'manual_entry': True,
            'patient_name': 'Bilal Walk-in',
            'doctor_name': 'Dr. Visiting',
            'date': '2024-01-11',
            'time': '02:30 PM',
            'purpose': 'Consultation',
        }

        response = admin_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['patient'] is None
        assert response.data['patient_name'] == 'Bilal Walk-in'
        assert response.data['doctor_name'] == 'Dr. Visiting'
        assert response.data['time'] == '14:30'
        assert Appointment.objects.get(pk=response.data['id']).patient is None

    def test_manual_entry_needs_patient_name(self, doctor_client):
        payload = {
            'manual_entry': True,
            'date': '2024-01-11',
            'time': '09:00',
            'purpose': 'Consultation',
        }

        response = doctor_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'patient_name' in response.data

    def test_standard_entry_needs_patient(self, doctor_client):
        payload = {'date': '2024-01-11', 'time': '09:00', 'purpose': 'Consultation'}

        response = doctor_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'patient' in response.data

    def test_unknown_patient_is_404(self, doctor_client):
        payload = {'patient': 'P-9999', 'date': '2024-01-11', 'time': '09:00', 'purpose': 'Consultation'}

        response = doctor_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Appointment.objects.count() == 0

    def test_patient_books_for_self(self, patient_client, patient):
        payload = {'patient': patient.patient_id, 'date': '2024-01-12', 'time': '11:00', 'purpose': 'Follow-up'}

        response = patient_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED

    def test_patient_cannot_book_for_other(self, patient_client, other_patient):
        payload = {'patient': other_patient.patient_id, 'date': '2024-01-12', 'time': '11:00', 'purpose': 'Follow-up'}

        response = patient_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_patient_cannot_create_manual_entry(self, patient_client):
        payload = {
            'manual_entry': True,
            'patient_name': 'Someone',
            'date': '2024-01-12',
            'time': '11:00',
            'purpose': 'Follow-up',
        }

        response = patient_client.post(self.endpoint, payload, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Appointment.objects.count() == 0


@pytest.mark.django_db
class TestAppointmentUpdate:
    """PATCH /api/v1/appointments/{id}/."""

    def test_status_update(self, doctor_client, appointment):
        response = doctor_client.patch(
            f'/api/v1/appointments/{appointment.id}/',
            {'status': 'Completed'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'Completed'
        assert response.data['purpose'] == 'Checkup'

    def test_manual_entry_flag_is_immutable(self, doctor_client, appointment):
        doctor_client.patch(
            f'/api/v1/appointments/{appointment.id}/',
            {'manual_entry': True},
            format='json'
        )

        appointment.refresh_from_db()
        assert appointment.manual_entry is False
        assert appointment.patient is not None

    def test_doctor_cannot_reassign(self, doctor_client, appointment, doctor_user, other_doctor_user):
        doctor_client.patch(
            f'/api/v1/appointments/{appointment.id}/',
            {'doctor': str(other_doctor_user.pk)},
            format='json'
        )

        appointment.refresh_from_db()
        assert appointment.doctor == doctor_user

    def test_admin_reassigns_doctor(self, admin_client, appointment, other_doctor_user):
        response = admin_client.patch(
            f'/api/v1/appointments/{appointment.id}/',
            {'doctor': str(other_doctor_user.pk)},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        appointment.refresh_from_db()
        assert appointment.doctor == other_doctor_user


@pytest.mark.django_db
class TestAppointmentList:
    """GET /api/v1/appointments/ with filters and role scoping."""

    endpoint = '/api/v1/appointments/'

    def test_patient_sees_only_own(self, patient_client, appointment, other_patient, doctor_user):
        Appointment.objects.create(
            patient=other_patient, doctor=doctor_user,
            date=date(2024, 1, 10), time=time(11, 0), purpose='Checkup'
        )

        response = patient_client.get(self.endpoint)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == 1
        assert response.data['results'][0]['id'] == str(appointment.id)

    def test_patient_cannot_read_others_appointment(self, other_patient_client, appointment):
        response = other_patient_client.get(f'/api/v1/appointments/{appointment.id}/')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_filter_by_date_range(self, doctor_client, appointment, patient, doctor_user):
        Appointment.objects.create(
            patient=patient, doctor=doctor_user,
            date=date(2024, 3, 1), time=time(9, 0), purpose='Review'
        )

        response = doctor_client.get(self.endpoint, {'date_from': '2024-02-01'})

        assert response.data['total'] == 1
        assert response.data['results'][0]['purpose'] == 'Review'

    def test_invalid_date_filter(self, doctor_client):
        response = doctor_client.get(self.endpoint, {'date_from': '10/01/2024'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'validation_error'

    def test_patient_appointments_endpoint(self, doctor_client, appointment, patient):
        response = doctor_client.get(f'/api/v1/patients/{patient.patient_id}/appointments/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data] == [str(appointment.id)]


@pytest.mark.django_db
class TestAppointmentDayViews:
    """today/ and date/{YYYY-MM-DD}/ return one day ordered by time."""

    def test_today_for_doctor(self, doctor_client, doctor_user, other_doctor_user, patient):
        today = timezone.localdate()
        late = Appointment.objects.create(
            patient=patient, doctor=doctor_user, date=today, time=time(15, 0), purpose='Review'
        )
        early = Appointment.objects.create(
            patient=patient, doctor=doctor_user, date=today, time=time(8, 30), purpose='Checkup'
        )
        Appointment.objects.create(
            patient=patient, doctor=other_doctor_user, date=today, time=time(9, 0), purpose='Other doctor'
        )

        response = doctor_client.get('/api/v1/appointments/today/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data] == [str(early.id), str(late.id)]

    def test_admin_sees_whole_day(self, admin_client, appointment, other_doctor_user, patient):
        Appointment.objects.create(
            patient=patient, doctor=other_doctor_user,
            date=date(2024, 1, 10), time=time(8, 0), purpose='Early'
        )

        response = admin_client.get('/api/v1/appointments/date/2024-01-10/')

        assert response.status_code == status.HTTP_200_OK
        assert [row['purpose'] for row in response.data] == ['Early', 'Checkup']

    def test_patient_cannot_use_day_views(self, patient_client):
        response = patient_client.get('/api/v1/appointments/today/')
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestAppointmentSearch:

    endpoint = '/api/v1/appointments/search/'

    def test_query_required(self, doctor_client):
        response = doctor_client.get(self.endpoint)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['message'] == 'Search query is required'

    def test_matches_purpose_and_patient_name(self, doctor_client, appointment):
        by_purpose = doctor_client.get(self.endpoint, {'query': 'check'})
        by_name = doctor_client.get(self.endpoint, {'query': 'khan'})

        assert [row['id'] for row in by_purpose.data] == [str(appointment.id)]
        assert [row['id'] for row in by_name.data] == [str(appointment.id)]

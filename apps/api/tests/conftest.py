"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Users and authenticated API clients per role (patient, doctor, admin)
- A patient factory going through the registration service
"""
import itertools

import pytest
from rest_framework.test import APIClient

from apps.authz.models import RoleChoices, User
from apps.clinical.services import register_patient

_emails = itertools.count(1)


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='admin@test.com',
        password='testpass123',
        first_name='Ayesha',
        last_name='Admin',
        role=RoleChoices.ADMIN,
        is_staff=True,
    )


@pytest.fixture
def doctor_user(db):
    return User.objects.create_user(
        email='doctor@test.com',
        password='testpass123',
        first_name='Imran',
        last_name='Qureshi',
        role=RoleChoices.DOCTOR,
        specialty='General Medicine',
    )


@pytest.fixture
def other_doctor_user(db):
    return User.objects.create_user(
        email='doctor2@test.com',
        password='testpass123',
        first_name='Sana',
        last_name='Malik',
        role=RoleChoices.DOCTOR,
        specialty='Cardiology',
    )


# ============================================================================
# Patients
# ============================================================================

@pytest.fixture
def make_patient(db, doctor_user):
    """
    Factory registering a patient (with a patient-role account).

    Usage:
        patient = make_patient(first_name='Ali')
    """
    def _make(**overrides):
        n = next(_emails)
        fields = {
            'first_name': 'Test',
            'last_name': f'Patient{n}',
            'email': f'patient{n}@test.com',
            'password': 'testpass123',
            'age': 34,
            'gender': 'Male',
            'blood_group': 'B+',
            'contact': '+92 300 1234567',
            'address': '12 Mall Road, Lahore',
            'emergency_contact': 'Sara +92 300 7654321',
            'condition': 'Hypertension',
            'allergies': ['Penicillin'],
        }
        fields.update(overrides)
        return register_patient(fields, created_by=doctor_user)
    return _make


@pytest.fixture
def patient(make_patient):
    """First registered patient of the test (P-1001)."""
    return make_patient(first_name='Ali', last_name='Khan', email='ali.khan@test.com')


@pytest.fixture
def other_patient(make_patient):
    return make_patient(first_name='Zara', last_name='Ahmed', email='zara.ahmed@test.com')


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def doctor_client(doctor_user):
    return _client_for(doctor_user)


@pytest.fixture
def other_doctor_client(other_doctor_user):
    return _client_for(other_doctor_user)


@pytest.fixture
def patient_client(patient):
    """Client authenticated as the ``patient`` fixture's own account."""
    return _client_for(patient.user)


@pytest.fixture
def other_patient_client(other_patient):
    return _client_for(other_patient.user)

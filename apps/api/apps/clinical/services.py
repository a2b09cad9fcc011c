"""
Patient directory: registration, lookup, merge-patch update, cascade delete.
"""
import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError, transaction

from apps.authz.models import RoleChoices, User
from apps.authz.policy import ensure_can_access, ensure_can_address_patient, ensure_role
from apps.clinical.models import (
    Appointment,
    LabReport,
    Patient,
    PatientIdentifierSequence,
    Prescription,
)
from apps.core.exceptions import NotFoundError, UnexpectedError, ValidationError
from apps.core.observability import log_domain_event, metrics

logger = logging.getLogger(__name__)

REQUIRED_PROFILE_FIELDS = ('age', 'gender', 'blood_group', 'contact', 'address', 'emergency_contact')
REQUIRED_ACCOUNT_FIELDS = ('first_name', 'last_name', 'email', 'password')
PROFILE_FIELDS = REQUIRED_PROFILE_FIELDS + ('condition', 'allergies')
USER_FIELDS = ('first_name', 'last_name', 'email')

RECENT_PATIENTS_LIMIT = 5
RECENT_APPOINTMENTS_WINDOW = 20


def _missing(fields, required):
    return [name for name in required if fields.get(name) in (None, '')]


def register_patient(profile_fields: Dict[str, Any], user: Optional[User] = None, created_by: Optional[User] = None) -> Patient:
    """
    Create a patient profile with the next public identifier.

    Without ``user`` a patient-role account is created from first_name,
    last_name, email and password. With ``user`` the profile is linked to
    that existing account, which must not already own one.
    """
    missing = _missing(profile_fields, REQUIRED_PROFILE_FIELDS)
    if user is None:
        missing += _missing(profile_fields, REQUIRED_ACCOUNT_FIELDS)
    if missing:
        raise ValidationError(
            'Missing required patient fields',
            details={name: ['This field is required.'] for name in missing}
        )

    if user is not None and Patient.objects.filter(user=user).exists():
        raise ValidationError('Patient profile already exists for this user')

    email = profile_fields.get('email')
    if user is None and User.objects.filter(email__iexact=email).exists():
        raise ValidationError('User already exists', details={'email': ['A user with this email already exists.']})

    with transaction.atomic():
        if user is None:
            user = User.objects.create_user(
                email=email,
                password=profile_fields['password'],
                first_name=profile_fields['first_name'],
                last_name=profile_fields['last_name'],
                role=RoleChoices.PATIENT,
            )
        patient = Patient.objects.create(
            patient_id=PatientIdentifierSequence.next_identifier(),
            user=user,
            created_by=created_by,
            **{name: profile_fields[name] for name in PROFILE_FIELDS if name in profile_fields}
        )

    metrics.patients_registered_total.inc()
    log_domain_event(
        'patient_registered',
        entity_type='Patient',
        entity_id=patient.patient_id,
        self_service=created_by is None or created_by.pk == user.pk,
    )
    return patient


def lookup_patient(patient_id: str) -> Patient:
    try:
        return Patient.objects.select_related('user').get(patient_id=patient_id)
    except Patient.DoesNotExist:
        raise NotFoundError('Patient not found')


def get_patient_for(actor, patient_id: str) -> Patient:
    """Look up a patient on behalf of ``actor``, enforcing the access policy."""
    ensure_can_address_patient(actor, patient_id)
    patient = lookup_patient(patient_id)
    ensure_can_access(actor, patient)
    return patient


def update_patient(patient: Patient, fields: Dict[str, Any], actor) -> Patient:
    """
    Merge-patch a patient: only keys present in ``fields`` change.

    Name and email go to the linked user account.
    """
    ensure_can_access(actor, patient)

    user_changes = {name: fields[name] for name in USER_FIELDS if name in fields}
    profile_changes = {name: fields[name] for name in PROFILE_FIELDS if name in fields}

    if 'email' in user_changes and User.objects.filter(
        email__iexact=user_changes['email']
    ).exclude(pk=patient.user_id).exists():
        raise ValidationError('Email already in use', details={'email': ['A user with this email already exists.']})

    with transaction.atomic():
        if user_changes:
            for name, value in user_changes.items():
                setattr(patient.user, name, value)
            patient.user.save(update_fields=list(user_changes) + ['updated_at'])
        if profile_changes:
            for name, value in profile_changes.items():
                setattr(patient, name, value)
            patient.save(update_fields=list(profile_changes) + ['updated_at'])

    return patient


def _delete_documents(patient):
    # Imported here: documents.services imports clinical models
    from apps.documents.services import discard_blob

    count = 0
    for document in patient.documents.all():
        discard_blob(
            document.storage_locator,
            document_id=str(document.id),
            patient_id=patient.patient_id,
        )
        document.delete()
        count += 1
    return count


def delete_patient(patient: Patient, actor) -> Dict[str, int]:
    """
    Delete a patient and everything that belongs to them.

    Order: documents (blob first, best effort), appointments, prescriptions,
    lab reports, the patient, then the user account. The steps are not
    wrapped in one transaction; a failure part-way leaves the earlier steps
    committed and is reported as UnexpectedError.
    """
    ensure_role(actor, RoleChoices.DOCTOR, RoleChoices.ADMIN)

    patient_id = patient.patient_id
    user = patient.user
    deleted = {}

    try:
        deleted['documents'] = _delete_documents(patient)
        deleted['appointments'] = Appointment.objects.filter(patient=patient).delete()[0]
        deleted['prescriptions'] = Prescription.objects.filter(patient=patient).delete()[0]
        deleted['lab_reports'] = LabReport.objects.filter(patient=patient).delete()[0]
        patient.delete()
        user.delete()
    except DatabaseError as e:
        metrics.patient_cascade_deletes_total.labels(result='failure').inc()
        log_domain_event(
            'patient_deleted',
            entity_type='Patient',
            entity_id=patient_id,
            result='failure',
            completed_steps=list(deleted),
            error=str(e),
        )
        raise UnexpectedError('Patient deletion did not complete') from e

    metrics.patient_cascade_deletes_total.labels(result='success').inc()
    log_domain_event(
        'patient_deleted',
        entity_type='Patient',
        entity_id=patient_id,
        **deleted
    )
    return deleted


def recent_patients(doctor):
    """Up to five distinct patients from the doctor's twenty latest appointments."""
    appointments = (
        Appointment.objects
        .filter(doctor=doctor, patient__isnull=False)
        .select_related('patient__user')
        .order_by('-date', '-time')[:RECENT_APPOINTMENTS_WINDOW]
    )
    patients = []
    seen = set()
    for appointment in appointments:
        if appointment.patient_id in seen:
            continue
        seen.add(appointment.patient_id)
        patients.append(appointment.patient)
        if len(patients) == RECENT_PATIENTS_LIMIT:
            break
    return patients

"""
Clinical models: patient, appointment, prescription, lab_report
"""
import uuid
from django.conf import settings
from django.db import models, transaction
from django.utils import timezone


# ============================================================================
# Enums
# ============================================================================

class GenderChoices(models.TextChoices):
    MALE = 'Male', 'Male'
    FEMALE = 'Female', 'Female'
    OTHER = 'Other', 'Other'


class AppointmentStatusChoices(models.TextChoices):
    SCHEDULED = 'Scheduled', 'Scheduled'
    IN_PROGRESS = 'In Progress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'
    CANCELLED = 'Cancelled', 'Cancelled'


class PrescriptionStatusChoices(models.TextChoices):
    ACTIVE = 'Active', 'Active'
    COMPLETED = 'Completed', 'Completed'
    CANCELLED = 'Cancelled', 'Cancelled'


class LabReportStatusChoices(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    IN_PROGRESS = 'In Progress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'
    CANCELLED = 'Cancelled', 'Cancelled'


class LabResultStatusChoices(models.TextChoices):
    NORMAL = 'Normal', 'Normal'
    ABNORMAL = 'Abnormal', 'Abnormal'
    CRITICAL = 'Critical', 'Critical'


# ============================================================================
# Patient identifiers
# ============================================================================

PATIENT_ID_PREFIX = 'P-'
PATIENT_ID_START = 1000


class PatientIdentifierSequence(models.Model):
    """
    Single-row counter behind public patient identifiers.

    ``next_identifier()`` locks the row, so two registrations never receive
    the same number. The first identifier issued is P-1001.
    """
    id = models.PositiveSmallIntegerField(primary_key=True, default=1)
    last_value = models.PositiveIntegerField(default=PATIENT_ID_START)

    class Meta:
        db_table = 'patient_identifier_sequence'
        verbose_name = 'Patient Identifier Sequence'

    @classmethod
    def next_identifier(cls):
        with transaction.atomic():
            sequence, _ = cls.objects.select_for_update().get_or_create(
                pk=1,
                defaults={'last_value': PATIENT_ID_START}
            )
            sequence.last_value += 1
            sequence.save(update_fields=['last_value'])
            return format_patient_identifier(sequence.last_value)


def format_patient_identifier(number):
    """P- followed by at least four digits (P-0042, P-1001, P-10000)."""
    return f'{PATIENT_ID_PREFIX}{number:04d}'


# ============================================================================
# Patient
# ============================================================================

class Patient(models.Model):
    """
    Patient profile linked to a patient-role user.

    ``patient_id`` is the public identifier used in every URL and response;
    it is assigned once at registration and never changes.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient_id = models.CharField(max_length=20, unique=True, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='patient_profile'
    )

    # Demographics
    age = models.PositiveSmallIntegerField()
    gender = models.CharField(max_length=10, choices=GenderChoices.choices)
    blood_group = models.CharField(max_length=5)

    # Contact
    contact = models.CharField(max_length=50)
    address = models.TextField()
    emergency_contact = models.CharField(max_length=255)

    # Clinical summary
    condition = models.CharField(max_length=255, blank=True, default='')
    allergies = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='registered_patients'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['patient_id'], name='idx_patient_public_id'),
            models.Index(fields=['created_at'], name='idx_patient_created'),
        ]

    def __str__(self):
        return f'{self.patient_id} {self.name}'

    @property
    def name(self):
        return self.user.get_full_name()


# ============================================================================
# Appointment
# ============================================================================

class Appointment(models.Model):
    """
    A booked visit.

    Standard appointments reference a Patient. Manual entries (walk-ins,
    patients without an account) have no patient and carry the names typed
    in at booking time in ``patient_name`` / ``doctor_name``; those two
    fields are not used for standard appointments, whose names are read
    from the linked patient and doctor.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='appointments'
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointments'
    )
    manual_entry = models.BooleanField(default=False)
    patient_name = models.CharField(max_length=255, blank=True, default='')
    doctor_name = models.CharField(max_length=255, blank=True, default='')

    date = models.DateField()
    time = models.TimeField()
    purpose = models.CharField(max_length=255)
    notes = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.SCHEDULED
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        indexes = [
            models.Index(fields=['patient'], name='idx_appointment_patient'),
            models.Index(fields=['doctor'], name='idx_appointment_doctor'),
            models.Index(fields=['date', 'time'], name='idx_appointment_date_time'),
            models.Index(fields=['status'], name='idx_appointment_status'),
        ]

    def __str__(self):
        return f'{self.date} {self.time} {self.purpose}'

    @property
    def display_patient_name(self):
        if self.patient_id:
            return self.patient.name
        return self.patient_name or 'Unknown Patient'

    @property
    def display_doctor_name(self):
        if self.doctor_id:
            return doctor_display_name(self.doctor)
        return self.doctor_name or 'Unknown Doctor'


# ============================================================================
# Prescription
# ============================================================================

class Prescription(models.Model):
    """
    Medications prescribed to a patient by a doctor.

    ``medications`` is an ordered list of
    ``{"name", "dosage", "frequency", "duration"}`` objects.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='prescriptions'
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='prescriptions'
    )
    date = models.DateField(default=timezone.localdate)
    medications = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')
    status = models.CharField(
        max_length=20,
        choices=PrescriptionStatusChoices.choices,
        default=PrescriptionStatusChoices.ACTIVE
    )
    source_document = models.ForeignKey(
        'documents.Document',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='prescriptions',
        help_text='Document this prescription was extracted from'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'prescription'
        verbose_name = 'Prescription'
        verbose_name_plural = 'Prescriptions'
        indexes = [
            models.Index(fields=['patient'], name='idx_prescription_patient'),
            models.Index(fields=['doctor'], name='idx_prescription_doctor'),
            models.Index(fields=['date'], name='idx_prescription_date'),
        ]

    def __str__(self):
        return f'Prescription {self.id} ({self.date})'


# ============================================================================
# Lab report
# ============================================================================

class LabReport(models.Model):
    """
    A lab test requested for a patient.

    ``results`` is an ordered list of
    ``{"test", "value", "unit", "normal_range", "status"}`` objects where
    status is Normal / Abnormal / Critical.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='lab_reports'
    )
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='requested_lab_reports'
    )
    test_type = models.CharField(max_length=255)
    lab = models.CharField(max_length=255, blank=True, default='')
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(
        max_length=20,
        choices=LabReportStatusChoices.choices,
        default=LabReportStatusChoices.PENDING
    )
    results = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')
    source_document = models.ForeignKey(
        'documents.Document',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='lab_reports',
        help_text='Document this report was extracted from'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lab_report'
        verbose_name = 'Lab Report'
        verbose_name_plural = 'Lab Reports'
        indexes = [
            models.Index(fields=['patient'], name='idx_lab_report_patient'),
            models.Index(fields=['requested_by'], name='idx_lab_report_requester'),
            models.Index(fields=['status'], name='idx_lab_report_status'),
            models.Index(fields=['date'], name='idx_lab_report_date'),
        ]

    def __str__(self):
        return f'{self.test_type} ({self.date})'


def doctor_display_name(user):
    """'Dr. First Last' for doctors, the plain full name for anyone else."""
    if user is None:
        return 'Unknown Doctor'
    full_name = user.get_full_name() or user.email
    if user.role == 'doctor':
        return f'Dr. {full_name}'
    return full_name

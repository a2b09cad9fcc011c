"""
Documents models: patient_document
"""
import uuid
from django.db import models
from django.conf import settings
from django.utils import timezone


class DocumentTypeChoices(models.TextChoices):
    PRESCRIPTION = 'prescription', 'Prescription'
    LAB_REPORT = 'lab-report', 'Lab Report'
    DOCTOR_NOTE = 'doctor-note', 'Doctor Note'
    OTHER = 'other', 'Other'


class Document(models.Model):
    """
    A file uploaded to a patient's record.

    The bytes live in the blob store under the patient's namespace;
    ``storage_locator`` is the store's handle for them and is never exposed
    as an identifier. ``processed`` flips from False to True once and only
    once (see ``apps.documents.services.process_document``).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.PROTECT,
        related_name='documents'
    )

    title = models.CharField(max_length=255, default='Untitled Document')
    type = models.CharField(
        max_length=20,
        choices=DocumentTypeChoices.choices,
        default=DocumentTypeChoices.OTHER
    )
    date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default='')
    tags = models.JSONField(default=list, blank=True)

    # Derived from the upload, never from client metadata
    original_filename = models.CharField(max_length=255)
    file_type = models.CharField(max_length=10, help_text='Lower-case extension, e.g. pdf')
    content_type = models.CharField(max_length=128)
    size_bytes = models.BigIntegerField()
    sha256 = models.CharField(max_length=64)
    storage_locator = models.CharField(max_length=512)

    processed = models.BooleanField(default=False)
    processed_at = models.DateTimeField(blank=True, null=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='uploaded_documents'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient_document'
        verbose_name = 'Document'
        verbose_name_plural = 'Documents'
        indexes = [
            models.Index(fields=['patient', 'type'], name='idx_document_patient_type'),
            models.Index(fields=['created_at'], name='idx_document_created_at'),
            models.Index(fields=['processed'], name='idx_document_processed'),
        ]

    def __str__(self):
        return self.title

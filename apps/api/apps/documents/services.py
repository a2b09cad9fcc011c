"""
Document lifecycle: upload, removal, processing.

Bytes go to the configured blob store; metadata goes to ``Document``.
Blob removal is best effort everywhere: a blob that cannot be deleted is
logged and counted, and the metadata row is deleted regardless.
"""
import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.authz.models import RoleChoices
from apps.authz.policy import ensure_can_access, ensure_role
from apps.clinical.models import LabReport, Prescription
from apps.core.exceptions import AuthorizationError, UnexpectedError, ValidationError
from apps.core.observability import log_domain_event, metrics
from apps.core.observability.events import log_blob_delete_failed
from apps.documents.extraction import Extracted, Failed, get_extraction_engine
from apps.documents.models import Document, DocumentTypeChoices
from apps.documents.storage import BlobStoreError, get_blob_store

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = ['jpeg', 'jpg', 'png', 'gif', 'pdf', 'doc', 'docx']
ALLOWED_DOCUMENT_MIMES = [
    'image/jpeg',
    'image/png',
    'image/gif',
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
]
DEFAULT_TITLE = 'Untitled Document'

PRESCRIPTION_FIELDS = ('date', 'medications', 'notes', 'status')
LAB_REPORT_FIELDS = ('date', 'test_type', 'lab', 'results', 'notes', 'status')


def max_upload_bytes():
    return getattr(settings, 'DOCUMENT_MAX_UPLOAD_BYTES', 10 * 1024 * 1024)


def parse_tags(raw):
    """Tags from a comma-separated string or a list of strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(',')
    tags = []
    for item in raw:
        tags.extend(part.strip() for part in str(item).split(','))
    return [tag for tag in tags if tag]


def file_extension(filename):
    return os.path.splitext(filename or '')[1].lstrip('.').lower()


def _reject(reason, message):
    metrics.documents_rejected_total.labels(reason=reason).inc()
    raise ValidationError(message, details={'file': [message]})


def validate_upload(uploaded_file):
    """Raise ValidationError unless the upload is an allowed type within the size cap."""
    if uploaded_file is None:
        raise ValidationError('No file uploaded', details={'file': ['This field is required.']})

    if uploaded_file.size == 0:
        _reject('empty', 'Uploaded file is empty')

    limit = max_upload_bytes()
    if uploaded_file.size > limit:
        _reject('size', f'File size exceeds maximum of {limit // (1024 * 1024)}MB')

    if file_extension(uploaded_file.name) not in ALLOWED_DOCUMENT_EXTENSIONS:
        _reject('extension', f'Invalid file type. Allowed: {", ".join(ALLOWED_DOCUMENT_EXTENSIONS)}')

    content_type = (getattr(uploaded_file, 'content_type', '') or '').split(';')[0].strip().lower()
    if content_type not in ALLOWED_DOCUMENT_MIMES:
        _reject('mime', f'Invalid MIME type. Allowed: {", ".join(ALLOWED_DOCUMENT_MIMES)}')

    return content_type


def discard_blob(locator, **context):
    """
    Delete a blob, logging instead of raising on failure.

    Returns True when the blob was removed.
    """
    if not locator:
        return False
    try:
        removed = get_blob_store().delete(locator)
    except BlobStoreError as e:
        metrics.blob_delete_failures_total.inc()
        log_blob_delete_failed(locator, e, **context)
        return False
    if not removed:
        logger.warning(
            'Blob already missing',
            extra={'event': 'blob_missing', 'locator': locator}
        )
    return removed


def upload_document(patient, uploaded_file, metadata: Optional[Dict[str, Any]], actor) -> Document:
    """
    Store an uploaded file for ``patient``.

    ``metadata`` may carry title, type, date, notes and tags. File type,
    size and checksum are derived from the upload itself.
    """
    ensure_can_access(actor, patient)
    metadata = metadata or {}

    content_type = validate_upload(uploaded_file)

    doc_type = metadata.get('type') or DocumentTypeChoices.OTHER
    if doc_type not in DocumentTypeChoices.values:
        raise ValidationError(
            'Invalid document type',
            details={'type': [f'Must be one of: {", ".join(DocumentTypeChoices.values)}']}
        )

    data = uploaded_file.read()
    sha256 = hashlib.sha256(data).hexdigest()

    store = get_blob_store()
    try:
        locator = store.put(patient.patient_id, data, uploaded_file.name, content_type)
    except BlobStoreError as e:
        raise UnexpectedError('Could not store document') from e

    fields = {
        'patient': patient,
        'title': metadata.get('title') or DEFAULT_TITLE,
        'type': doc_type,
        'notes': metadata.get('notes') or '',
        'tags': parse_tags(metadata.get('tags')),
        'original_filename': os.path.basename(uploaded_file.name)[:255],
        'file_type': file_extension(uploaded_file.name),
        'content_type': content_type,
        'size_bytes': len(data),
        'sha256': sha256,
        'storage_locator': locator,
        'uploaded_by': actor,
    }
    if metadata.get('date'):
        fields['date'] = metadata['date']

    try:
        document = Document.objects.create(**fields)
    except Exception:
        discard_blob(locator, patient_id=patient.patient_id)
        raise

    metrics.documents_uploaded_total.labels(type=doc_type).inc()
    log_domain_event(
        'document_uploaded',
        entity_type='Document',
        entity_id=str(document.id),
        entity_ids={'patient_id': patient.patient_id},
        document_type=doc_type,
        size_bytes=document.size_bytes,
    )
    return document


def remove_document(document, actor):
    """Delete a document. Allowed for the uploader, doctors and admins."""
    ensure_can_access(actor, document.patient)
    if actor.role == RoleChoices.PATIENT and document.uploaded_by_id != actor.pk:
        raise AuthorizationError('Not authorized to delete this document')

    document_id = str(document.id)
    patient_id = document.patient.patient_id
    discard_blob(document.storage_locator, document_id=document_id, patient_id=patient_id)
    document.delete()

    log_domain_event(
        'document_removed',
        entity_type='Document',
        entity_id=document_id,
        entity_ids={'patient_id': patient_id},
    )


def read_document(document, actor) -> bytes:
    """Raw bytes of a document for download."""
    ensure_can_access(actor, document.patient)
    try:
        return get_blob_store().get(document.storage_locator)
    except BlobStoreError as e:
        raise UnexpectedError('Document content is unavailable') from e


@dataclass
class ProcessingOutcome:
    document: Document
    created_record: Optional[Any] = None
    already_processed: bool = False


@metrics.track_duration(metrics.document_extraction_duration_seconds)
def _run_extraction(engine, data, declared_type, document):
    return engine.extract(data, declared_type, document=document)


def _create_record(document, actor, fields):
    if document.type == DocumentTypeChoices.PRESCRIPTION:
        values = {k: v for k, v in fields.items() if k in PRESCRIPTION_FIELDS}
        values.setdefault('date', document.date)
        return Prescription.objects.create(
            patient=document.patient,
            doctor=actor,
            source_document=document,
            **values
        )
    if document.type == DocumentTypeChoices.LAB_REPORT:
        values = {k: v for k, v in fields.items() if k in LAB_REPORT_FIELDS}
        values.setdefault('date', document.date)
        values.setdefault('test_type', document.title)
        return LabReport.objects.create(
            patient=document.patient,
            requested_by=actor,
            source_document=document,
            **values
        )
    return None


def process_document(document, actor) -> ProcessingOutcome:
    """
    Run extraction on a document and mark it processed.

    Doctors and admins only. A document is processed at most once: repeat
    calls return ``already_processed=True`` and change nothing. The
    processed flag is claimed with a conditional update, so concurrent calls
    create at most one record between them.
    """
    ensure_role(actor, RoleChoices.DOCTOR, RoleChoices.ADMIN)

    if document.processed:
        metrics.documents_processed_total.labels(outcome='already_processed').inc()
        return ProcessingOutcome(document=document, already_processed=True)

    try:
        data = get_blob_store().get(document.storage_locator)
    except BlobStoreError as e:
        raise UnexpectedError('Document content is unavailable') from e

    result = _run_extraction(get_extraction_engine(), data, document.type, document)

    if isinstance(result, Failed):
        metrics.documents_processed_total.labels(outcome='failed').inc()
        log_domain_event(
            'document_processed',
            entity_type='Document',
            entity_id=str(document.id),
            entity_ids={'patient_id': document.patient.patient_id},
            result='failure',
            reason=result.reason,
        )
        raise UnexpectedError('Document processing failed')

    with transaction.atomic():
        claimed = Document.objects.filter(pk=document.pk, processed=False).update(
            processed=True,
            processed_at=timezone.now()
        )
        document.refresh_from_db()
        if not claimed:
            metrics.documents_processed_total.labels(outcome='already_processed').inc()
            return ProcessingOutcome(document=document, already_processed=True)

        created = None
        if isinstance(result, Extracted):
            created = _create_record(document, actor, result.fields)

    outcome = 'extracted' if created is not None else 'not_applicable'
    metrics.documents_processed_total.labels(outcome=outcome).inc()
    log_domain_event(
        'document_processed',
        entity_type='Document',
        entity_id=str(document.id),
        entity_ids={'patient_id': document.patient.patient_id},
        outcome=outcome,
        created_record_id=str(created.id) if created is not None else None,
    )
    return ProcessingOutcome(document=document, created_record=created)

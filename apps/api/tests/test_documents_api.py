"""
Integration tests for patient document endpoints.

Tests upload validation and defaults, removal with best-effort blob cleanup,
download, and processing into clinical records.
"""
from unittest.mock import MagicMock, patch

import pytest
from django.conf import settings as django_settings
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status
from urllib3.exceptions import MaxRetryError

from apps.clinical.models import LabReport, Patient, Prescription
from apps.core.exceptions import ValidationError
from apps.documents.extraction import ExtractionEngine, Failed
from apps.documents.models import Document
from apps.documents.services import parse_tags, upload_document, validate_upload
from apps.documents.storage import BlobStoreError, DjangoStorageBlobStore, MinioBlobStore

PDF_BYTES = b'%PDF-1.4 prescription scan'


def pdf(name='scan.pdf', content=PDF_BYTES):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


def documents_url(patient):
    return f'/api/v1/patients/{patient.patient_id}/documents/'


def stored_blobs(patient):
    folder = django_settings.MEDIA_ROOT / patient.patient_id
    return set(folder.iterdir()) if folder.exists() else set()


@pytest.fixture
def document(patient, doctor_user):
    return upload_document(
        patient,
        pdf(),
        {'title': 'Rx January', 'type': 'prescription', 'tags': 'rx'},
        doctor_user,
    )


@pytest.fixture
def unreachable_minio():
    client = MagicMock()
    refused = MaxRetryError(None, '/patient-documents', 'Connection refused')
    for method in ('bucket_exists', 'put_object', 'stat_object', 'remove_object', 'get_object'):
        getattr(client, method).side_effect = refused
    return MinioBlobStore(client=client, bucket_name='patient-documents')


class FailingEngine(ExtractionEngine):
    def extract(self, document_bytes, declared_type, document=None):
        return Failed('Unreadable scan')


@pytest.mark.django_db
class TestDocumentUpload:
    """Test POST /api/v1/patients/{patient_id}/documents/."""

    def test_upload_with_metadata(self, doctor_client, doctor_user, patient):
        response = doctor_client.post(
            documents_url(patient),
            {
                'file': pdf(),
                'title': 'Blood work',
                'type': 'lab-report',
                'date': '2024-01-12',
                'tags': 'blood, urgent',
            },
            format='multipart'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['patient'] == patient.patient_id
        assert response.data['title'] == 'Blood work'
        assert response.data['type'] == 'lab-report'
        assert response.data['date'] == '2024-01-12'
        assert response.data['tags'] == ['blood', 'urgent']
        assert response.data['file_type'] == 'pdf'
        assert response.data['content_type'] == 'application/pdf'
        assert response.data['size_bytes'] == len(PDF_BYTES)
        assert response.data['original_filename'] == 'scan.pdf'
        assert response.data['processed'] is False
        assert 'storage_locator' not in response.data

        stored = Document.objects.get(pk=response.data['id'])
        assert stored.uploaded_by == doctor_user
        assert stored.storage_locator.startswith(f'{patient.patient_id}/')

    def test_defaults(self, doctor_client, patient):
        response = doctor_client.post(documents_url(patient), {'file': pdf()}, format='multipart')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['title'] == 'Untitled Document'
        assert response.data['type'] == 'other'
        assert response.data['tags'] == []

    def test_repeated_tag_fields(self, doctor_client, patient):
        response = doctor_client.post(
            documents_url(patient),
            {'file': pdf(), 'tags': ['follow-up', 'cardiology']},
            format='multipart'
        )

        assert response.data['tags'] == ['follow-up', 'cardiology']

    def test_executable_rejected(self, doctor_client, patient):
        upload = SimpleUploadedFile('payload.exe', b'MZ...', content_type='application/octet-stream')
        before = stored_blobs(patient)

        response = doctor_client.post(documents_url(patient), {'file': upload}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'file' in response.data['error']['details']
        assert Document.objects.count() == 0
        assert stored_blobs(patient) == before

    def test_mime_must_match_allowed_list(self, doctor_client, patient):
        upload = SimpleUploadedFile('notes.pdf', b'plain text', content_type='text/plain')

        response = doctor_client.post(documents_url(patient), {'file': upload}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_size_cap(self, doctor_client, patient, settings):
        settings.DOCUMENT_MAX_UPLOAD_BYTES = 10

        response = doctor_client.post(documents_url(patient), {'file': pdf()}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Document.objects.count() == 0

    def test_missing_file(self, doctor_client, patient):
        response = doctor_client.post(documents_url(patient), {'title': 'No file'}, format='multipart')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_invalid_type(self, doctor_client, patient):
        response = doctor_client.post(
            documents_url(patient),
            {'file': pdf(), 'type': 'x-ray'},
            format='multipart'
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_patient_uploads_own(self, patient_client, patient):
        response = patient_client.post(documents_url(patient), {'file': pdf()}, format='multipart')
        assert response.status_code == status.HTTP_201_CREATED

    def test_patient_cannot_upload_for_other(self, patient_client, other_patient):
        response = patient_client.post(documents_url(other_patient), {'file': pdf()}, format='multipart')
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_patient(self, doctor_client):
        response = doctor_client.post('/api/v1/patients/P-9999/documents/', {'file': pdf()}, format='multipart')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_patient_unknown_id_is_403(self, patient_client):
        response = patient_client.get('/api/v1/patients/P-9999/documents/')
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestUploadHelpers:

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError):
            validate_upload(pdf(content=b''))

    def test_no_file_rejected(self):
        with pytest.raises(ValidationError):
            validate_upload(None)

    def test_parse_tags(self):
        assert parse_tags(' a, b ,,c ') == ['a', 'b', 'c']
        assert parse_tags(['a', 'b, c']) == ['a', 'b', 'c']
        assert parse_tags(None) == []


@pytest.mark.django_db
class TestDocumentList:

    def test_newest_first(self, doctor_client, doctor_user, patient):
        first = upload_document(patient, pdf('one.pdf'), {'title': 'One'}, doctor_user)
        second = upload_document(patient, pdf('two.pdf'), {'title': 'Two'}, doctor_user)

        response = doctor_client.get(documents_url(patient))

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data] == [str(second.id), str(first.id)]

    def test_other_patient_denied(self, other_patient_client, patient):
        response = other_patient_client.get(documents_url(patient))
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestDocumentRemove:

    def test_doctor_removes(self, doctor_client, patient, document):
        store = DjangoStorageBlobStore()
        assert store.storage.exists(document.storage_locator)

        response = doctor_client.delete(f'{documents_url(patient)}{document.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Document.objects.filter(pk=document.pk).exists()
        assert not store.storage.exists(document.storage_locator)

    def test_blob_failure_is_logged_not_raised(self, doctor_client, patient, document):
        with patch.object(DjangoStorageBlobStore, 'delete', side_effect=BlobStoreError('disk unavailable')), \
                patch('apps.documents.services.log_blob_delete_failed') as log_failure:
            response = doctor_client.delete(f'{documents_url(patient)}{document.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Document.objects.filter(pk=document.pk).exists()
        log_failure.assert_called_once()
        assert log_failure.call_args[0][0] == document.storage_locator

    def test_unreachable_store_still_removes_metadata(self, doctor_client, patient, document, unreachable_minio):
        with patch('apps.documents.services.get_blob_store', return_value=unreachable_minio), \
                patch('apps.documents.services.log_blob_delete_failed') as log_failure:
            response = doctor_client.delete(f'{documents_url(patient)}{document.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Document.objects.filter(pk=document.pk).exists()
        log_failure.assert_called_once()

    def test_unreachable_store_does_not_block_patient_delete(self, doctor_client, patient, document, unreachable_minio):
        with patch('apps.documents.services.get_blob_store', return_value=unreachable_minio), \
                patch('apps.documents.services.log_blob_delete_failed'):
            response = doctor_client.delete(f'/api/v1/patients/{patient.patient_id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Document.objects.filter(pk=document.pk).exists()
        assert not Patient.objects.filter(pk=patient.pk).exists()

    def test_patient_cannot_remove_doctor_upload(self, patient_client, patient, document):
        response = patient_client.delete(f'{documents_url(patient)}{document.id}/')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Document.objects.filter(pk=document.pk).exists()

    def test_patient_removes_own_upload(self, patient_client, patient):
        own = upload_document(patient, pdf(), {}, patient.user)

        response = patient_client.delete(f'{documents_url(patient)}{own.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT

    def test_document_of_other_patient_is_404(self, doctor_client, other_patient, document):
        response = doctor_client.delete(f'{documents_url(other_patient)}{document.id}/')
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestDocumentDownload:

    def test_download_bytes(self, patient_client, patient, document):
        response = patient_client.get(f'{documents_url(patient)}{document.id}/download/')

        assert response.status_code == status.HTTP_200_OK
        assert response.content == PDF_BYTES
        assert response['Content-Type'] == 'application/pdf'
        assert 'scan.pdf' in response['Content-Disposition']


@pytest.mark.django_db
class TestDocumentProcess:
    """POST /api/v1/patients/{patient_id}/documents/{id}/process/."""

    def url(self, patient, document):
        return f'{documents_url(patient)}{document.id}/process/'

    def test_prescription_document_creates_prescription(self, doctor_client, doctor_user, patient, document):
        response = doctor_client.post(self.url(patient, document))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['already_processed'] is False
        assert response.data['document']['processed'] is True
        assert response.data['created_record']['type'] == 'prescription'

        prescription = Prescription.objects.get()
        assert prescription.source_document_id == document.id
        assert prescription.patient == patient
        assert prescription.doctor == doctor_user
        assert prescription.notes == 'Created from document "Rx January"'

    def test_processing_is_idempotent(self, doctor_client, patient, document):
        doctor_client.post(self.url(patient, document))
        response = doctor_client.post(self.url(patient, document))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['already_processed'] is True
        assert response.data['created_record'] is None
        assert Prescription.objects.count() == 1

    def test_lab_report_document(self, admin_client, admin_user, patient, doctor_user):
        document = upload_document(patient, pdf(), {'title': 'Thyroid Panel', 'type': 'lab-report'}, doctor_user)

        response = admin_client.post(self.url(patient, document))

        assert response.data['created_record']['type'] == 'lab-report'
        report = LabReport.objects.get()
        assert report.test_type == 'Thyroid Panel'
        assert report.status == 'Completed'
        assert report.requested_by == admin_user

    def test_doctor_note_creates_no_record(self, doctor_client, doctor_user, patient):
        document = upload_document(patient, pdf(), {'type': 'doctor-note'}, doctor_user)

        response = doctor_client.post(self.url(patient, document))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['created_record'] is None
        assert response.data['document']['processed'] is True
        assert Prescription.objects.count() == 0
        assert LabReport.objects.count() == 0

    def test_failed_extraction_leaves_document_unprocessed(self, doctor_client, patient, document):
        with patch('apps.documents.services.get_extraction_engine', return_value=FailingEngine()):
            response = doctor_client.post(self.url(patient, document))

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data['error']['code'] == 'unexpected_error'
        document.refresh_from_db()
        assert document.processed is False
        assert Prescription.objects.count() == 0

    def test_patient_cannot_process(self, patient_client, patient, document):
        response = patient_client.post(self.url(patient, document))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        document.refresh_from_db()
        assert document.processed is False

"""
Patient document endpoints.
"""
import logging

from django.http import HttpResponse
from rest_framework import status, viewsets
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.clinical.serializers import LabReportSerializer, PrescriptionSerializer
from apps.clinical.models import LabReport, Prescription
from apps.clinical.services import get_patient_for
from apps.core.exceptions import NotFoundError
from apps.documents import services
from apps.documents.models import Document
from apps.documents.serializers import DocumentSerializer, DocumentUploadSerializer

logger = logging.getLogger(__name__)


def _created_record_payload(record):
    if isinstance(record, Prescription):
        return {'type': 'prescription', 'data': PrescriptionSerializer(record).data}
    if isinstance(record, LabReport):
        return {'type': 'lab-report', 'data': LabReportSerializer(record).data}
    return None


class PatientDocumentViewSet(viewsets.ViewSet):
    """
    ViewSet for a patient's documents.

    Endpoints:
    - GET /patients/{patient_id}/documents/ - List, newest first
    - POST /patients/{patient_id}/documents/ - Upload (multipart: file, title, type, date, notes, tags)
    - DELETE /patients/{patient_id}/documents/{document_id}/ - Remove (uploader, doctor, admin)
    - POST /patients/{patient_id}/documents/{document_id}/process/ - Extract a record (doctor, admin)
    - GET /patients/{patient_id}/documents/{document_id}/download/ - File bytes
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def _patient(self, patient_id):
        return get_patient_for(self.request.user, patient_id)

    def _document(self, patient, document_id):
        try:
            return Document.objects.select_related('patient__user', 'uploaded_by').get(
                pk=document_id,
                patient=patient
            )
        except Document.DoesNotExist:
            raise NotFoundError('Document not found')

    def list(self, request, patient_id=None):
        patient = self._patient(patient_id)
        documents = patient.documents.select_related('patient', 'uploaded_by').order_by('-created_at')

        doc_type = request.query_params.get('type')
        if doc_type:
            documents = documents.filter(type=doc_type)

        return Response(DocumentSerializer(documents, many=True).data)

    def create(self, request, patient_id=None):
        patient = self._patient(patient_id)

        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        metadata = dict(serializer.validated_data)

        tags = request.data.getlist('tags') if hasattr(request.data, 'getlist') else request.data.get('tags')
        if isinstance(tags, list) and len(tags) == 1:
            tags = tags[0]
        metadata['tags'] = tags

        document = services.upload_document(patient, request.FILES.get('file'), metadata, request.user)
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, patient_id=None, document_id=None):
        patient = self._patient(patient_id)
        document = self._document(patient, document_id)
        services.remove_document(document, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def process(self, request, patient_id=None, document_id=None):
        patient = self._patient(patient_id)
        document = self._document(patient, document_id)
        outcome = services.process_document(document, request.user)

        if outcome.already_processed:
            message = 'Document was already processed'
        else:
            message = 'Document processed successfully'

        return Response({
            'message': message,
            'already_processed': outcome.already_processed,
            'document': DocumentSerializer(outcome.document).data,
            'created_record': _created_record_payload(outcome.created_record),
        })

    def download(self, request, patient_id=None, document_id=None):
        patient = self._patient(patient_id)
        document = self._document(patient, document_id)
        data = services.read_document(document, request.user)

        response = HttpResponse(data, content_type=document.content_type)
        response['Content-Disposition'] = f'attachment; filename="{document.original_filename}"'
        response['Content-Length'] = str(len(data))
        return response

"""
Documents serializers.
"""
from rest_framework import serializers

from apps.clinical.models import doctor_display_name
from apps.documents.models import Document, DocumentTypeChoices


class DocumentSerializer(serializers.ModelSerializer):
    """Document metadata. The storage locator is internal and never returned."""
    patient = serializers.CharField(source='patient.patient_id', read_only=True)
    uploaded_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id',
            'patient',
            'title',
            'type',
            'date',
            'notes',
            'tags',
            'original_filename',
            'file_type',
            'content_type',
            'size_bytes',
            'sha256',
            'processed',
            'processed_at',
            'uploaded_by',
            'uploaded_by_name',
            'created_at',
        ]
        read_only_fields = fields

    def get_uploaded_by_name(self, obj):
        if obj.uploaded_by is None:
            return None
        return doctor_display_name(obj.uploaded_by)


class DocumentUploadSerializer(serializers.Serializer):
    """
    Multipart metadata sent alongside ``file``.

    Tags are read from the raw request (comma-separated string or repeated
    ``tags`` fields).
    """
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=DocumentTypeChoices.choices, required=False)
    date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

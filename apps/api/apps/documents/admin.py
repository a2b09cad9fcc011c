from django.contrib import admin
from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = [
        'title',
        'patient',
        'type',
        'file_type',
        'size_bytes',
        'processed',
        'uploaded_by',
        'created_at'
    ]
    list_filter = ['type', 'processed', 'file_type', 'created_at']
    search_fields = ['title', 'patient__patient_id', 'sha256']
    readonly_fields = [
        'id',
        'original_filename',
        'file_type',
        'content_type',
        'size_bytes',
        'sha256',
        'storage_locator',
        'processed',
        'processed_at',
        'created_at',
        'updated_at',
    ]
    autocomplete_fields = ['uploaded_by']

    fieldsets = (
        ('Document Info', {
            'fields': ('id', 'patient', 'title', 'type', 'date', 'notes', 'tags')
        }),
        ('File Metadata', {
            'fields': ('original_filename', 'file_type', 'content_type', 'size_bytes', 'sha256', 'storage_locator')
        }),
        ('Processing', {
            'fields': ('processed', 'processed_at')
        }),
        ('Audit', {
            'fields': ('uploaded_by', 'created_at', 'updated_at')
        }),
    )

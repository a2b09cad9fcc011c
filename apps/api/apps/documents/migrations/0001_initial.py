# Generated migration for documents app

import uuid
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(default='Untitled Document', max_length=255)),
                ('type', models.CharField(
                    choices=[
                        ('prescription', 'Prescription'),
                        ('lab-report', 'Lab Report'),
                        ('doctor-note', 'Doctor Note'),
                        ('other', 'Other')
                    ],
                    default='other',
                    max_length=20
                )),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('notes', models.TextField(blank=True, default='')),
                ('tags', models.JSONField(blank=True, default=list)),
                ('original_filename', models.CharField(max_length=255)),
                ('file_type', models.CharField(help_text='Lower-case extension, e.g. pdf', max_length=10)),
                ('content_type', models.CharField(max_length=128)),
                ('size_bytes', models.BigIntegerField()),
                ('sha256', models.CharField(max_length=64)),
                ('storage_locator', models.CharField(max_length=512)),
                ('processed', models.BooleanField(default=False)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='documents', to='clinical.patient')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='uploaded_documents', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
                'db_table': 'patient_document',
            },
        ),
        migrations.AddIndex(
            model_name='document',
            index=models.Index(fields=['patient', 'type'], name='idx_document_patient_type'),
        ),
        migrations.AddIndex(
            model_name='document',
            index=models.Index(fields=['created_at'], name='idx_document_created_at'),
        ),
        migrations.AddIndex(
            model_name='document',
            index=models.Index(fields=['processed'], name='idx_document_processed'),
        ),
    ]

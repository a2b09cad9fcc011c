# Generated migration for clinical app

import uuid
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PatientIdentifierSequence',
            fields=[
                ('id', models.PositiveSmallIntegerField(default=1, primary_key=True, serialize=False)),
                ('last_value', models.PositiveIntegerField(default=1000)),
            ],
            options={
                'verbose_name': 'Patient Identifier Sequence',
                'db_table': 'patient_identifier_sequence',
            },
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('patient_id', models.CharField(editable=False, max_length=20, unique=True)),
                ('age', models.PositiveSmallIntegerField()),
                ('gender', models.CharField(choices=[('Male', 'Male'), ('Female', 'Female'), ('Other', 'Other')], max_length=10)),
                ('blood_group', models.CharField(max_length=5)),
                ('contact', models.CharField(max_length=50)),
                ('address', models.TextField()),
                ('emergency_contact', models.CharField(max_length=255)),
                ('condition', models.CharField(blank=True, default='', max_length=255)),
                ('allergies', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='registered_patients', to=settings.AUTH_USER_MODEL)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='patient_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('manual_entry', models.BooleanField(default=False)),
                ('patient_name', models.CharField(blank=True, default='', max_length=255)),
                ('doctor_name', models.CharField(blank=True, default='', max_length=255)),
                ('date', models.DateField()),
                ('time', models.TimeField()),
                ('purpose', models.CharField(max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('status', models.CharField(
                    choices=[
                        ('Scheduled', 'Scheduled'),
                        ('In Progress', 'In Progress'),
                        ('Completed', 'Completed'),
                        ('Cancelled', 'Cancelled')
                    ],
                    default='Scheduled',
                    max_length=20
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='appointments', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
            },
        ),
        migrations.CreateModel(
            name='Prescription',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('medications', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('status', models.CharField(
                    choices=[
                        ('Active', 'Active'),
                        ('Completed', 'Completed'),
                        ('Cancelled', 'Cancelled')
                    ],
                    default='Active',
                    max_length=20
                )),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('doctor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='prescriptions', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='prescriptions', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Prescription',
                'verbose_name_plural': 'Prescriptions',
                'db_table': 'prescription',
            },
        ),
        migrations.CreateModel(
            name='LabReport',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('test_type', models.CharField(max_length=255)),
                ('lab', models.CharField(blank=True, default='', max_length=255)),
                ('date', models.DateField(default=django.utils.timezone.localdate)),
                ('status', models.CharField(
                    choices=[
                        ('Pending', 'Pending'),
                        ('In Progress', 'In Progress'),
                        ('Completed', 'Completed'),
                        ('Cancelled', 'Cancelled')
                    ],
                    default='Pending',
                    max_length=20
                )),
                ('results', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lab_reports', to='clinical.patient')),
                ('requested_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='requested_lab_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Lab Report',
                'verbose_name_plural': 'Lab Reports',
                'db_table': 'lab_report',
            },
        ),
        migrations.AddIndex(
            model_name='patient',
            index=models.Index(fields=['patient_id'], name='idx_patient_public_id'),
        ),
        migrations.AddIndex(
            model_name='patient',
            index=models.Index(fields=['created_at'], name='idx_patient_created'),
        ),
        migrations.AddIndex(
            model_name='appointment',
            index=models.Index(fields=['patient'], name='idx_appointment_patient'),
        ),
        migrations.AddIndex(
            model_name='appointment',
            index=models.Index(fields=['doctor'], name='idx_appointment_doctor'),
        ),
        migrations.AddIndex(
            model_name='appointment',
            index=models.Index(fields=['date', 'time'], name='idx_appointment_date_time'),
        ),
        migrations.AddIndex(
            model_name='appointment',
            index=models.Index(fields=['status'], name='idx_appointment_status'),
        ),
        migrations.AddIndex(
            model_name='prescription',
            index=models.Index(fields=['patient'], name='idx_prescription_patient'),
        ),
        migrations.AddIndex(
            model_name='prescription',
            index=models.Index(fields=['doctor'], name='idx_prescription_doctor'),
        ),
        migrations.AddIndex(
            model_name='prescription',
            index=models.Index(fields=['date'], name='idx_prescription_date'),
        ),
        migrations.AddIndex(
            model_name='labreport',
            index=models.Index(fields=['patient'], name='idx_lab_report_patient'),
        ),
        migrations.AddIndex(
            model_name='labreport',
            index=models.Index(fields=['requested_by'], name='idx_lab_report_requester'),
        ),
        migrations.AddIndex(
            model_name='labreport',
            index=models.Index(fields=['status'], name='idx_lab_report_status'),
        ),
        migrations.AddIndex(
            model_name='labreport',
            index=models.Index(fields=['date'], name='idx_lab_report_date'),
        ),
    ]

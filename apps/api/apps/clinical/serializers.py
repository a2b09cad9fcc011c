"""
Clinical serializers: patients, appointments, prescriptions, lab reports.
"""
from rest_framework import serializers

from apps.authz.models import RoleChoices, User
from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    GenderChoices,
    LabReport,
    LabReportStatusChoices,
    LabResultStatusChoices,
    Patient,
    Prescription,
    PrescriptionStatusChoices,
    doctor_display_name,
)
from apps.clinical.services import lookup_patient

TIME_INPUT_FORMATS = ['%H:%M', '%H:%M:%S', '%I:%M %p']
TIME_OUTPUT_FORMAT = '%H:%M'


class StringListField(serializers.ListField):
    """List of strings; a comma-separated string is accepted too."""
    child = serializers.CharField(allow_blank=False, trim_whitespace=True)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [part for part in (p.strip() for p in data.split(',')) if part]
        return super().to_internal_value(data)


class PatientReferenceField(serializers.Field):
    """Patient addressed by public id (P-####). Unknown ids are a 404."""

    def to_internal_value(self, data):
        if not isinstance(data, str) or not data.strip():
            raise serializers.ValidationError('A patient id is required.')
        return lookup_patient(data.strip())

    def to_representation(self, value):
        return value.patient_id if value else None


# ============================================================================
# Patients
# ============================================================================

class PatientListSerializer(serializers.ModelSerializer):
    """Serializer for Patient list view (lightweight)"""
    id = serializers.CharField(source='patient_id', read_only=True)
    name = serializers.CharField(read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'patient_id',
            'name',
            'email',
            'age',
            'gender',
            'blood_group',
            'contact',
            'condition',
            'created_at',
        ]
        read_only_fields = fields


class PatientDetailSerializer(serializers.ModelSerializer):
    """Patient with the linked account's name and email."""
    id = serializers.CharField(source='patient_id', read_only=True)
    user_id = serializers.UUIDField(source='user.id', read_only=True)
    name = serializers.CharField(read_only=True)
    first_name = serializers.CharField(source='user.first_name', read_only=True)
    last_name = serializers.CharField(source='user.last_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'patient_id',
            'user_id',
            'name',
            'first_name',
            'last_name',
            'email',
            'age',
            'gender',
            'blood_group',
            'contact',
            'address',
            'emergency_contact',
            'condition',
            'allergies',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PatientRecordsSerializer(PatientDetailSerializer):
    """Patient detail with embedded appointments, prescriptions and lab reports."""
    appointments = serializers.SerializerMethodField()
    prescriptions = serializers.SerializerMethodField()
    lab_reports = serializers.SerializerMethodField()

    class Meta(PatientDetailSerializer.Meta):
        fields = PatientDetailSerializer.Meta.fields + ['appointments', 'prescriptions', 'lab_reports']
        read_only_fields = fields

    def get_appointments(self, obj):
        queryset = obj.appointments.select_related('doctor').order_by('-date', '-time')
        return AppointmentSerializer(queryset, many=True).data

    def get_prescriptions(self, obj):
        queryset = obj.prescriptions.select_related('doctor').order_by('-date', '-created_at')
        return PrescriptionSerializer(queryset, many=True).data

    def get_lab_reports(self, obj):
        queryset = obj.lab_reports.select_related('requested_by').order_by('-date', '-created_at')
        return LabReportSerializer(queryset, many=True).data


class PatientProfileFieldsSerializer(serializers.Serializer):
    """Demographic fields shared by registration and update."""
    age = serializers.IntegerField(min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=GenderChoices.choices)
    blood_group = serializers.CharField(max_length=5)
    contact = serializers.CharField(max_length=50)
    address = serializers.CharField()
    emergency_contact = serializers.CharField(max_length=255)
    condition = serializers.CharField(max_length=255, required=False, allow_blank=True)
    allergies = StringListField(required=False)


class PatientRegistrationSerializer(PatientProfileFieldsSerializer):
    """
    POST /api/v1/patients/ (staff registering a new patient account)
    POST /api/v1/patients/profile/ (patient completing their own profile)

    Account fields are required only when ``context['create_account']`` is set.
    """
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField(write_only=True, min_length=6, required=False, style={'input_type': 'password'})

    def validate(self, attrs):
        if self.context.get('create_account'):
            missing = [
                name for name in ('first_name', 'last_name', 'email', 'password')
                if not attrs.get(name)
            ]
            if missing:
                raise serializers.ValidationError({name: ['This field is required.'] for name in missing})
        return attrs


class PatientUpdateSerializer(PatientProfileFieldsSerializer):
    """Merge-patch body: every field optional, only present keys are applied."""
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()


# ============================================================================
# Appointments
# ============================================================================

class AppointmentSerializer(serializers.ModelSerializer):
    """Appointment as returned by every appointment endpoint."""
    patient = PatientReferenceField(read_only=True)
    patient_name = serializers.CharField(source='display_patient_name', read_only=True)
    doctor_name = serializers.CharField(source='display_doctor_name', read_only=True)
    time = serializers.TimeField(format=TIME_OUTPUT_FORMAT, read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient',
            'patient_name',
            'doctor',
            'doctor_name',
            'date',
            'time',
            'purpose',
            'notes',
            'status',
            'manual_entry',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class AppointmentWriteSerializer(serializers.ModelSerializer):
    """
    Create/update an appointment.

    Manual entries (``manual_entry=true``) need ``patient_name`` and are stored
    without a patient. Standard entries need ``patient`` (a P-#### id).
    ``manual_entry`` cannot change after creation. Only admins may reassign
    the doctor of an existing appointment.
    """
    patient = PatientReferenceField(required=False, allow_null=True)
    doctor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(role=RoleChoices.DOCTOR),
        required=False,
        allow_null=True
    )
    time = serializers.TimeField(input_formats=TIME_INPUT_FORMATS, format=TIME_OUTPUT_FORMAT)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices, required=False)
    manual_entry = serializers.BooleanField(required=False, default=False)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient',
            'patient_name',
            'doctor',
            'doctor_name',
            'date',
            'time',
            'purpose',
            'notes',
            'status',
            'manual_entry',
        ]
        read_only_fields = ['id']

    def validate(self, attrs):
        if self.instance is None:
            if attrs.get('manual_entry'):
                if not attrs.get('patient_name'):
                    raise serializers.ValidationError({'patient_name': ['Patient name is required for manual entry.']})
                attrs['patient'] = None
            else:
                if not attrs.get('patient'):
                    raise serializers.ValidationError({'patient': ['Patient is required.']})
                attrs['patient_name'] = ''
                attrs['doctor_name'] = ''
        else:
            attrs.pop('manual_entry', None)
            if self.instance.manual_entry:
                attrs.pop('patient', None)
            else:
                if 'patient' in attrs and attrs['patient'] is None:
                    raise serializers.ValidationError({'patient': ['Patient is required.']})
                attrs.pop('patient_name', None)
                attrs.pop('doctor_name', None)
        return attrs

    def create(self, validated_data):
        actor = self.context['request'].user
        if not validated_data.get('doctor') and actor.role == RoleChoices.DOCTOR:
            validated_data['doctor'] = actor
        return super().create(validated_data)

    def update(self, instance, validated_data):
        actor = self.context['request'].user
        if actor.role != RoleChoices.ADMIN:
            validated_data.pop('doctor', None)
        return super().update(instance, validated_data)


# ============================================================================
# Prescriptions
# ============================================================================

class MedicationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    dosage = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    frequency = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    duration = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class PrescriptionSerializer(serializers.ModelSerializer):
    patient = PatientReferenceField(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    doctor_name = serializers.SerializerMethodField()

    class Meta:
        model = Prescription
        fields = [
            'id',
            'patient',
            'patient_name',
            'doctor',
            'doctor_name',
            'date',
            'medications',
            'notes',
            'status',
            'source_document',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj):
        return doctor_display_name(obj.doctor)


class PrescriptionWriteSerializer(serializers.ModelSerializer):
    """Doctors create prescriptions for a patient; ``doctor`` is the acting user."""
    patient = PatientReferenceField()
    medications = serializers.ListField(child=MedicationSerializer(), allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=PrescriptionStatusChoices.choices, required=False)

    class Meta:
        model = Prescription
        fields = ['id', 'patient', 'date', 'medications', 'notes', 'status']
        read_only_fields = ['id']

    def validate_medications(self, value):
        return [dict(item) for item in value]

    def update(self, instance, validated_data):
        # A prescription stays with the patient it was written for
        validated_data.pop('patient', None)
        return super().update(instance, validated_data)


# ============================================================================
# Lab reports
# ============================================================================

class LabResultSerializer(serializers.Serializer):
    test = serializers.CharField(max_length=255)
    value = serializers.CharField(max_length=100)
    unit = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    normal_range = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(
        choices=LabResultStatusChoices.choices,
        required=False,
        default=LabResultStatusChoices.NORMAL
    )


class LabReportSerializer(serializers.ModelSerializer):
    patient = PatientReferenceField(read_only=True)
    patient_name = serializers.CharField(source='patient.name', read_only=True)
    requested_by_name = serializers.SerializerMethodField()

    class Meta:
        model = LabReport
        fields = [
            'id',
            'patient',
            'patient_name',
            'requested_by',
            'requested_by_name',
            'test_type',
            'lab',
            'date',
            'status',
            'results',
            'notes',
            'source_document',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_requested_by_name(self, obj):
        return doctor_display_name(obj.requested_by)


class LabReportWriteSerializer(serializers.ModelSerializer):
    """Doctors request lab reports; ``requested_by`` is the acting user."""
    patient = PatientReferenceField()
    lab = serializers.CharField(max_length=255, required=False, allow_blank=True)
    results = serializers.ListField(child=LabResultSerializer(), required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=LabReportStatusChoices.choices, required=False)

    class Meta:
        model = LabReport
        fields = ['id', 'patient', 'test_type', 'lab', 'date', 'status', 'results', 'notes']
        read_only_fields = ['id']

    def validate_results(self, value):
        return [dict(item) for item in value]

    def update(self, instance, validated_data):
        validated_data.pop('patient', None)
        return super().update(instance, validated_data)

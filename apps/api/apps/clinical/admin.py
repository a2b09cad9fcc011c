from django.contrib import admin
from .models import Appointment, LabReport, Patient, PatientIdentifierSequence, Prescription


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['patient_id', 'user', 'age', 'gender', 'blood_group', 'created_at']
    list_filter = ['gender', 'blood_group']
    search_fields = ['patient_id', 'user__email', 'user__first_name', 'user__last_name']
    readonly_fields = ['id', 'patient_id', 'created_at', 'updated_at']
    autocomplete_fields = ['user']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['date', 'time', 'purpose', 'patient', 'patient_name', 'doctor', 'status', 'manual_entry']
    list_filter = ['status', 'manual_entry', 'date']
    search_fields = ['purpose', 'patient__patient_id', 'patient_name', 'doctor_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    date_hierarchy = 'date'


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ['id', 'patient', 'doctor', 'date', 'status']
    list_filter = ['status']
    search_fields = ['patient__patient_id', 'notes']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(LabReport)
class LabReportAdmin(admin.ModelAdmin):
    list_display = ['test_type', 'patient', 'requested_by', 'lab', 'date', 'status']
    list_filter = ['status']
    search_fields = ['test_type', 'lab', 'patient__patient_id']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(PatientIdentifierSequence)
class PatientIdentifierSequenceAdmin(admin.ModelAdmin):
    list_display = ['id', 'last_value']

    def has_add_permission(self, request):
        # Created on first registration
        return False

    def has_delete_permission(self, request, obj=None):
        return False

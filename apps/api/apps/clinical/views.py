"""
Clinical viewsets: patients, appointments, prescriptions, lab reports, dashboard.
"""
import logging
from datetime import datetime

from django.db.models import Q, TextField
from django.db.models.functions import Cast
from django.http import JsonResponse
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.models import RoleChoices
from apps.authz.permissions import IsDoctor, IsDoctorOrAdmin, IsPatient
from apps.authz.policy import ensure_can_access, ensure_can_modify, ensure_role
from apps.clinical import services
from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    LabReport,
    LabReportStatusChoices,
    Patient,
    Prescription,
    doctor_display_name,
)
from apps.clinical.serializers import (
    AppointmentSerializer,
    AppointmentWriteSerializer,
    LabReportSerializer,
    LabReportWriteSerializer,
    PatientDetailSerializer,
    PatientListSerializer,
    PatientRecordsSerializer,
    PatientRegistrationSerializer,
    PatientUpdateSerializer,
    PrescriptionSerializer,
    PrescriptionWriteSerializer,
)
from apps.clinical.timeline import build_history
from apps.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _patient_name_q(prefix, term):
    return (
        Q(**{f'{prefix}user__first_name__icontains': term}) |
        Q(**{f'{prefix}user__last_name__icontains': term})
    )


def _scope_to_actor(queryset, user):
    """Patients only ever see records attached to their own profile."""
    if user.role == RoleChoices.PATIENT:
        return queryset.filter(patient__user=user)
    return queryset


def _json_attachment(payload, filename):
    response = JsonResponse(payload, json_dumps_params={'indent': 2})
    response['Content-Disposition'] = f'attachment; filename={filename}'
    return response


class PatientViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Patient endpoints.

    Endpoints:
    - GET /api/v1/patients/ - List patients (doctor/admin; ?search=)
    - POST /api/v1/patients/ - Register patient with a new account (doctor/admin)
    - GET /api/v1/patients/{patient_id}/ - Detail with appointments, prescriptions, lab reports
    - PUT/PATCH /api/v1/patients/{patient_id}/ - Merge-patch update
    - DELETE /api/v1/patients/{patient_id}/ - Cascade delete (doctor/admin)
    - GET/POST /api/v1/patients/profile/ - Own profile (patients)
    - GET /api/v1/patients/recent/ - Recently seen patients (doctor/admin)
    - GET /api/v1/patients/{patient_id}/history/ - Timeline
    - GET /api/v1/patients/{patient_id}/appointments/ - Patient's appointments
    """
    lookup_field = 'patient_id'
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action in ('list', 'create', 'destroy', 'recent'):
            return [IsDoctorOrAdmin()]
        if self.action == 'profile':
            return [IsPatient()]
        return [IsAuthenticated()]

    def get_queryset(self):
        queryset = Patient.objects.select_related('user')

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                _patient_name_q('', search) |
                Q(user__email__icontains=search) |
                Q(patient_id__icontains=search) |
                Q(condition__icontains=search)
            )

        return queryset.order_by('-created_at')

    def get_object(self):
        return services.get_patient_for(self.request.user, self.kwargs[self.lookup_field])

    def get_serializer_class(self):
        if self.action in ('list', 'recent'):
            return PatientListSerializer
        if self.action == 'retrieve':
            return PatientRecordsSerializer
        return PatientDetailSerializer

    def create(self, request, *args, **kwargs):
        serializer = PatientRegistrationSerializer(data=request.data, context={'create_account': True})
        serializer.is_valid(raise_exception=True)
        patient = services.register_patient(serializer.validated_data, created_by=request.user)
        return Response(PatientDetailSerializer(patient).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        # PUT and PATCH are both merge-patch
        patient = self.get_object()
        serializer = PatientUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        patient = services.update_patient(patient, serializer.validated_data, request.user)
        return Response(PatientDetailSerializer(patient).data)

    def destroy(self, request, *args, **kwargs):
        patient = self.get_object()
        services.delete_patient(patient, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get', 'post'], url_path='profile')
    def profile(self, request):
        """Own patient profile: GET to read, POST to create it once."""
        if request.method == 'GET':
            patient = Patient.objects.select_related('user').filter(user=request.user).first()
            if patient is None:
                raise NotFoundError('Patient profile not found')
            return Response(PatientRecordsSerializer(patient).data)

        serializer = PatientRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        patient = services.register_patient(serializer.validated_data, user=request.user, created_by=request.user)
        return Response(PatientDetailSerializer(patient).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'], url_path='recent')
    def recent(self, request):
        patients = services.recent_patients(request.user)
        return Response(PatientListSerializer(patients, many=True).data)

    @action(detail=True, methods=['get'], url_path='history')
    def history(self, request, patient_id=None):
        patient = self.get_object()
        events = build_history(patient, request.user)
        return Response({
            'id': patient.patient_id,
            'name': patient.name,
            'history': [event.as_dict() for event in events],
        })

    @action(detail=True, methods=['get'], url_path='appointments')
    def appointments(self, request, patient_id=None):
        patient = self.get_object()
        queryset = patient.appointments.select_related('doctor').order_by('-date', '-time')
        return Response(AppointmentSerializer(queryset, many=True).data)


class AppointmentViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Appointment endpoints.

    Endpoints:
    - GET /api/v1/appointments/ - List (patients see their own)
    - POST /api/v1/appointments/ - Book (standard or manual entry)
    - GET /api/v1/appointments/{id}/
    - PUT/PATCH /api/v1/appointments/{id}/ - Merge-patch update
    - DELETE /api/v1/appointments/{id}/
    - GET /api/v1/appointments/today/ - Today's, by time (doctor/admin)
    - GET /api/v1/appointments/date/{YYYY-MM-DD}/ - One day, by time
    - GET /api/v1/appointments/search/?query= - Free-text search

    Query parameters (list):
    - status, patient (P-####), date_from, date_to (YYYY-MM-DD), search
    """
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ('today', 'by_date'):
            return [IsDoctorOrAdmin()]
        return super().get_permissions()

    def base_queryset(self):
        queryset = Appointment.objects.select_related('patient__user', 'doctor')
        return _scope_to_actor(queryset, self.request.user)

    def get_queryset(self):
        queryset = self.base_queryset()
        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        patient_id = params.get('patient')
        if patient_id:
            queryset = queryset.filter(patient__patient_id=patient_id)

        date_from = self._parse_date(params.get('date_from'), 'date_from')
        if date_from:
            queryset = queryset.filter(date__gte=date_from)

        date_to = self._parse_date(params.get('date_to'), 'date_to')
        if date_to:
            queryset = queryset.filter(date__lte=date_to)

        search = params.get('search')
        if search:
            queryset = queryset.filter(self._search_q(search))

        return queryset.order_by('-date', '-time')

    @staticmethod
    def _parse_date(value, name):
        if not value:
            return None
        try:
            return datetime.strptime(value, '%Y-%m-%d').date()
        except ValueError:
            raise ValidationError(f'Invalid {name}', details={name: ['Use YYYY-MM-DD.']})

    @staticmethod
    def _search_q(term):
        return (
            Q(purpose__icontains=term) |
            Q(notes__icontains=term) |
            Q(patient_name__icontains=term) |
            Q(doctor_name__icontains=term) |
            _patient_name_q('patient__', term) |
            Q(doctor__first_name__icontains=term) |
            Q(doctor__last_name__icontains=term)
        )

    def get_object(self):
        appointment = super().get_object()
        ensure_can_access(self.request.user, appointment.patient)
        return appointment

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return AppointmentWriteSerializer
        return AppointmentSerializer

    def create(self, request, *args, **kwargs):
        serializer = AppointmentWriteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        patient = serializer.validated_data.get('patient')
        if patient is not None:
            ensure_can_access(request.user, patient)
        elif request.user.role == RoleChoices.PATIENT:
            ensure_can_access(request.user, None)
        appointment = serializer.save()
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        appointment = self.get_object()
        serializer = AppointmentWriteSerializer(
            appointment,
            data=request.data,
            partial=True,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        if serializer.validated_data.get('patient') is not None:
            ensure_can_access(request.user, serializer.validated_data['patient'])
        appointment = serializer.save()
        return Response(AppointmentSerializer(appointment).data)

    def _day_queryset(self, day):
        queryset = self.base_queryset().filter(date=day)
        if self.request.user.role == RoleChoices.DOCTOR:
            queryset = queryset.filter(doctor=self.request.user)
        return queryset.order_by('time')

    @action(detail=False, methods=['get'], url_path='today')
    def today(self, request):
        queryset = self._day_queryset(timezone.localdate())
        return Response(AppointmentSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path=r'date/(?P<day>\d{4}-\d{2}-\d{2})')
    def by_date(self, request, day=None):
        queryset = self._day_queryset(self._parse_date(day, 'date'))
        return Response(AppointmentSerializer(queryset, many=True).data)

    @action(detail=False, methods=['get'], url_path='search')
    def search(self, request):
        term = (request.query_params.get('query') or '').strip()
        if not term:
            raise ValidationError('Search query is required', details={'query': ['This field is required.']})
        queryset = self.base_queryset().filter(self._search_q(term)).order_by('-date', '-time')
        return Response(AppointmentSerializer(queryset, many=True).data)


class ClinicalRecordViewSet(viewsets.ModelViewSet):
    """
    Shared behaviour for prescriptions and lab reports.

    Create is for doctors; the acting doctor becomes the issuer. Reads are
    scoped by the access policy; update/delete need the issuer or an admin.
    """
    permission_classes = [IsAuthenticated]
    issuer_field = None
    read_serializer_class = None
    write_serializer_class = None

    def get_permissions(self):
        if self.action == 'create':
            return [IsDoctor()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action in ('create', 'update', 'partial_update'):
            return self.write_serializer_class
        return self.read_serializer_class

    def filter_search(self, queryset, term):
        return queryset

    def get_queryset(self):
        queryset = _scope_to_actor(self.queryset.all(), self.request.user)
        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        patient_id = params.get('patient')
        if patient_id:
            queryset = queryset.filter(patient__patient_id=patient_id)

        search = params.get('search')
        if search:
            queryset = self.filter_search(queryset, search)

        return queryset.order_by('-date', '-created_at')

    def get_object(self):
        record = super().get_object()
        ensure_can_access(self.request.user, record.patient)
        return record

    def issuer_id(self, record):
        return getattr(record, f'{self.issuer_field}_id')

    def create(self, request, *args, **kwargs):
        serializer = self.write_serializer_class(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        record = serializer.save(**{self.issuer_field: request.user})
        return Response(self.read_serializer_class(record).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        record = self.get_object()
        ensure_can_modify(request.user, self.issuer_id(record))
        serializer = self.write_serializer_class(
            record,
            data=request.data,
            partial=True,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        record = serializer.save()
        return Response(self.read_serializer_class(record).data)

    def destroy(self, request, *args, **kwargs):
        record = self.get_object()
        ensure_can_modify(request.user, self.issuer_id(record))
        record.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class PrescriptionViewSet(ClinicalRecordViewSet):
    """
    Endpoints:
    - GET/POST /api/v1/prescriptions/
    - GET/PUT/PATCH/DELETE /api/v1/prescriptions/{id}/
    - GET /api/v1/prescriptions/{id}/export/ - JSON attachment
    """
    queryset = Prescription.objects.select_related('patient__user', 'doctor')
    issuer_field = 'doctor'
    read_serializer_class = PrescriptionSerializer
    write_serializer_class = PrescriptionWriteSerializer

    def filter_search(self, queryset, term):
        # medication names live in JSON; match on its text form
        return queryset.annotate(
            medications_text=Cast('medications', output_field=TextField())
        ).filter(
            Q(notes__icontains=term) |
            Q(medications_text__icontains=term) |
            _patient_name_q('patient__', term)
        )

    @action(detail=True, methods=['get'], url_path='export')
    def export(self, request, pk=None):
        prescription = self.get_object()
        return _json_attachment({
            'id': str(prescription.id),
            'patient_name': prescription.patient.name,
            'patient_id': prescription.patient.patient_id,
            'doctor': doctor_display_name(prescription.doctor),
            'date': prescription.date.isoformat(),
            'medications': prescription.medications,
            'notes': prescription.notes,
            'status': prescription.status,
            'generated_on': timezone.now().isoformat(),
        }, f'prescription-{prescription.id}.json')


class LabReportViewSet(ClinicalRecordViewSet):
    """
    Endpoints:
    - GET/POST /api/v1/lab-reports/
    - GET/PUT/PATCH /api/v1/lab-reports/{id}/
    - DELETE /api/v1/lab-reports/{id}/ - Admin only
    - GET /api/v1/lab-reports/{id}/download/ - JSON attachment
    """
    queryset = LabReport.objects.select_related('patient__user', 'requested_by')
    issuer_field = 'requested_by'
    read_serializer_class = LabReportSerializer
    write_serializer_class = LabReportWriteSerializer

    def filter_search(self, queryset, term):
        return queryset.filter(
            Q(test_type__icontains=term) |
            Q(lab__icontains=term) |
            _patient_name_q('patient__', term)
        )

    def destroy(self, request, *args, **kwargs):
        record = self.get_object()
        ensure_role(request.user, RoleChoices.ADMIN)
        record.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get'], url_path='download')
    def download(self, request, pk=None):
        report = self.get_object()
        return _json_attachment({
            'id': str(report.id),
            'patient_name': report.patient.name,
            'patient_id': report.patient.patient_id,
            'test_type': report.test_type,
            'lab': report.lab,
            'date': report.date.isoformat(),
            'requested_by': doctor_display_name(report.requested_by),
            'status': report.status,
            'results': report.results,
            'notes': report.notes,
            'generated_on': timezone.now().isoformat(),
        }, f'lab-report-{report.id}.json')


class DashboardStatsView(APIView):
    """
    GET /api/v1/dashboard/stats/

    Doctors get counts over their own appointments and prescriptions;
    admins get clinic-wide counts.
    """
    permission_classes = [IsDoctorOrAdmin]

    def get(self, request):
        user = request.user
        is_doctor = user.role == RoleChoices.DOCTOR

        if is_doctor:
            total_patients = (
                Appointment.objects.filter(doctor=user, patient__isnull=False)
                .values('patient').distinct().count()
            )
        else:
            total_patients = Patient.objects.count()

        today = Appointment.objects.filter(date=timezone.localdate())
        prescriptions = Prescription.objects.all()
        if is_doctor:
            today = today.filter(doctor=user)
            prescriptions = prescriptions.filter(doctor=user)

        return Response({
            'total_patients': total_patients,
            'appointments_today': today.count(),
            'remaining_appointments': today.exclude(status=AppointmentStatusChoices.COMPLETED).count(),
            'prescriptions': prescriptions.count(),
            'lab_reports': LabReport.objects.count(),
            'pending_reports': LabReport.objects.filter(status=LabReportStatusChoices.PENDING).count(),
        })

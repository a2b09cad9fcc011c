"""
Clinical URLs - Patients, Appointments, Prescriptions, Lab Reports, Dashboard.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentViewSet,
    DashboardStatsView,
    LabReportViewSet,
    PatientViewSet,
    PrescriptionViewSet,
)

router = DefaultRouter()
router.register(r'patients', PatientViewSet, basename='patient')
router.register(r'appointments', AppointmentViewSet, basename='appointment')
router.register(r'prescriptions', PrescriptionViewSet, basename='prescription')
router.register(r'lab-reports', LabReportViewSet, basename='lab-report')

urlpatterns = [
    path('dashboard/stats/', DashboardStatsView.as_view(), name='dashboard-stats'),

    # Standard CRUD via router
    path('', include(router.urls)),
]

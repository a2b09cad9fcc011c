"""
Documents URLs - nested under patients.
"""
from django.urls import path

from .views import PatientDocumentViewSet

document_collection = PatientDocumentViewSet.as_view({'get': 'list', 'post': 'create'})
document_detail = PatientDocumentViewSet.as_view({'delete': 'destroy'})
document_process = PatientDocumentViewSet.as_view({'post': 'process'})
document_download = PatientDocumentViewSet.as_view({'get': 'download'})

urlpatterns = [
    path('patients/<str:patient_id>/documents/', document_collection, name='patient-documents'),
    path('patients/<str:patient_id>/documents/<uuid:document_id>/', document_detail, name='patient-document-detail'),
    path('patients/<str:patient_id>/documents/<uuid:document_id>/process/', document_process, name='patient-document-process'),
    path('patients/<str:patient_id>/documents/<uuid:document_id>/download/', document_download, name='patient-document-download'),
]

"""
Catalog URLs.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import HospitalViewSet, MedicineViewSet

router = DefaultRouter()
router.register(r'medicines', MedicineViewSet, basename='medicine')
router.register(r'hospitals', HospitalViewSet, basename='hospital')

urlpatterns = [
    path('', include(router.urls)),
]

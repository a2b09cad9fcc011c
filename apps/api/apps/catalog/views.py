"""
Catalog views: medicines and hospitals.
"""
from django.db.models import Q
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.authz.permissions import AdminWritePermission, CatalogWritePermission
from apps.core.exceptions import ValidationError
from .models import Hospital, Medicine, MedicineStatusChoices
from .serializers import HospitalSerializer, MedicineSerializer


class MedicineViewSet(viewsets.ModelViewSet):
    """
    Medicine catalog.

    Reads: any authenticated user. Writes: doctor or admin.

    Extra endpoints:
    - GET /medicines/search/?query=
    - GET /medicines/low-stock/
    - GET /medicines/out-of-stock/
    """
    queryset = Medicine.objects.all()
    serializer_class = MedicineSerializer
    permission_classes = [CatalogWritePermission]

    def get_queryset(self):
        queryset = super().get_queryset()

        category = self.request.query_params.get('category')
        if category:
            queryset = queryset.filter(category__iexact=category)

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        return queryset

    def _list_response(self, queryset):
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=False, methods=['get'])
    def search(self, request):
        query = request.query_params.get('query', '').strip()
        if not query:
            raise ValidationError('Search query is required')

        queryset = self.get_queryset().filter(
            Q(name__icontains=query) |
            Q(category__icontains=query) |
            Q(manufacturer__icontains=query)
        )
        return self._list_response(queryset)

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        return self._list_response(self.get_queryset().filter(status=MedicineStatusChoices.LOW_STOCK))

    @action(detail=False, methods=['get'], url_path='out-of-stock')
    def out_of_stock(self, request):
        return self._list_response(self.get_queryset().filter(status=MedicineStatusChoices.OUT_OF_STOCK))


class HospitalViewSet(viewsets.ModelViewSet):
    """Hospitals and labs. Reads: authenticated. Writes: admin."""
    queryset = Hospital.objects.all().order_by('-created_at')
    serializer_class = HospitalSerializer
    permission_classes = [AdminWritePermission]

    def get_queryset(self):
        queryset = super().get_queryset()
        facility_type = self.request.query_params.get('type')
        if facility_type:
            queryset = queryset.filter(type=facility_type)
        return queryset

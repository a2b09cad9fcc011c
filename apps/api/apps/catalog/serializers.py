"""Catalog serializers."""
from rest_framework import serializers

from apps.clinical.serializers import StringListField
from .models import Hospital, Medicine, stock_status


class MedicineSerializer(serializers.ModelSerializer):
    """
    Stock drives status: any write carrying ``stock`` re-derives it.
    An explicit ``status`` is only kept on updates that leave stock alone.
    """
    side_effects = StringListField(required=False)
    precautions = StringListField(required=False)

    class Meta:
        model = Medicine
        fields = [
            'id',
            'name',
            'category',
            'manufacturer',
            'dosage',
            'form',
            'description',
            'side_effects',
            'precautions',
            'stock',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def create(self, validated_data):
        validated_data['status'] = stock_status(validated_data.get('stock', 0))
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if 'stock' in validated_data:
            validated_data['status'] = stock_status(validated_data['stock'])
        return super().update(instance, validated_data)


class HospitalSerializer(serializers.ModelSerializer):
    services = StringListField(required=False)

    class Meta:
        model = Hospital
        fields = [
            'id',
            'name',
            'type',
            'address',
            'phone',
            'email',
            'services',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

"""
Authz serializers for the current user.
"""
from rest_framework import serializers
from apps.authz.models import User


class MeSerializer(serializers.ModelSerializer):
    """
    Authenticated actor as seen by clients.

    Used for:
    - GET /api/v1/auth/me/
    """
    name = serializers.CharField(source='get_full_name', read_only=True)
    patient_id = serializers.CharField(source='patient_identifier', read_only=True, allow_null=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'name',
            'first_name',
            'last_name',
            'role',
            'specialty',
            'patient_id',
        ]
        read_only_fields = fields


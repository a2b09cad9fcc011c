"""
Authz views: current user.
"""
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.serializers import MeSerializer


class MeView(APIView):
    """
    GET /api/v1/auth/me/ - the authenticated actor (id, role, name, patient_id).
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(MeSerializer(request.user).data)

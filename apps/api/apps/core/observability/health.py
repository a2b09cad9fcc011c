"""
Liveness and readiness endpoints.

/healthz only proves the process is up. /readyz also asks the database and
the document blob store, so a load balancer stops routing uploads to an
instance that cannot persist them.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views import View

from apps.documents.storage import BlobStoreError, get_blob_store

logger = logging.getLogger(__name__)


def _failed(check, error):
    logger.error(
        'Readiness check failed',
        extra={'event': 'health_check_failed', 'check': check, 'error': str(error)}
    )
    return False


def database_ready():
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as e:
        return _failed('database', e)
    return True


def blob_store_ready():
    try:
        get_blob_store().ping()
    except BlobStoreError as e:
        return _failed('blob_store', e)
    return True


READINESS_CHECKS = {
    'database': database_ready,
    'blob_store': blob_store_ready,
}


class HealthzView(View):

    def get(self, request):
        payload = {'status': 'ok', 'version': settings.VERSION}
        if settings.COMMIT_HASH:
            payload['commit'] = settings.COMMIT_HASH
        return JsonResponse(payload)


class ReadyzView(View):
    """200 with every check true, 503 as soon as one fails."""

    def get(self, request):
        checks = {name: check() for name, check in READINESS_CHECKS.items()}
        ready = all(checks.values())
        return JsonResponse(
            {'status': 'ready' if ready else 'not_ready', 'checks': checks},
            status=200 if ready else 503,
        )

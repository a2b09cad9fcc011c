"""
Blob storage for patient document bytes.

A blob store keeps opaque byte blobs grouped by namespace (the patient id)
and hands back a locator string for each one. The backend is chosen with
``settings.BLOB_STORE_BACKEND``:

- ``MinioBlobStore``: one object per blob in ``MINIO_DOCUMENTS_BUCKET``
- ``DjangoStorageBlobStore``: Django file storage (``MEDIA_ROOT`` by default)
"""
import functools
import io
import logging
import uuid

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.dispatch import receiver
from django.test.signals import setting_changed
from django.utils.module_loading import import_string
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ('NoSuchKey', 'NoSuchObject', 'NoSuchBucket')

# Connection refused, timeouts and retries exhausted surface as these rather than S3Error
TRANSPORT_ERRORS = (HTTPError, OSError)
MINIO_FAILURES = (S3Error,) + TRANSPORT_ERRORS


class BlobStoreError(Exception):
    """The store could not complete the operation."""


class BlobNotFoundError(BlobStoreError):
    """No blob exists for the locator."""


def generate_object_key(namespace: str, filename: str) -> str:
    """
    Unique key for a new blob.

    Args:
        namespace: grouping prefix (the patient id)
        filename: client-supplied name, reduced to safe characters

    Returns:
        "<namespace>/<12 hex chars>_<safe filename>"
    """
    unique_id = uuid.uuid4().hex[:12]
    safe_filename = ''.join(c for c in filename if c.isalnum() or c in '._-') or 'file'
    return f'{namespace}/{unique_id}_{safe_filename}'


class BlobStore:
    """Interface every backend implements."""

    def put(self, namespace: str, data: bytes, filename_hint: str, content_type: str) -> str:
        """Store ``data`` and return its locator."""
        raise NotImplementedError

    def delete(self, locator: str) -> bool:
        """Remove a blob. False when nothing was stored under ``locator``."""
        raise NotImplementedError

    def get(self, locator: str) -> bytes:
        """Read a blob back; BlobNotFoundError when missing."""
        raise NotImplementedError

    def ping(self) -> None:
        """Raise BlobStoreError when the backend cannot be reached."""


def get_minio_client():
    """Configured MinIO client."""
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL
    )


class MinioBlobStore(BlobStore):
    """Blobs as objects in a single MinIO bucket; the locator is the object key."""

    def __init__(self, client=None, bucket_name=None):
        self.client = client or get_minio_client()
        self.bucket_name = bucket_name or settings.MINIO_DOCUMENTS_BUCKET
        self._bucket_checked = False

    def _ensure_bucket(self):
        if self._bucket_checked:
            return
        if not self.client.bucket_exists(self.bucket_name):
            self.client.make_bucket(self.bucket_name)
            logger.info(
                'Created blob bucket',
                extra={'event': 'blob_bucket_created', 'bucket': self.bucket_name}
            )
        self._bucket_checked = True

    def put(self, namespace, data, filename_hint, content_type):
        object_key = generate_object_key(namespace, filename_hint)
        try:
            self._ensure_bucket()
            self.client.put_object(
                self.bucket_name,
                object_key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type or 'application/octet-stream'
            )
        except MINIO_FAILURES as e:
            raise BlobStoreError(f'Failed to store object in MinIO: {e}') from e
        return object_key

    def delete(self, locator):
        try:
            self.client.stat_object(self.bucket_name, locator)
        except S3Error as e:
            if e.code in NOT_FOUND_CODES:
                return False
            raise BlobStoreError(f'Failed to stat object in MinIO: {e}') from e
        except TRANSPORT_ERRORS as e:
            raise BlobStoreError(f'MinIO unreachable: {e}') from e

        try:
            self.client.remove_object(self.bucket_name, locator)
        except MINIO_FAILURES as e:
            raise BlobStoreError(f'Failed to delete object from MinIO: {e}') from e
        return True

    def get(self, locator):
        response = None
        try:
            response = self.client.get_object(self.bucket_name, locator)
            return response.read()
        except S3Error as e:
            if e.code in NOT_FOUND_CODES:
                raise BlobNotFoundError(locator) from e
            raise BlobStoreError(f'Failed to read object from MinIO: {e}') from e
        except TRANSPORT_ERRORS as e:
            raise BlobStoreError(f'MinIO unreachable: {e}') from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def ping(self):
        try:
            self.client.bucket_exists(self.bucket_name)
        except MINIO_FAILURES as e:
            raise BlobStoreError(f'MinIO unreachable: {e}') from e


class DjangoStorageBlobStore(BlobStore):
    """Blobs as files in a Django storage; the locator is the storage name."""

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def put(self, namespace, data, filename_hint, content_type):
        name = generate_object_key(namespace, filename_hint)
        try:
            return self.storage.save(name, ContentFile(data))
        except OSError as e:
            raise BlobStoreError(f'Failed to write blob: {e}') from e

    def delete(self, locator):
        try:
            if not self.storage.exists(locator):
                return False
            self.storage.delete(locator)
        except OSError as e:
            raise BlobStoreError(f'Failed to delete blob: {e}') from e
        return True

    def get(self, locator):
        try:
            with self.storage.open(locator, 'rb') as fh:
                return fh.read()
        except FileNotFoundError as e:
            raise BlobNotFoundError(locator) from e
        except OSError as e:
            raise BlobStoreError(f'Failed to read blob: {e}') from e


@functools.lru_cache(maxsize=None)
def get_blob_store() -> BlobStore:
    """
    Process-wide instance of the backend named by ``settings.BLOB_STORE_BACKEND``.

    One instance keeps one MinIO client and its bucket check for the life of
    the process.
    """
    return import_string(settings.BLOB_STORE_BACKEND)()


@receiver(setting_changed)
def reset_blob_store(*, setting, **kwargs):
    if setting == 'BLOB_STORE_BACKEND' or setting.startswith('MINIO_'):
        get_blob_store.cache_clear()

"""
Tests for the blob store backends.
"""
from unittest.mock import MagicMock

import pytest
from django.core.files.storage import FileSystemStorage
from minio.error import S3Error
from urllib3.exceptions import MaxRetryError

from apps.documents.storage import (
    BlobNotFoundError,
    BlobStoreError,
    DjangoStorageBlobStore,
    MinioBlobStore,
    generate_object_key,
    get_blob_store,
)


def s3_error(code):
    return S3Error(
        code=code,
        message=code,
        resource='/patient-documents',
        request_id='req-1',
        host_id='host-1',
        response=MagicMock(),
    )


class TestObjectKey:

    def test_namespaced_and_sanitized(self):
        key = generate_object_key('P-1001', 'my report (1).pdf')

        namespace, name = key.split('/')
        assert namespace == 'P-1001'
        unique, safe = name.split('_', 1)
        assert len(unique) == 12
        assert safe == 'myreport1.pdf'

    def test_keys_are_unique(self):
        assert generate_object_key('P-1001', 'a.pdf') != generate_object_key('P-1001', 'a.pdf')

    def test_empty_filename(self):
        assert generate_object_key('P-1001', '???').endswith('_file')


class TestMinioBlobStore:

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.bucket_exists.return_value = False
        return client

    @pytest.fixture
    def store(self, client):
        return MinioBlobStore(client=client, bucket_name='patient-documents')

    def test_put_creates_bucket_once(self, store, client):
        first = store.put('P-1001', b'abc', 'scan.pdf', 'application/pdf')
        store.put('P-1001', b'def', 'scan.pdf', 'application/pdf')

        client.make_bucket.assert_called_once_with('patient-documents')
        assert first.startswith('P-1001/')
        args, kwargs = client.put_object.call_args_list[0]
        assert args[0] == 'patient-documents'
        assert args[1] == first
        assert kwargs['length'] == 3
        assert kwargs['content_type'] == 'application/pdf'

    def test_get_releases_connection(self, store, client):
        response = MagicMock()
        response.read.return_value = b'abc'
        client.get_object.return_value = response

        assert store.get('P-1001/x_scan.pdf') == b'abc'
        client.get_object.assert_called_once_with('patient-documents', 'P-1001/x_scan.pdf')
        response.close.assert_called_once()
        response.release_conn.assert_called_once()

    def test_delete_existing(self, store, client):
        assert store.delete('P-1001/x_scan.pdf') is True
        client.remove_object.assert_called_once_with('patient-documents', 'P-1001/x_scan.pdf')

    def test_delete_missing(self, store, client):
        client.stat_object.side_effect = s3_error('NoSuchKey')

        assert store.delete('P-1001/x_scan.pdf') is False
        client.remove_object.assert_not_called()

    def test_delete_s3_failure(self, store, client):
        client.remove_object.side_effect = s3_error('AccessDenied')

        with pytest.raises(BlobStoreError):
            store.delete('P-1001/x_scan.pdf')

    def test_get_missing(self, store, client):
        client.get_object.side_effect = s3_error('NoSuchKey')

        with pytest.raises(BlobNotFoundError):
            store.get('P-1001/x_scan.pdf')

    def test_put_s3_failure(self, store, client):
        client.put_object.side_effect = s3_error('AccessDenied')

        with pytest.raises(BlobStoreError):
            store.put('P-1001', b'abc', 'scan.pdf', 'application/pdf')

    @pytest.mark.parametrize('operation, args', [
        ('put', ('P-1001', b'abc', 'scan.pdf', 'application/pdf')),
        ('delete', ('P-1001/x_scan.pdf',)),
        ('get', ('P-1001/x_scan.pdf',)),
        ('ping', ()),
    ])
    def test_unreachable_server(self, store, client, operation, args):
        refused = MaxRetryError(None, '/patient-documents', 'Connection refused')
        for method in ('bucket_exists', 'put_object', 'stat_object', 'remove_object', 'get_object'):
            getattr(client, method).side_effect = refused

        with pytest.raises(BlobStoreError) as exc_info:
            getattr(store, operation)(*args)

        assert not isinstance(exc_info.value, BlobNotFoundError)

    def test_ping(self, store, client):
        store.ping()
        client.bucket_exists.assert_called_once_with('patient-documents')


class TestDjangoStorageBlobStore:

    @pytest.fixture
    def store(self, tmp_path):
        return DjangoStorageBlobStore(storage=FileSystemStorage(location=str(tmp_path)))

    def test_round_trip(self, store):
        locator = store.put('P-1001', b'%PDF data', 'scan.pdf', 'application/pdf')

        assert locator.startswith('P-1001/')
        assert store.get(locator) == b'%PDF data'

    def test_delete_reports_missing(self, store):
        locator = store.put('P-1001', b'data', 'scan.pdf', 'application/pdf')

        assert store.delete(locator) is True
        assert store.delete(locator) is False

    def test_get_missing(self, store):
        with pytest.raises(BlobNotFoundError):
            store.get('P-1001/nothing_here.pdf')


def test_backend_from_settings(settings):
    settings.BLOB_STORE_BACKEND = 'apps.documents.storage.DjangoStorageBlobStore'
    assert isinstance(get_blob_store(), DjangoStorageBlobStore)


def test_backend_built_once_per_process(settings):
    settings.BLOB_STORE_BACKEND = 'apps.documents.storage.DjangoStorageBlobStore'

    assert get_blob_store() is get_blob_store()


def test_backend_rebuilt_when_setting_changes(settings):
    settings.BLOB_STORE_BACKEND = 'apps.documents.storage.DjangoStorageBlobStore'
    first = get_blob_store()

    settings.MINIO_DOCUMENTS_BUCKET = 'archive'

    assert get_blob_store() is not first

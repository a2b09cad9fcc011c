"""
Test settings: in-memory SQLite, filesystem blob store, fast hashing.
"""
import tempfile
from pathlib import Path

from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

MEDIA_ROOT = Path(tempfile.mkdtemp(prefix='sehatnama-media-'))
BLOB_STORE_BACKEND = 'apps.documents.storage.DjangoStorageBlobStore'
DOCUMENT_EXTRACTION_ENGINE = 'apps.documents.extraction.PlaceholderExtractionEngine'

LOGGING['handlers']['console']['formatter'] = 'verbose'  # noqa: F405

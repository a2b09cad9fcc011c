"""
Django settings for the SehatNama clinic API.

Every deploy-time value is read from the environment; the defaults below
target the docker-compose development stack (postgres + minio).
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name, default=None):
    return os.environ.get(name, default)


def env_flag(name, default=False):
    """'1', 'true', 'yes' and 'on' (any case) count as enabled."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    return [item.strip() for item in env(name, default).split(',') if item.strip()]


# ==============================================================================
# CORE
# ==============================================================================
VERSION = env('SEHATNAMA_VERSION', '1.0.0')
COMMIT_HASH = env('SEHATNAMA_COMMIT')

SECRET_KEY = env('SEHATNAMA_SECRET_KEY', 'sehatnama-dev-only-secret')
DEBUG = env_flag('SEHATNAMA_DEBUG', default=True)
ALLOWED_HOSTS = env_list('SEHATNAMA_ALLOWED_HOSTS', 'localhost,127.0.0.1')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'drf_spectacular',

    'apps.core',        # observability, error translation, pagination
    'apps.authz',       # auth_user with role, access policy
    'apps.clinical',    # patient, appointment, prescription, lab_report
    'apps.documents',   # patient documents, blob storage, extraction
    'apps.catalog',     # medicine, hospital
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    # needs request.user, so it sits after authentication
    'apps.core.observability.correlation.RequestCorrelationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'
WSGI_APPLICATION = 'config.wsgi.application'

# Only the admin renders templates
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# ==============================================================================
# DATABASE
# ==============================================================================
DATABASES = {
    'default': {
        'ENGINE': env('DB_ENGINE', 'django.db.backends.postgresql'),
        'NAME': env('POSTGRES_DB', 'sehatnama'),
        'USER': env('POSTGRES_USER', 'sehatnama'),
        'PASSWORD': env('POSTGRES_PASSWORD', 'sehatnama'),
        'HOST': env('POSTGRES_HOST', 'postgres'),
        'PORT': env('POSTGRES_PORT', '5432'),
        'CONN_MAX_AGE': int(env('POSTGRES_CONN_MAX_AGE', 60)),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ==============================================================================
# ACCOUNTS
# ==============================================================================
AUTH_USER_MODEL = 'authz.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]

# Appointment dates and "today" on the dashboard follow the clinic's clock
LANGUAGE_CODE = 'en-us'
TIME_ZONE = env('CLINIC_TIME_ZONE', 'Asia/Karachi')
USE_I18N = False
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Filesystem blob backend writes here
MEDIA_URL = 'media/'
MEDIA_ROOT = Path(env('MEDIA_ROOT', BASE_DIR / 'media'))

# ==============================================================================
# REST FRAMEWORK
# ==============================================================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'apps.core.pagination.PageLimitPagination',
    'PAGE_SIZE': 10,
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'apps.core.exceptions.domain_exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(env('JWT_ACCESS_MINUTES', 60))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=int(env('JWT_REFRESH_DAYS', 7))),
    'ROTATE_REFRESH_TOKENS': True,
    'UPDATE_LAST_LOGIN': True,
    'SIGNING_KEY': env('JWT_SIGNING_KEY', SECRET_KEY),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

CORS_ALLOWED_ORIGINS = env_list(
    'SEHATNAMA_CORS_ORIGINS',
    'http://localhost:3000,http://localhost:5173'
)
CORS_ALLOW_CREDENTIALS = True
CORS_EXPOSE_HEADERS = ['X-Request-ID', 'Content-Disposition']

SPECTACULAR_SETTINGS = {
    'TITLE': 'SehatNama Clinic API',
    'DESCRIPTION': 'Patients, appointments, prescriptions, lab reports and patient documents',
    'VERSION': VERSION,
    'SERVE_INCLUDE_SCHEMA': False,
    'COMPONENT_SPLIT_REQUEST': True,
}

# ==============================================================================
# PATIENT DOCUMENTS
# ==============================================================================
MINIO_ENDPOINT = env('MINIO_ENDPOINT', 'minio:9000')
MINIO_ACCESS_KEY = env('MINIO_ACCESS_KEY', 'minioadmin')
MINIO_SECRET_KEY = env('MINIO_SECRET_KEY', 'minioadmin')
MINIO_USE_SSL = env_flag('MINIO_USE_SSL')
MINIO_DOCUMENTS_BUCKET = env('MINIO_DOCUMENTS_BUCKET', 'patient-documents')

# MinIO in deployments, Django file storage under MEDIA_ROOT when debugging
BLOB_STORE_BACKEND = env(
    'BLOB_STORE_BACKEND',
    'apps.documents.storage.DjangoStorageBlobStore' if DEBUG else 'apps.documents.storage.MinioBlobStore'
)

DOCUMENT_MAX_UPLOAD_BYTES = int(env('DOCUMENT_MAX_UPLOAD_BYTES', 10 * 1024 * 1024))
DOCUMENT_EXTRACTION_ENGINE = env(
    'DOCUMENT_EXTRACTION_ENGINE',
    'apps.documents.extraction.PlaceholderExtractionEngine'
)

# Larger multipart bodies are spooled to a temp file
FILE_UPLOAD_MAX_MEMORY_SIZE = 2 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = DOCUMENT_MAX_UPLOAD_BYTES + 1024 * 1024

# ==============================================================================
# LOGGING
# ==============================================================================
# JSON lines in deployments; request_id/user_id are attached by CorrelationFilter
LOG_LEVEL = env('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {
        'correlation': {'()': 'apps.core.observability.logging.CorrelationFilter'},
    },
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name} {message}',
            'style': '{',
        },
        'json': {'()': 'apps.core.observability.logging.SanitizedJSONFormatter'},
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose' if DEBUG else 'json',
            'filters': ['correlation'],
        },
    },
    'root': {'handlers': ['console'], 'level': 'WARNING'},
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'django.db.backends': {'level': 'WARNING'},
        'apps': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}

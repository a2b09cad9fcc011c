"""
Structured logging with PHI redaction.

Patient demographics, clinical free text and credentials are never written
to logs; any log field or nested key in SENSITIVE_FIELDS is replaced by
'[REDACTED]'.
"""
import json
import logging
from datetime import datetime, timezone

from .correlation import get_request_id, get_trace_id, get_user_id, get_user_role

REDACTED = '[REDACTED]'

SENSITIVE_FIELDS = {
    # credentials
    'password',
    'token',
    'access',
    'refresh',
    'secret',
    'authorization',
    # identity / contact
    'first_name',
    'last_name',
    'name',
    'patient_name',
    'email',
    'contact',
    'phone',
    'address',
    'emergency_contact',
    # clinical content
    'condition',
    'allergies',
    'notes',
    'medications',
    'results',
    'purpose',
    'original_filename',
}

# Attributes every LogRecord carries; everything else came in through extra={}
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {
    'message', 'asctime',
}


def _is_sensitive(key):
    return isinstance(key, str) and key.lower() in SENSITIVE_FIELDS


def _sanitize_value(value):
    if isinstance(value, dict):
        return sanitize_dict(value)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(v) for v in value]
    return value


def sanitize_dict(data):
    """
    Return a copy of ``data`` with sensitive keys redacted at any depth.

    Non-dict input is returned unchanged.
    """
    if not isinstance(data, dict):
        return data
    return {
        key: REDACTED if _is_sensitive(key) else _sanitize_value(value)
        for key, value in data.items()
    }


class CorrelationFilter(logging.Filter):
    """Inject request id, trace id and acting user into each record."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.trace_id = get_trace_id() or '-'
        record.user_id = get_user_id() or '-'
        record.user_role = get_user_role() or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """One JSON object per line, extra fields sanitized."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
            'trace_id': getattr(record, 'trace_id', '-'),
            'user_id': getattr(record, 'user_id', '-'),
            'user_role': getattr(record, 'user_role', '-'),
        }

        for key, value in record.__dict__.items():
            if key in log_data or key in _RESERVED_ATTRS or key.startswith('_'):
                continue
            log_data[key] = REDACTED if _is_sensitive(key) else _sanitize_value(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def get_sanitized_logger(name):
    """
    Logger with the correlation filter attached.

    Usage:
        logger = get_sanitized_logger(__name__)
        logger.info('Document stored', extra={'event': 'document_uploaded'})
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    return logger

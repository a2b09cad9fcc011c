"""
Request correlation middleware.

Every request gets an id (the caller's X-Request-ID when present). The id,
the optional X-Trace-ID and the acting user live in thread-local storage
for the duration of the request so CorrelationFilter can stamp them on
each log record.
"""
import logging
import time
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_context = local()
_CONTEXT_FIELDS = ('request_id', 'trace_id', 'user_id', 'user_role')


def _current(field):
    return getattr(_context, field, None)


def get_request_id():
    """Current request ID, or None outside a request."""
    return _current('request_id')


def get_trace_id():
    return _current('trace_id')


def get_user_id():
    return _current('user_id')


def get_user_role():
    return _current('user_role')


def bind_user(user):
    """
    Record the acting user (id and clinic role) in the request context.

    JWT authentication happens inside the DRF view, so the user is only
    known once the response comes back through the middleware.
    """
    authenticated = user is not None and user.is_authenticated
    _context.user_id = str(user.pk) if authenticated else None
    _context.user_role = user.role if authenticated else None


def clear_request_context():
    for field in _CONTEXT_FIELDS:
        if hasattr(_context, field):
            delattr(_context, field)


def _elapsed_ms(request):
    started = getattr(request, '_correlation_started', None)
    if started is None:
        return 0.0
    return round((time.monotonic() - started) * 1000, 2)


class RequestCorrelationMiddleware(MiddlewareMixin):
    """Assign request ids, echo them back, and log one line per request."""

    def process_request(self, request):
        request.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex
        request.trace_id = request.headers.get('X-Trace-ID')
        request._correlation_started = time.monotonic()

        _context.request_id = request.request_id
        _context.trace_id = request.trace_id
        bind_user(getattr(request, 'user', None))

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response['X-Request-ID'] = request_id
            if request.trace_id:
                response['X-Trace-ID'] = request.trace_id

            bind_user(getattr(request, 'user', None))
            logger.info(
                '%s %s -> %s',
                request.method, request.path, response.status_code,
                extra={
                    'event': 'http_request_completed',
                    'method': request.method,
                    'path': request.path,
                    'status_code': response.status_code,
                    'duration_ms': _elapsed_ms(request),
                }
            )

        clear_request_context()
        return response

    def process_exception(self, request, exception):
        logger.error(
            'Unhandled %s on %s %s',
            type(exception).__name__, request.method, request.path,
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'method': request.method,
                'path': request.path,
                'exception_type': type(exception).__name__,
                'duration_ms': _elapsed_ms(request),
            }
        )

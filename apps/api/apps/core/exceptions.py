"""
Domain errors and their HTTP translation.

Services raise the errors below; ``domain_exception_handler`` (the DRF
EXCEPTION_HANDLER) turns them into ``{"error": {"code", "message", "details"}}``.
DRF's own exceptions keep DRF's response shape. Anything else is logged
with its traceback and answered with a generic 500.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .observability import metrics

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'error'
    default_message = 'An error occurred'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def as_payload(self):
        payload = {'code': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return {'error': payload}


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'validation_error'
    default_message = 'Invalid input'


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found'


class AuthorizationError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'forbidden'
    default_message = 'Not authorized to access this resource'


class UnexpectedError(DomainError):
    code = 'unexpected_error'
    default_message = 'Server error'


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        if isinstance(exc, UnexpectedError):
            logger.error(
                'Unexpected error in %s: %s',
                _view_name(context), exc.message,
                exc_info=exc,
                extra={'event': 'unexpected_error'}
            )
        return Response(exc.as_payload(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    metrics.exceptions_total.labels(exception_type=exc.__class__.__name__).inc()
    logger.error(
        'Unhandled %s in %s',
        exc.__class__.__name__, _view_name(context),
        exc_info=exc,
        extra={'event': 'unhandled_exception'}
    )
    return Response(
        UnexpectedError().as_payload(),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _view_name(context):
    view = context.get('view') if context else None
    return view.__class__.__name__ if view is not None else '-'

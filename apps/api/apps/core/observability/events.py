"""
Domain event logging.

One structured log line per business operation on patients and documents.
"""
from typing import Any, Dict, Optional

from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)

FAILURE_RESULTS = ('failure', 'error')
WARNING_RESULTS = ('warning', 'denied', 'skipped')


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields: Any
):
    """
    Log a domain event.

    Args:
        event_name: e.g. 'patient_registered', 'document_processed'
        entity_type: model name of the primary entity
        entity_id: public id of the primary entity
        entity_ids: related ids, merged into the record as-is
        result: success / failure / warning ...; selects the log level
        **extra_fields: additional context, sanitized before logging

    Example:
        log_domain_event(
            'document_processed',
            entity_type='Document',
            entity_id=str(document.id),
            entity_ids={'patient_id': patient.patient_id},
            outcome='extracted',
        )
    """
    event_data = {'event': event_name, 'result': result}

    if entity_type:
        event_data['entity_type'] = entity_type
    if entity_id:
        event_data['entity_id'] = entity_id
    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    if result in FAILURE_RESULTS:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in WARNING_RESULTS:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_blob_delete_failed(locator, error, **context):
    """A blob could not be removed; the metadata deletion went ahead."""
    log_domain_event(
        'blob_delete_failed',
        entity_type='Blob',
        entity_id=locator,
        result='warning',
        error=str(error),
        **context
    )

"""
Observability for the SehatNama clinic API.

Correlated structured logging with PHI redaction, domain events,
Prometheus counters and health checks.
"""
from .metrics import metrics
from .events import log_domain_event
from .logging import get_sanitized_logger

__all__ = ['metrics', 'log_domain_event', 'get_sanitized_logger']

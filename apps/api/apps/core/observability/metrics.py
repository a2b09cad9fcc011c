"""
Prometheus metrics for the clinic API.
"""
import logging
import time
from functools import wraps

from prometheus_client import REGISTRY, Counter, Histogram

logger = logging.getLogger(__name__)


class MetricsRegistry:
    """
    Application metrics, created once per process.

    Pass a separate ``CollectorRegistry`` to get an isolated set (tests).
    """

    def __init__(self, registry=REGISTRY):
        self._registry = registry
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        return Counter(name, description, labels or [], registry=self._registry)

    def _create_histogram(self, name, description, labels=None, buckets=None):
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets, registry=self._registry)
        return Histogram(name, description, labels or [], registry=self._registry)

    def _setup_metrics(self):
        # ===================================================================
        # HTTP
        # ===================================================================
        self.exceptions_total = self._create_counter(
            'exceptions_total',
            'Unhandled exceptions translated to 500',
            ['exception_type']
        )

        # ===================================================================
        # Patients
        # ===================================================================
        self.patients_registered_total = self._create_counter(
            'patients_registered_total',
            'Patient profiles registered'
        )

        self.patient_cascade_deletes_total = self._create_counter(
            'patient_cascade_deletes_total',
            'Patient cascade deletions',
            ['result']  # success, failure
        )

        # ===================================================================
        # Documents
        # ===================================================================
        self.documents_uploaded_total = self._create_counter(
            'documents_uploaded_total',
            'Patient documents uploaded',
            ['type']
        )

        self.documents_rejected_total = self._create_counter(
            'documents_rejected_total',
            'Uploads rejected by validation',
            ['reason']  # extension, mime, size, empty
        )

        self.documents_processed_total = self._create_counter(
            'documents_processed_total',
            'Document processing attempts',
            ['outcome']  # extracted, not_applicable, failed, already_processed
        )

        self.document_extraction_duration_seconds = self._create_histogram(
            'document_extraction_duration_seconds',
            'Extraction engine duration',
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        self.blob_delete_failures_total = self._create_counter(
            'blob_delete_failures_total',
            'Blob deletions that failed and were skipped'
        )

    def track_duration(self, histogram_metric):
        """
        Decorator recording wall time into a histogram.

        Usage:
            @metrics.track_duration(metrics.document_extraction_duration_seconds)
            def run_extraction(...):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


metrics = MetricsRegistry()

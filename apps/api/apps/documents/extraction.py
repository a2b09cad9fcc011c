"""
Document extraction.

An extraction engine turns the bytes of an uploaded document into the
fields of a clinical record. Engines return one of three results:

- ``Extracted(fields)``: record fields for the document's type
- ``NotApplicable()``: the document type yields no record (doctor notes, other)
- ``Failed(reason)``: the engine could not read the document

The engine is configured with ``settings.DOCUMENT_EXTRACTION_ENGINE``.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from django.conf import settings
from django.utils.module_loading import import_string

from apps.clinical.models import LabReportStatusChoices, PrescriptionStatusChoices
from apps.documents.models import DocumentTypeChoices


@dataclass(frozen=True)
class Extracted:
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotApplicable:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


ExtractionResult = Union[Extracted, NotApplicable, Failed]


class ExtractionEngine:
    """Base class. Subclasses implement ``extract``."""

    def extract(self, document_bytes: bytes, declared_type: str, document=None) -> ExtractionResult:
        raise NotImplementedError


class PlaceholderExtractionEngine(ExtractionEngine):
    """
    Stand-in until an OCR pipeline is wired in.

    Produces an empty record of the declared type, titled after the document,
    so a processed upload shows up as a prescription or lab report that a
    doctor then completes by hand.
    """

    def extract(self, document_bytes, declared_type, document=None):
        if not document_bytes:
            return Failed('Document is empty')

        title = getattr(document, 'title', '') or 'Untitled Document'

        if declared_type == DocumentTypeChoices.PRESCRIPTION:
            return Extracted({
                'medications': [],
                'notes': f'Created from document "{title}"',
                'status': PrescriptionStatusChoices.ACTIVE,
            })

        if declared_type == DocumentTypeChoices.LAB_REPORT:
            return Extracted({
                'test_type': title,
                'lab': 'Document Processing',
                'results': [],
                'notes': f'Created from document "{title}"',
                'status': LabReportStatusChoices.COMPLETED,
            })

        return NotApplicable()


def get_extraction_engine() -> ExtractionEngine:
    return import_string(settings.DOCUMENT_EXTRACTION_ENGINE)()

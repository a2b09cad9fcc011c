"""
Patient history: appointments, prescriptions, lab reports and doctor notes
merged into one list, newest first.

Records that carry no time of day get a fixed clock time per category so
same-day events still order consistently. Events are not deduplicated: a
processed document and the record created from it are separate entries.
"""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import List

from apps.authz.policy import ensure_can_access
from apps.clinical.models import doctor_display_name
from apps.documents.models import DocumentTypeChoices

APPOINTMENT_DEFAULT_TIME = time(9, 0)
PRESCRIPTION_TIME = time(9, 30)
LAB_REPORT_TIME = time(11, 0)
NOTE_TIME = time(11, 45)

NO_NOTES = 'No notes provided'
NO_DETAILS = 'No details provided'


@dataclass
class TimelineEvent:
    id: str
    category: str
    date: date
    display_time: str
    title: str
    attributed_doctor_name: str
    detail_text: str
    status: str

    def as_dict(self):
        data = asdict(self)
        data['date'] = self.date.isoformat()
        return data

    @property
    def sort_key(self):
        return datetime.combine(self.date, datetime.strptime(self.display_time, '%I:%M %p').time())


def format_clock(value):
    """09:30 -> '09:30 AM'."""
    return value.strftime('%I:%M %p')


def _appointment_event(appointment):
    return TimelineEvent(
        id=f'HIST-APT-{appointment.id}',
        category='appointment',
        date=appointment.date,
        display_time=format_clock(appointment.time or APPOINTMENT_DEFAULT_TIME),
        title=f'{appointment.purpose} Appointment',
        attributed_doctor_name=appointment.display_doctor_name,
        detail_text=appointment.notes or NO_NOTES,
        status=appointment.status,
    )


def _medication_line(medication):
    return (
        f"{medication.get('name', '')} ({medication.get('dosage', '')}) - "
        f"{medication.get('frequency', '')} for {medication.get('duration', '')}"
    )


def _prescription_event(prescription):
    return TimelineEvent(
        id=f'HIST-RX-{prescription.id}',
        category='prescription',
        date=prescription.date,
        display_time=format_clock(PRESCRIPTION_TIME),
        title='Prescription Update',
        attributed_doctor_name=doctor_display_name(prescription.doctor),
        detail_text='; '.join(_medication_line(m) for m in prescription.medications) or prescription.notes or NO_DETAILS,
        status=prescription.status,
    )


def _lab_report_event(report):
    if report.results:
        detail = '; '.join(
            f"{r.get('test', '')}: {r.get('value', '')} ({r.get('status', '')})" for r in report.results
        )
    else:
        detail = report.notes or NO_DETAILS
    return TimelineEvent(
        id=f'HIST-LAB-{report.id}',
        category='lab',
        date=report.date,
        display_time=format_clock(LAB_REPORT_TIME),
        title=report.test_type,
        attributed_doctor_name=doctor_display_name(report.requested_by),
        detail_text=detail,
        status=report.status,
    )


def _note_event(document):
    return TimelineEvent(
        id=f'HIST-NOTE-{document.id}',
        category='note',
        date=document.date,
        display_time=format_clock(NOTE_TIME),
        title=document.title or "Doctor's Note",
        attributed_doctor_name=doctor_display_name(document.uploaded_by),
        detail_text=document.notes or NO_DETAILS,
        status='N/A',
    )


def build_history(patient, actor) -> List[TimelineEvent]:
    """All of a patient's clinical events, most recent first."""
    ensure_can_access(actor, patient)

    events = [
        *(_appointment_event(a) for a in patient.appointments.select_related('doctor')),
        *(_prescription_event(p) for p in patient.prescriptions.select_related('doctor')),
        *(_lab_report_event(r) for r in patient.lab_reports.select_related('requested_by')),
        *(_note_event(d) for d in patient.documents.filter(
            type=DocumentTypeChoices.DOCTOR_NOTE
        ).select_related('uploaded_by')),
    ]
    events.sort(key=lambda event: event.sort_key, reverse=True)
    return events

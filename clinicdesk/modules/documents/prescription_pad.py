import logging
from datetime import datetime, timezone

from clinicdesk.core.config import settings
from clinicdesk.modules.documents.formatting import format_date
from clinicdesk.modules.documents.layout import DocumentCanvas, RenderedDocument
from clinicdesk.modules.documents.schemas import ClinicIdentity, PatientInfo, PrescriptionLine, VisitRecord
from clinicdesk.modules.documents.visit_summary import dosage_text, frequency_text
from clinicdesk.modules.visits.clinical import food_timing_label

log = logging.getLogger(__name__)

GENERICS_NOTE = "Substitute with equivalent Generics as required."
ROW_MIN_HEIGHT_MM = 25.0


class PrescriptionPadRenderer:
    """Compact single-sheet prescription handed to the patient."""

    def __init__(self, record: VisitRecord, clinic: ClinicIdentity, *, generated_at: datetime | None = None, compress: bool | None = None):
        self.record = record
        self.clinic = clinic
        self.generated_at = generated_at or datetime.now(timezone.utc)
        self.doc = DocumentCanvas(
            title=f"Prescription {record.visit_number or ''}".strip(),
            author=clinic.name or None,
            compress=settings.PDF_COMPRESS if compress is None else compress,
        )

    def render(self) -> RenderedDocument:
        self._header()
        self._doctor()
        self._patient()
        self._bullets("Chief Complaints", self.record.chief_complaints)
        self._bullets("Clinical Findings", self.record.physical_examination)
        self._bullets("Diagnosis:", self.record.diagnosis)
        if self.record.prescriptions:
            self._rx_table()
        self._bullets("Advice:", self.record.general_advice)
        if self.record.follow_up_date:
            self.doc.cursor.check_page_break(10)
            self.doc.add_text(f"Follow Up: {format_date(self.record.follow_up_date)}", self.doc.margin, self.doc.y, size=11, weight="bold")
            self.doc.cursor.advance(10)
        self._footer()
        out = self.doc.finish()
        log.debug("Rendered prescription %s: %d page(s)", self.record.visit_number, out.page_count)
        return out

    def _header(self) -> None:
        doc, m, clinic = self.doc, self.doc.margin, self.clinic
        printed_on = self.record.visit_date or self.generated_at
        doc.add_text(clinic.name, m, doc.y + 5, size=14, weight="bold")
        doc.add_text(f"Date: {format_date(printed_on)}", m, doc.y + 5, align="right")
        doc.cursor.advance(10)

        if clinic.address:
            doc.add_text(clinic.address.one_line(), m, doc.y)
        doc.cursor.advance(5)
        contact = ", ".join(p for p in (
            f"Ph. {clinic.phone}" if clinic.phone else "",
            f"Timing: {clinic.timing}" if clinic.timing else "",
        ) if p)
        if contact:
            doc.add_text(contact, m, doc.y)
        if clinic.closed_days:
            doc.add_text(f"Closed: {clinic.closed_days}", m, doc.y + 5)
        doc.cursor.advance(15)
        doc.separator()
        doc.cursor.advance(10)

    def _doctor(self) -> None:
        doc = self.doc
        doctor = self.record.doctor
        name = doctor.full_name if doctor and doctor.full_name else ""
        doc.add_text(f"Dr. {name}".strip(), doc.margin, doc.y, size=12, weight="bold")
        doc.cursor.advance(5)
        if doctor and doctor.registration_number:
            doc.add_text(doctor.registration_number, doc.margin, doc.y)
        doc.cursor.advance(15)

    def _patient(self) -> None:
        doc, m = self.doc, self.doc.margin
        patient = self.record.patient or PatientInfo()
        gender = (patient.gender or "")[:1].upper()
        age = f"{patient.age} Y" if patient.age is not None else "N/A"
        ident = patient.uhid or self.record.visit_number or ""
        descriptor = f"({gender}) / {age}" if gender else age

        doc.add_text(f"ID: {ident} - {descriptor}", m, doc.y, weight="bold")
        doc.add_text(f"Mob. No.: {patient.phone or ''}", m, doc.y, align="right")
        doc.cursor.advance(5)
        doc.add_text(f"Name: {patient.display_name}", m, doc.y)
        doc.cursor.advance(5)
        if patient.address and patient.address.one_line():
            doc.add_text(f"Address: {patient.address.one_line()}", m, doc.y, max_width=doc.content_width)
            doc.cursor.advance(5)
        doc.cursor.advance(5)

    def _bullets(self, heading: str, text: str | None) -> None:
        lines = [ln.strip() for ln in (text or "").splitlines() if ln.strip()]
        if not lines:
            return
        doc = self.doc
        doc.cursor.check_page_break(15)
        doc.add_text(heading, doc.margin, doc.y, size=11, weight="bold")
        doc.cursor.advance(5)
        for line in lines:
            doc.add_paragraph(f"* {line}", max_width=doc.content_width)
            doc.cursor.advance(1)
        doc.cursor.advance(5)

    def _table_header(self) -> None:
        doc, m = self.doc, self.doc.margin
        doc.separator()
        doc.cursor.advance(5)
        doc.add_text("Medicine Name", m + 5, doc.y, weight="bold")
        doc.add_text("Dosage", m + 70, doc.y, weight="bold")
        doc.add_text("Frequency", m + 100, doc.y, weight="bold")
        doc.cursor.advance(3)
        doc.separator()
        doc.cursor.advance(6)

    def _row_cells(self, index: int, line: PrescriptionLine) -> tuple[tuple[str, float, float, float], ...]:
        m = self.doc.margin
        # (text, x, size, wrap width)
        return (
            (f"{index}) {line.medicine_name}", m + 5, 10, 62),
            (dosage_text(line), m + 70, 10, 28),
            (frequency_text(line), m + 100, 9, 70),
        )

    def _note(self, line: PrescriptionLine) -> str:
        return f"Note: {line.instructions.strip()}" if line.instructions and line.instructions.strip() else ""

    def _row_height(self, index: int, line: PrescriptionLine) -> float:
        doc = self.doc
        cells = max(doc.text_height(text, size=size, max_width=width) for text, _, size, width in self._row_cells(index, line))
        note = doc.text_height(self._note(line), size=9, max_width=doc.content_width - 15)
        return cells + 2 + 5 + (note + 1 if note else 0) + 8

    def _rx_row(self, index: int, line: PrescriptionLine) -> None:
        doc, m = self.doc, self.doc.margin
        row_y = doc.y
        heights = [doc.add_text(text, x, row_y, size=size, max_width=width) for text, x, size, width in self._row_cells(index, line)]
        doc.cursor.advance(max(heights) + 2)

        details = " - ".join(p for p in (food_timing_label(line.food_timing), f"{line.duration_days} days") if p)
        doc.add_text(details, m + 15, doc.y, size=9)
        doc.cursor.advance(5)
        if doc.add_paragraph(self._note(line), m + 15, size=9, max_width=doc.content_width - 15):
            doc.cursor.advance(1)
        doc.add_text(f"Total: {line.quantity} {line.dosage_unit or ''}".rstrip(), m + 15, doc.y, size=9)
        doc.cursor.advance(8)

    def _rx_table(self) -> None:
        doc = self.doc
        doc.cursor.check_page_break(30)
        doc.add_text("Rx", doc.margin, doc.y, size=12, weight="bold")
        doc.cursor.advance(8)
        self._table_header()
        for index, line in enumerate(self.record.prescriptions, start=1):
            if doc.cursor.check_page_break(max(ROW_MIN_HEIGHT_MM, self._row_height(index, line))):
                self._table_header()
            self._rx_row(index, line)
        doc.separator()
        doc.cursor.advance(10)

    def _footer(self) -> None:
        doc = self.doc
        doc.cursor.check_page_break(15)
        footer_y = doc.page_height - 30
        doc.add_line(doc.margin, footer_y, doc.page_width - doc.margin, footer_y)
        doc.add_text(GENERICS_NOTE, doc.margin, footer_y + 5, size=9, align="center")


def render_prescription_pad(record: VisitRecord, clinic: ClinicIdentity, *, generated_at: datetime | None = None, compress: bool | None = None) -> RenderedDocument:
    return PrescriptionPadRenderer(record, clinic, generated_at=generated_at, compress=compress).render()

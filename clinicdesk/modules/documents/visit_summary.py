import logging
from datetime import datetime, timezone

from clinicdesk.core.config import settings
from clinicdesk.modules.documents.formatting import format_date, format_datetime, format_money, format_number, format_time
from clinicdesk.modules.documents.layout import DocumentCanvas, RenderedDocument
from clinicdesk.modules.documents.schemas import ClinicIdentity, PatientInfo, PrescriptionLine, VisitRecord
from clinicdesk.modules.visits.clinical import compute_bmi, food_timing_label

log = logging.getLogger(__name__)

NO_DOCUMENTATION = "No clinical documentation available."
DISCLAIMER = "This is a computer-generated document"

HEADER_FILL = (240, 248, 255)
FOOTER_MIN_SPACE_MM = 15.0
ROW_MIN_HEIGHT_MM = 18.0

# (label, x offset from the left margin, wrap width) of the prescription table
RX_COLUMNS = (
    ("#", 0, None),
    ("Medicine", 7, 46),
    ("Dosage", 55, 19),
    ("Frequency / Timing", 75, 64),
    ("Duration", 140, 17),
    ("Total", 158, None),
)

CLINICAL_FIELDS = (
    ("History of Present Illness:", "history_of_present_illness"),
    ("Physical Examination:", "physical_examination"),
    ("Diagnosis:", "diagnosis"),
    ("Treatment Plan:", "treatment_plan"),
    ("General Advice:", "general_advice"),
)


def _filled(value: str | None) -> str:
    return (value or "").strip()


def dosage_text(line: PrescriptionLine) -> str:
    return f"{format_number(line.dosage_amount)}{line.dosage_unit or ''}"


def frequency_text(line: PrescriptionLine) -> str:
    text = f"{line.frequency_times}x daily"
    if line.timing:
        text += f" ({', '.join(line.timing)})"
    return text


class VisitSummaryRenderer:
    def __init__(self, record: VisitRecord, clinic: ClinicIdentity, *, generated_at: datetime | None = None, compress: bool | None = None):
        self.record = record
        self.clinic = clinic
        self.generated_at = generated_at or datetime.now(timezone.utc)
        self.doc = DocumentCanvas(
            title=f"Visit Summary {record.visit_number or ''}".strip(),
            author=clinic.name or None,
            compress=settings.PDF_COMPRESS if compress is None else compress,
        )

    def render(self) -> RenderedDocument:
        self._header()
        self._patient_info()
        self._visit_details()
        if self.record.vitals is not None:
            self._vitals()
        self._clinical_documentation()
        if self.record.prescriptions:
            self._prescriptions()
        self._footer()
        out = self.doc.finish()
        log.debug("Rendered visit summary %s: %d page(s), %d bytes", self.record.visit_number, out.page_count, len(out.content))
        return out

    # ---- blocks ----

    def _header(self) -> None:
        doc = self.doc
        m = doc.margin
        doc.add_rect(m, doc.y, doc.content_width, 25, fill_rgb=HEADER_FILL)

        doc.cursor.advance(8)
        doc.add_text(self.clinic.name, m + 5, doc.y, size=16, weight="bold")
        doc.add_text(f"Date: {format_date(self.generated_at)}", m, doc.y, size=10, align="right")

        doc.cursor.advance(6)
        address = self.clinic.address.one_line() if self.clinic.address else ""
        doc.add_text(address or "Address not available", m + 5, doc.y, size=10)

        doc.cursor.advance(4)
        contact = " | ".join(p for p in (
            f"Phone: {self.clinic.phone}" if self.clinic.phone else "",
            f"Email: {self.clinic.email}" if self.clinic.email else "",
        ) if p)
        if contact:
            doc.add_text(contact, m + 5, doc.y, size=10)

        doc.cursor.advance(15)
        doc.add_text("VISIT SUMMARY REPORT", m, doc.y, size=14, weight="bold", align="center")
        doc.cursor.advance(15)

    def _patient_info(self) -> None:
        doc = self.doc
        m = doc.margin
        patient = self.record.patient or PatientInfo()

        def content():
            doc.add_text(f"Name: {patient.display_name}", m, doc.y, weight="bold")
            doc.add_text(f"UHID: {patient.uhid or 'N/A'}", m, doc.y, align="right")
            doc.cursor.advance(6)

            age = f"{patient.age} years" if patient.age is not None else "N/A"
            doc.add_text(f"Phone: {patient.phone or 'N/A'}", m, doc.y)
            doc.add_text(f"Age: {age}", m, doc.y, align="right")
            doc.cursor.advance(6)

            if patient.gender:
                doc.add_text(f"Gender: {patient.gender.capitalize()}", m, doc.y)
                doc.cursor.advance(6)
            if patient.email:
                doc.add_text(f"Email: {patient.email}", m, doc.y)
                doc.cursor.advance(6)

        doc.add_section("PATIENT INFORMATION", content)

    def _visit_details(self) -> None:
        doc = self.doc
        m = doc.margin
        visit = self.record
        doctor_name = visit.doctor.full_name if visit.doctor and visit.doctor.full_name else "N/A"

        def content():
            doc.add_text(f"Visit Number: #{visit.visit_number or ''}", m, doc.y, weight="bold")
            doc.add_text(f"Status: {(visit.status or '').replace('_', ' ').upper()}", m, doc.y, align="right", weight="bold")
            doc.cursor.advance(6)

            doc.add_text(f"Date: {format_date(visit.visit_date)}", m, doc.y)
            doc.add_text(f"Time: {format_time(visit.visit_time)}", m, doc.y, align="right")
            doc.cursor.advance(6)

            visit_type = {"new": "New Visit", "follow_up": "Follow-up"}.get(visit.visit_type or "", "")
            doc.add_text(f"Doctor: Dr. {doctor_name}", m, doc.y)
            doc.add_text(f"Type: {visit_type}", m, doc.y, align="right")
            doc.cursor.advance(6)

            doc.add_text(f"Consultation Fee: Rs. {format_money(visit.consultation_fee)}", m, doc.y)
            doc.add_text(f"Payment: {'PAID' if visit.consultation_fee_paid else 'PENDING'}", m, doc.y, align="right")
            doc.cursor.advance(6)

            if _filled(visit.chief_complaints):
                doc.labelled_block("Chief Complaints:", visit.chief_complaints.strip(), gap_after=0)

        doc.add_section("VISIT INFORMATION", content)

    def _vitals(self) -> None:
        doc = self.doc
        m = doc.margin
        v = self.record.vitals
        col1, col2, col3 = m, m + 60, m + 120
        bmi = v.bmi if v.bmi is not None else compute_bmi(v.height_cm, v.weight_kg)

        def content():
            if v.recorded_at:
                doc.add_text(f"Recorded: {format_datetime(v.recorded_at)}", m, doc.y, size=9)
                doc.cursor.advance(8)

            if v.height_cm is not None or v.weight_kg is not None or bmi is not None:
                if v.height_cm is not None:
                    doc.add_text(f"Height: {format_number(v.height_cm)} cm", col1, doc.y)
                if v.weight_kg is not None:
                    doc.add_text(f"Weight: {format_number(v.weight_kg)} kg", col2, doc.y)
                if bmi is not None:
                    doc.add_text(f"BMI: {format_number(bmi)}", col3, doc.y)
                doc.cursor.advance(6)

            if v.pulse_rate is not None:
                doc.add_text(f"Pulse: {format_number(v.pulse_rate)} bpm", col1, doc.y)
            if v.respiratory_rate is not None:
                doc.add_text(f"Resp. Rate: {format_number(v.respiratory_rate)} /min", col2, doc.y)
            if v.spo2 is not None:
                doc.add_text(f"SpO2: {format_number(v.spo2)}%", col3, doc.y)
            doc.cursor.advance(6)

            if v.blood_pressure_systolic is not None and v.blood_pressure_diastolic is not None:
                bp = f"{format_number(v.blood_pressure_systolic)}/{format_number(v.blood_pressure_diastolic)}"
                doc.add_text(f"Blood Pressure: {bp} mmHg", col1, doc.y)
            if v.temperature_celsius is not None:
                doc.add_text(f"Temperature: {format_number(v.temperature_celsius)}°C", col2, doc.y)
            if v.blood_glucose is not None:
                doc.add_text(f"Blood Glucose: {format_number(v.blood_glucose)} mg/dL", col3, doc.y)
            doc.cursor.advance(6)

            if _filled(v.notes):
                doc.labelled_block("Notes:", v.notes.strip(), gap_after=0)

        doc.add_section("VITAL SIGNS", content)

    def _clinical_documentation(self) -> None:
        doc = self.doc
        visit = self.record

        def content():
            documented = False
            for label, attr in CLINICAL_FIELDS:
                value = _filled(getattr(visit, attr))
                if value:
                    doc.labelled_block(label, value)
                    documented = True

            if not documented:
                doc.add_text(NO_DOCUMENTATION, doc.margin, doc.y)
                doc.cursor.advance(5)

            if visit.follow_up_date:
                doc.cursor.check_page_break(10)
                doc.add_text(f"Follow-up Date: {format_date(visit.follow_up_date)}", doc.margin, doc.y, weight="bold")
                doc.cursor.advance(5)
            if _filled(visit.follow_up_instructions):
                doc.labelled_block("Follow-up Instructions:", visit.follow_up_instructions.strip())

        doc.add_section("CLINICAL DOCUMENTATION", content)

    def _table_header(self) -> None:
        doc = self.doc
        for label, offset, _ in RX_COLUMNS:
            doc.add_text(label, doc.margin + offset, doc.y, size=9, weight="bold")
        doc.cursor.advance(2)
        doc.separator()
        doc.cursor.advance(5)

    def _row_cells(self, index: int, line: PrescriptionLine) -> tuple[str, ...]:
        return (
            f"{index}.",
            line.medicine_name,
            dosage_text(line),
            frequency_text(line),
            f"{line.duration_days} days",
            str(line.quantity),
        )

    def _instructions(self, line: PrescriptionLine) -> str:
        return f"Instructions: {line.instructions.strip()}" if _filled(line.instructions) else ""

    def _row_height(self, index: int, line: PrescriptionLine) -> float:
        doc = self.doc
        cells = max(
            doc.text_height(value, size=9, weight="bold" if label in ("#", "Medicine") else "normal", max_width=width)
            for (label, _, width), value in zip(RX_COLUMNS, self._row_cells(index, line))
        )
        food = 4 if food_timing_label(line.food_timing) else 0
        notes = doc.text_height(self._instructions(line), size=9, max_width=doc.content_width - 7)
        return cells + 1 + food + notes + 3

    def _prescription_row(self, index: int, line: PrescriptionLine) -> None:
        doc = self.doc
        m = doc.margin
        row_y = doc.y
        heights = []
        for (label, offset, width), value in zip(RX_COLUMNS, self._row_cells(index, line)):
            weight = "bold" if label in ("#", "Medicine") else "normal"
            heights.append(doc.add_text(value, m + offset, row_y, size=9, weight=weight, max_width=width))
        doc.cursor.advance(max(heights) + 1)

        food = food_timing_label(line.food_timing)
        if food:
            doc.add_text(food.capitalize(), m + 7, doc.y, size=9)
            doc.cursor.advance(4)
        doc.add_paragraph(self._instructions(line), m + 7, size=9, max_width=doc.content_width - 7)
        doc.cursor.advance(3)

    def _prescriptions(self) -> None:
        doc = self.doc

        def content():
            self._table_header()
            for index, line in enumerate(self.record.prescriptions, start=1):
                if doc.cursor.check_page_break(max(ROW_MIN_HEIGHT_MM, self._row_height(index, line))):
                    self._table_header()
                self._prescription_row(index, line)
            doc.separator()

        doc.add_section("PRESCRIBED MEDICATIONS", content)

    def _footer(self) -> None:
        doc = self.doc
        m = doc.margin
        doc.cursor.check_page_break(FOOTER_MIN_SPACE_MM)
        footer_y = doc.page_height - m - 10
        doctor = self.record.doctor

        doc.add_line(m, footer_y, doc.page_width - m, footer_y)
        signature = f"Dr. {doctor.full_name}" if doctor and doctor.full_name else "Doctor's Signature"
        doc.add_text(signature, m, footer_y + 5, size=10, weight="bold")
        if doctor and doctor.registration_number:
            doc.add_text(doctor.registration_number, m, footer_y + 9, size=8)

        doc.add_text(f"Generated on: {format_datetime(self.generated_at)}", m, footer_y + 5, size=8, align="right")
        doc.add_text(DISCLAIMER, m, footer_y + 9, size=8, align="right")


def render_visit_summary(record: VisitRecord, clinic: ClinicIdentity, *, generated_at: datetime | None = None, compress: bool | None = None) -> RenderedDocument:
    return VisitSummaryRenderer(record, clinic, generated_at=generated_at, compress=compress).render()

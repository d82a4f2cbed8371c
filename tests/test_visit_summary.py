from clinicdesk.modules.documents.layout import MARGIN_MM, PAGE_HEIGHT_MM
from clinicdesk.modules.documents.visit_summary import DISCLAIMER, NO_DOCUMENTATION, RX_COLUMNS, render_visit_summary
from tests.factories import GENERATED_AT, paracetamol

EMPTY_CLINICAL = dict(
    history_of_present_illness=None, physical_examination="  ", diagnosis=None, treatment_plan="", general_advice=None,
)


def render(record, clinic):
    return render_visit_summary(record, clinic, generated_at=GENERATED_AT)


def test_same_input_and_timestamp_give_identical_bytes(record, clinic_identity):
    first = render(record, clinic_identity)
    second = render(record, clinic_identity)
    assert first.content == second.content
    assert first.content.startswith(b"%PDF")


def test_prescription_row_shows_total_and_timing(record, clinic_identity):
    out = render(record, clinic_identity)
    offsets = {label: offset for label, offset, _ in RX_COLUMNS}
    margin = MARGIN_MM

    row = [r for r in out.runs if r.text == "Paracetamol"]
    assert row, "medicine cell missing"
    row_y = row[0].y
    cells = {r.x - margin: r.text for r in out.runs if r.y == row_y and r.page == row[0].page}
    assert cells[offsets["Total"]] == "15"
    assert cells[offsets["Dosage"]] == "500mg"
    assert cells[offsets["Duration"]] == "5 days"
    assert "morning, afternoon, evening" in cells[offsets["Frequency / Timing"]]
    assert "After food" in out.texts()


def test_no_medication_section_without_items(record, clinic_identity):
    out = render(record.model_copy(update={"prescriptions": []}), clinic_identity)
    texts = out.texts()
    assert "PRESCRIBED MEDICATIONS" not in texts
    assert "Medicine" not in texts


def test_single_fallback_line_when_nothing_documented(record, clinic_identity):
    out = render(record.model_copy(update=EMPTY_CLINICAL), clinic_identity)
    assert out.texts().count(NO_DOCUMENTATION) == 1


def test_no_fallback_when_any_field_documented(record, clinic_identity):
    out = render(record.model_copy(update={**EMPTY_CLINICAL, "treatment_plan": "Paracetamol SOS"}), clinic_identity)
    texts = out.texts()
    assert NO_DOCUMENTATION not in texts
    assert "Treatment Plan:" in texts


def test_bmi_is_derived_from_height_and_weight(record, clinic_identity):
    out = render(record, clinic_identity)
    assert "BMI: 24.2" in out.texts()
    assert "Height: 170 cm" in out.texts()


def test_vitals_section_omitted_without_snapshot(record, clinic_identity):
    out = render(record.model_copy(update={"vitals": None}), clinic_identity)
    assert "VITAL SIGNS" not in out.texts()


def test_header_and_footer_content(record, clinic_identity):
    out = render(record, clinic_identity)
    texts = out.texts()
    assert "Sunrise Family Clinic" in texts
    assert "Date: Aug 2, 2025" in texts
    assert "VISIT SUMMARY REPORT" in texts
    assert "Visit Number: #V-20250802-0001" in texts
    assert "Consultation Fee: Rs. 500" in texts
    assert "Payment: PAID" in texts
    assert "Dr. Ravi Kumar" in texts
    assert "Generated on: Aug 2, 2025, 2:30 PM" in texts
    assert DISCLAIMER in texts


def test_missing_clinic_address_has_placeholder(record, clinic_identity):
    out = render(record, clinic_identity.model_copy(update={"address": None}))
    assert "Address not available" in out.texts()


def test_long_prescription_list_repeats_table_header(record, clinic_identity):
    items = [paracetamol(medicine_name=f"Medicine {i}", instructions="Take with warm water") for i in range(40)]
    out = render(record.model_copy(update={"prescriptions": items}), clinic_identity)
    assert out.page_count > 1
    headers = [r for r in out.runs if r.text == "Frequency / Timing"]
    assert len(headers) > 1
    assert len({r.page for r in headers}) == len(headers)

    footer = next(r for r in out.runs if r.text == DISCLAIMER)
    assert footer.page == out.page_count
    body = [r for r in out.runs if r.page == footer.page and r.text.startswith("Medicine ")]
    assert all(r.y < footer.y for r in body)


def test_long_clinical_text_stays_inside_printable_area(record, clinic_identity):
    diagnosis = "Persistent fever with dry cough and mild dehydration noted. " * 120 + "End of assessment."
    out = render(record.model_copy(update={"diagnosis": diagnosis}), clinic_identity)
    assert out.page_count > 1
    assert not [r for r in out.runs if r.y > PAGE_HEIGHT_MM - MARGIN_MM]
    assert any(r.text.endswith("End of assessment.") for r in out.runs)


def test_tall_prescription_rows_start_where_their_instructions_start(record, clinic_identity):
    items = [
        paracetamol(medicine_name=f"Medicine {i}", instructions=f"Dose note {i}. " + "Take after meals with plenty of water. " * 10)
        for i in range(12)
    ]
    out = render(record.model_copy(update={"prescriptions": items}), clinic_identity)
    assert out.page_count > 1
    assert not [r for r in out.runs if r.y > PAGE_HEIGHT_MM - MARGIN_MM]
    for i in range(12):
        name = next(r for r in out.runs if r.text == f"Medicine {i}")
        note = next(r for r in out.runs if r.text.startswith(f"Instructions: Dose note {i}."))
        assert note.page == name.page

from clinicdesk.modules.documents.prescription_pad import GENERICS_NOTE, render_prescription_pad
from clinicdesk.modules.documents.layout import MARGIN_MM, PAGE_HEIGHT_MM
from tests.factories import GENERATED_AT


def test_pad_lists_medicines_with_totals(record, clinic_identity):
    out = render_prescription_pad(record, clinic_identity, generated_at=GENERATED_AT)
    texts = out.texts()
    assert "Rx" in texts
    assert "1) Paracetamol" in texts
    assert "3x daily (morning, afternoon, evening)" in texts
    assert "after food - 5 days" in texts
    assert "Total: 15 mg" in texts
    assert GENERICS_NOTE in texts


def test_pad_header_and_patient_block(record, clinic_identity):
    texts = render_prescription_pad(record, clinic_identity, generated_at=GENERATED_AT).texts()
    assert "Ph. 9822001122, Timing: 10:00 AM - 6:00 PM" in texts
    assert "Closed: Sunday" in texts
    assert "ID: P-20250802-101500-001 - (F) / 34 Y" in texts
    assert "Name: Meera Shah" in texts
    assert "Diagnosis:" in texts and "* Viral fever" in texts


def test_pad_without_medicines_has_no_rx_block(record, clinic_identity):
    texts = render_prescription_pad(record.model_copy(update={"prescriptions": []}), clinic_identity, generated_at=GENERATED_AT).texts()
    assert "Rx" not in texts
    assert "Medicine Name" not in texts


def test_pad_is_deterministic(record, clinic_identity):
    a = render_prescription_pad(record, clinic_identity, generated_at=GENERATED_AT)
    b = render_prescription_pad(record, clinic_identity, generated_at=GENERATED_AT)
    assert a.content == b.content


def test_pad_long_advice_wraps_onto_next_page(record, clinic_identity):
    advice = "\n".join(f"Advice point {i}: rest well, drink fluids and avoid cold food for the next few days." for i in range(80))
    out = render_prescription_pad(record.model_copy(update={"general_advice": advice}), clinic_identity, generated_at=GENERATED_AT)
    assert out.page_count > 1
    assert not [r for r in out.runs if r.y > PAGE_HEIGHT_MM - MARGIN_MM]
    assert any(r.text.startswith("* Advice point 79:") for r in out.runs)

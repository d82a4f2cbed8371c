import pytest

from clinicdesk.modules.documents.layout import MARGIN_MM, PAGE_HEIGHT_MM, DocumentCanvas, LayoutCursor


def test_cursor_breaks_only_when_space_runs_out():
    pages = []
    cursor = LayoutCursor(lambda: pages.append(1))
    cursor.advance(PAGE_HEIGHT_MM - 2 * MARGIN_MM - 20)
    assert cursor.remaining == pytest.approx(20)

    assert cursor.check_page_break(20) is False
    assert cursor.check_page_break(21) is True
    assert pages == [1]
    assert cursor.y == MARGIN_MM


def test_empty_text_uses_no_space_but_is_recorded():
    doc = DocumentCanvas(compress=False)
    assert doc.add_text("", doc.margin, doc.y) == 0
    assert doc.add_text(None, doc.margin, doc.y) == 0
    assert [r.text for r in doc.runs] == ["", ""]


def test_wrapped_text_reports_its_height():
    doc = DocumentCanvas(compress=False)
    height = doc.add_text("word " * 60, doc.margin, doc.y, size=10, max_width=50)
    lines = [r for r in doc.runs if r.text]
    assert len(lines) > 1
    assert height == pytest.approx(len(lines) * 10 * 0.4)
    assert [r.y for r in lines] == sorted(r.y for r in lines)


def test_right_and_center_alignment_anchor_points():
    doc = DocumentCanvas(compress=False)
    doc.add_text("R", 0, 30, align="right")
    doc.add_text("C", 0, 30, align="center")
    right, center = doc.runs
    assert right.x == doc.page_width - doc.margin
    assert center.x == doc.page_width / 2


def test_section_near_page_bottom_moves_to_next_page():
    doc = DocumentCanvas(compress=False)
    doc.cursor.advance(doc.cursor.remaining - 10)
    doc.add_section("TITLE", lambda: doc.add_text("body", doc.margin, doc.y))
    title = next(r for r in doc.runs if r.text == "TITLE")
    assert title.page == 2
    assert title.y == MARGIN_MM
    out = doc.finish()
    assert out.page_count == 2
    assert out.content.startswith(b"%PDF")


def test_paragraph_continues_on_next_page_line_by_line():
    doc = DocumentCanvas(compress=False)
    doc.cursor.advance(doc.cursor.remaining - 10)
    height = doc.add_paragraph("word " * 200, size=10)
    lines = [r for r in doc.runs if r.text]
    assert height == pytest.approx(len(lines) * 4)
    assert {r.page for r in lines} == {1, 2}
    assert all(r.y <= PAGE_HEIGHT_MM - MARGIN_MM for r in lines)
    assert next(r for r in lines if r.page == 2).y == MARGIN_MM
    assert doc.y == pytest.approx(lines[-1].y + 4)


def test_text_height_matches_emitted_lines():
    doc = DocumentCanvas(compress=False)
    text = "Apply a thin layer over the affected area twice a day " * 3
    expected = doc.text_height(text, size=9, max_width=40)
    assert expected > 9 * 0.4
    assert doc.add_text(text, doc.margin, doc.y, size=9, max_width=40) == pytest.approx(expected)
    assert doc.text_height("", size=9) == 0

"""Page layout primitives for the clinic PDF documents.

Coordinates are millimetres measured from the top-left corner of an A4
portrait page; conversion to PDF points (origin bottom-left) happens only
when something is drawn. Every text emission is mirrored into ``runs`` so
the layout can be inspected without parsing the PDF.
"""
import io
from dataclasses import dataclass, field
from typing import Callable, Literal

from fastapi import Response
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen.canvas import Canvas

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 20.0

# vertical space taken by one line of text, per point of font size
LINE_HEIGHT_MM_PER_PT = 0.4

SECTION_MIN_HEIGHT_MM = 15.0

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

Align = Literal["left", "center", "right"]
Weight = Literal["normal", "bold"]


@dataclass(frozen=True)
class TextRun:
    page: int
    x: float
    y: float
    text: str
    size: float
    weight: str
    align: str


class LayoutCursor:
    """Current vertical write position on the page."""

    def __init__(self, on_new_page: Callable[[], None], *, page_height: float = PAGE_HEIGHT_MM, margin: float = MARGIN_MM):
        self._on_new_page = on_new_page
        self.page_height = page_height
        self.margin = margin
        self.y = margin

    @property
    def remaining(self) -> float:
        return self.page_height - self.margin - self.y

    def advance(self, by: float) -> None:
        self.y += by

    def check_page_break(self, needed_height: float) -> bool:
        if self.remaining < needed_height:
            self._on_new_page()
            self.y = self.margin
            return True
        return False


@dataclass
class RenderedDocument:
    content: bytes
    page_count: int
    runs: list[TextRun] = field(default_factory=list)
    media_type: str = "application/pdf"

    def get_blob(self) -> bytes:
        return self.content

    def download(self, filename: str) -> Response:
        return Response(
            content=self.content,
            media_type=self.media_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    def texts(self) -> list[str]:
        return [r.text for r in self.runs]


class DocumentCanvas:
    def __init__(self, *, title: str | None = None, author: str | None = None, compress: bool = True, margin: float = MARGIN_MM):
        self._buffer = io.BytesIO()
        # invariant=1 pins the creation date and document id so equal input gives equal bytes
        self._pdf = Canvas(
            self._buffer,
            pagesize=(PAGE_WIDTH_MM * mm, PAGE_HEIGHT_MM * mm),
            pageCompression=1 if compress else 0,
            invariant=1,
        )
        if title:
            self._pdf.setTitle(title)
        if author:
            self._pdf.setAuthor(author)
        self.page_width = PAGE_WIDTH_MM
        self.page_height = PAGE_HEIGHT_MM
        self.margin = margin
        self.page = 1
        self.runs: list[TextRun] = []
        self.cursor = LayoutCursor(self.new_page, page_height=self.page_height, margin=margin)

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def y(self) -> float:
        return self.cursor.y

    def new_page(self) -> None:
        self._pdf.showPage()
        self.page += 1

    def _pt_y(self, y: float) -> float:
        return (self.page_height - y) * mm

    # ---- Text Block Emitter ----

    def wrap(self, text: str, *, size: float = 10, weight: Weight = "normal", max_width: float | None = None) -> list[str]:
        if not max_width:
            return [text]
        font = FONT_BOLD if weight == "bold" else FONT_REGULAR
        return simpleSplit(text, font, size, max_width * mm) or [text]

    def text_height(self, text: str | None, *, size: float = 10, weight: Weight = "normal", max_width: float | None = None) -> float:
        if not text:
            return 0.0
        return len(self.wrap(str(text), size=size, weight=weight, max_width=max_width)) * size * LINE_HEIGHT_MM_PER_PT

    def add_paragraph(
        self,
        text: str | None,
        x: float | None = None,
        *,
        size: float = 10,
        weight: Weight = "normal",
        max_width: float | None = None,
    ) -> float:
        """Write wrapped text at the cursor one line at a time, moving to a new
        page whenever the next line would pass the bottom margin. The cursor
        ends below the last line; returns the height written."""
        if not text:
            return 0.0
        x = self.margin if x is None else x
        width = max_width if max_width is not None else self.page_width - self.margin - x
        step = size * LINE_HEIGHT_MM_PER_PT
        lines = self.wrap(str(text), size=size, weight=weight, max_width=width)
        for line in lines:
            self.cursor.check_page_break(step)
            self.add_text(line, x, self.y, size=size, weight=weight)
            self.cursor.advance(step)
        return len(lines) * step

    def add_text(
        self,
        text: str | None,
        x: float,
        y: float,
        *,
        size: float = 10,
        weight: Weight = "normal",
        align: Align = "left",
        max_width: float | None = None,
    ) -> float:
        """Write ``text`` and return the vertical space it used in mm."""
        text = "" if text is None else str(text)
        font = FONT_BOLD if weight == "bold" else FONT_REGULAR

        if align == "center":
            x = self.page_width / 2
        elif align == "right":
            x = self.page_width - self.margin

        self._pdf.setFont(font, size)
        if not text:
            self.runs.append(TextRun(self.page, x, y, "", size, weight, align))
            return 0.0

        lines = self.wrap(text, size=size, weight=weight, max_width=max_width)
        step = size * LINE_HEIGHT_MM_PER_PT
        for i, line in enumerate(lines):
            line_y = y + i * step
            if align == "center":
                self._pdf.drawCentredString(x * mm, self._pt_y(line_y), line)
            elif align == "right":
                self._pdf.drawRightString(x * mm, self._pt_y(line_y), line)
            else:
                self._pdf.drawString(x * mm, self._pt_y(line_y), line)
            self.runs.append(TextRun(self.page, x, line_y, line, size, weight, align))
        return len(lines) * step

    def add_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._pdf.line(x1 * mm, self._pt_y(y1), x2 * mm, self._pt_y(y2))

    def add_rect(self, x: float, y: float, width: float, height: float, *, fill_rgb: tuple[int, int, int] | None = None) -> None:
        bottom = self._pt_y(y + height)
        if fill_rgb is not None:
            r, g, b = fill_rgb
            self._pdf.setFillColorRGB(r / 255, g / 255, b / 255)
            self._pdf.rect(x * mm, bottom, width * mm, height * mm, stroke=0, fill=1)
            self._pdf.setFillColorRGB(0, 0, 0)
        else:
            self._pdf.rect(x * mm, bottom, width * mm, height * mm, stroke=1, fill=0)

    def separator(self) -> None:
        self.add_line(self.margin, self.y, self.page_width - self.margin, self.y)

    # ---- Section Renderer ----

    def add_section(self, title: str, content: Callable[[], None]) -> None:
        self.cursor.check_page_break(SECTION_MIN_HEIGHT_MM)
        self.add_text(title, self.margin, self.y, size=12, weight="bold")
        self.cursor.advance(8)
        self.separator()
        self.cursor.advance(8)
        content()
        self.cursor.advance(10)

    def labelled_block(self, label: str, body: str, *, x: float | None = None, gap_after: float = 5) -> None:
        """Bold label line followed by wrapped body text."""
        x = self.margin if x is None else x
        self.cursor.check_page_break(12)
        self.add_text(label, x, self.y, weight="bold")
        self.cursor.advance(5)
        self.add_paragraph(body, x)
        self.cursor.advance(gap_after)

    def finish(self) -> RenderedDocument:
        self._pdf.showPage()
        self._pdf.save()
        content = self._buffer.getvalue()
        self._buffer.close()
        return RenderedDocument(content=content, page_count=self.page, runs=list(self.runs))

"""
Document renderer: turns a Document (+ its Client) into an ordered list of
absolute-positioned draw instructions.

Units are millimetres on an A4 page, origin top-left. The output is plain
data: exports.to_pdf() paints it, the API returns it as JSON.

Both layouts share one instruction stream; a Layout record only decides where
the header, metadata, client block and notes sit and how they are aligned.
"""

from dataclasses import dataclass
from typing import List, Optional

from reportlab.pdfbase.pdfmetrics import stringWidth

from documents import TAX_RATE, format_money, format_quantity
from models import (
    Client,
    Document,
    FontStyle,
    LineInstruction,
    RectInstruction,
    TextAlign,
    TextInstruction,
)


# ── Page geometry ──────────────────────────────────────────────────────────────

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN_LEFT = 20.0
MARGIN_RIGHT = 190.0
CONTENT_WIDTH = MARGIN_RIGHT - MARGIN_LEFT
PAGE_CENTER = PAGE_WIDTH / 2
PAGE_TOP = 20.0
PAGE_BOTTOM = 277.0

LINE_HEIGHT = 7.0
ROW_HEIGHT = 10.0
TABLE_TOP = 90.0
TABLE_BAND_HEIGHT = 10.0
TABLE_COLUMNS = (
    ("Description", 25.0),
    ("Qty",         120.0),
    ("Price",       145.0),
    ("Total",       170.0),
)
TOTALS_LABEL_X = 140.0
TOTALS_VALUE_X = MARGIN_RIGHT

NOTES_FONT_SIZE = 10
# 1.15 line spacing, points -> mm
NOTES_LINE_HEIGHT = NOTES_FONT_SIZE * 1.15 * 25.4 / 72

PT_PER_MM = 72 / 25.4

BLACK       = "#000000"
SLATE_500   = "#64748b"
SLATE_700   = "#334155"
SLATE_600   = "#475569"
SLATE_100   = "#f1f5f9"
GRAY        = "#505050"
MUTED       = "#646464"

UNKNOWN_CLIENT = "Unknown Client"

PDF_FACES = {
    "helvetica": {"normal": "Helvetica",   "bold": "Helvetica-Bold", "italic": "Helvetica-Oblique"},
    "times":     {"normal": "Times-Roman", "bold": "Times-Bold",     "italic": "Times-Italic"},
    "courier":   {"normal": "Courier",     "bold": "Courier-Bold",   "italic": "Courier-Oblique"},
}


def pdf_font_name(family: str, style: str = "normal") -> str:
    """Standard PDF face for a font family + style, e.g. ('times', 'bold')."""
    return PDF_FACES[family][style]


# ── Layouts ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Layout:
    name: str
    align: TextAlign
    title_x: float
    title_size: float
    type_x: float
    type_dy: float           # type label offset below the title baseline
    type_size: float
    type_color: str
    header_gap: float        # cursor advance after the type label
    meta_x: float
    client_x: float
    client_after_meta: bool  # False: client block starts level with metadata
    notes_x: float


MODERN = Layout(
    name="modern",
    align="left",
    title_x=MARGIN_LEFT,
    title_size=22,
    type_x=140.0,
    type_dy=0.0,
    type_size=30,
    type_color=SLATE_500,
    header_gap=15.0,
    meta_x=140.0,
    client_x=MARGIN_LEFT,
    client_after_meta=False,
    notes_x=MARGIN_LEFT,
)

CLASSIC = Layout(
    name="classic",
    align="center",
    title_x=PAGE_CENTER,
    title_size=26,
    type_x=PAGE_CENTER,
    type_dy=12.0,
    type_size=16,
    type_color=GRAY,
    header_gap=20.0,
    meta_x=PAGE_CENTER,
    client_x=PAGE_CENTER,
    client_after_meta=True,
    notes_x=PAGE_CENTER,
)

LAYOUTS = {layout.name: layout for layout in (MODERN, CLASSIC)}


# ── Text wrapping ──────────────────────────────────────────────────────────────

def wrap_text(text: str, width: float, font_name: str, size: float) -> List[str]:
    """
    Split text into lines no wider than `width` mm when set in font_name/size.
    Explicit newlines start a new paragraph; words wider than a full line are
    broken by character.
    """
    limit = width * PT_PER_MM

    def fits(candidate: str) -> bool:
        return stringWidth(candidate, font_name, size) <= limit

    lines: List[str] = []
    for paragraph in text.splitlines():
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if fits(candidate):
                current = candidate
                continue
            if current:
                lines.append(current)
            while not fits(word):
                cut = 1
                while cut < len(word) and fits(word[: cut + 1]):
                    cut += 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


# ── Instruction builder ────────────────────────────────────────────────────────

class _Sheet:
    """Collects instructions for one render, tracking page and font family."""

    def __init__(self, font: str):
        self.font = font
        self.page = 1
        self.instructions: list = []

    def new_page(self) -> float:
        self.page += 1
        return PAGE_TOP

    def text(
        self,
        x: float,
        y: float,
        text: str,
        size: float = 10,
        color: str = BLACK,
        style: FontStyle = "normal",
        align: TextAlign = "left",
    ) -> None:
        self.instructions.append(TextInstruction(
            page=self.page, x=x, y=y, text=text, font=self.font,
            style=style, size=size, color=color, align=align,
        ))

    def rect(self, x: float, y: float, width: float, height: float, fill_color: str) -> None:
        self.instructions.append(RectInstruction(
            page=self.page, x=x, y=y, width=width, height=height, fill_color=fill_color,
        ))

    def line(self, x1: float, y1: float, x2: float, y2: float, color: str, width: float) -> None:
        self.instructions.append(LineInstruction(
            page=self.page, x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width,
        ))


def _table_header(sheet: _Sheet, top: float) -> float:
    """Gray band + bold column titles; returns the y of the first row."""
    sheet.rect(MARGIN_LEFT, top - 5, CONTENT_WIDTH, TABLE_BAND_HEIGHT, SLATE_100)
    for title, x in TABLE_COLUMNS:
        sheet.text(x, top + 1.5, title, color=SLATE_600, style="bold")
    return top + 12


# ── Public API ─────────────────────────────────────────────────────────────────

def render_document(
    document: Document,
    client: Optional[Client] = None,
    business_name: str = "Orange Business",
    currency: str = "$",
) -> list:
    """
    Render a document into draw instructions.

    A missing client renders as "Unknown Client" with empty company, email
    and address lines. Output depends only on the arguments.
    """
    design = document.design
    layout = LAYOUTS[design.layout]
    accent = design.accent_color
    sheet = _Sheet(design.font_family)
    totals = document.totals

    # Header
    y = PAGE_TOP
    sheet.text(layout.title_x, y, business_name.upper(),
               size=layout.title_size, color=accent, align=layout.align)
    y += layout.type_dy
    sheet.text(layout.type_x, y, document.type.upper(),
               size=layout.type_size, color=layout.type_color, align=layout.align)
    y += layout.header_gap
    header_bottom = y

    # Metadata
    meta = [
        f"Document ID: #{document.id[:8]}",
        f"Date: {document.issue_date.isoformat()}",
        f"Due Date: {document.due_date.isoformat()}",
        f"Status: {document.status.upper()}",
    ]
    for i, line in enumerate(meta):
        if i:
            y += LINE_HEIGHT
        sheet.text(layout.meta_x, y, line, align=layout.align)

    # Client
    y = y + 15 if layout.client_after_meta else header_bottom
    sheet.text(layout.client_x, y, "Bill To:", size=12, color=SLATE_700, align=layout.align)
    y += LINE_HEIGHT
    sheet.text(layout.client_x, y, (client.name if client else "") or UNKNOWN_CLIENT,
               size=14, align=layout.align)
    for value in (
        client.company if client else "",
        client.email if client else "",
        client.address if client else "",
    ):
        y += LINE_HEIGHT
        sheet.text(layout.client_x, y, value, color=MUTED, align=layout.align)

    # Line items
    y = _table_header(sheet, max(TABLE_TOP, y + 12))
    for item in document.items:
        if y > PAGE_BOTTOM:
            y = _table_header(sheet, sheet.new_page() + 5)
        sheet.text(TABLE_COLUMNS[0][1], y, item.description)
        sheet.text(TABLE_COLUMNS[1][1], y, format_quantity(item.quantity))
        sheet.text(TABLE_COLUMNS[2][1], y, format_money(item.unit_price, currency))
        sheet.text(TABLE_COLUMNS[3][1], y, format_money(item.amount, currency))
        y += ROW_HEIGHT

    # Rule + totals stay together
    if y + 28 > PAGE_BOTTOM:
        y = sheet.new_page()
    sheet.line(MARGIN_LEFT, y, MARGIN_RIGHT, y, color=accent, width=0.5)
    y += 10

    sheet.text(TOTALS_LABEL_X, y, "Subtotal:")
    sheet.text(TOTALS_VALUE_X, y, format_money(totals.subtotal, currency), align="right")
    y += 8
    sheet.text(TOTALS_LABEL_X, y, f"Tax ({TAX_RATE:.0%}):")
    sheet.text(TOTALS_VALUE_X, y, format_money(totals.tax, currency), align="right")
    y += 10
    sheet.text(TOTALS_LABEL_X, y, "Total:", size=12, color=accent, style="bold")
    sheet.text(TOTALS_VALUE_X, y, format_money(totals.total, currency),
               size=12, color=accent, style="bold", align="right")

    # Notes
    notes = (document.notes or "").strip()
    if notes:
        y += 30
        if y > PAGE_BOTTOM:
            y = sheet.new_page()
        sheet.text(layout.notes_x, y, "Notes:", color=SLATE_700, style="bold", align=layout.align)
        y += LINE_HEIGHT

        face = pdf_font_name(design.font_family, "italic")
        for line in wrap_text(notes, CONTENT_WIDTH, face, NOTES_FONT_SIZE):
            if y > PAGE_BOTTOM:
                y = sheet.new_page()
            if line:
                sheet.text(layout.notes_x, y, line, size=NOTES_FONT_SIZE, color=MUTED,
                           style="italic", align=layout.align)
            y += NOTES_LINE_HEIGHT

    return sheet.instructions


def page_count(instructions: list) -> int:
    return max((ins.page for ins in instructions), default=1)

"""
Export helpers: paint draw instructions into a PDF, and convert a Document
into CSV or Excel (bytes).
"""

import csv
import io
from typing import Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from documents import TAX_RATE, compute_totals, format_quantity
from models import Client, Document
from renderer import pdf_font_name, render_document
from utils import make_thumbnail, pdf_to_images


# ── PDF ────────────────────────────────────────────────────────────────────────

def to_pdf(instructions: list, title: str = "") -> bytes:
    """
    Paint renderer instructions onto A4 pages and return the PDF bytes.

    Instructions use millimetres from the top-left corner; reportlab works in
    points from the bottom-left, so every y is flipped against the page height.
    """
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    if title:
        pdf.setTitle(title)
    _, page_height = A4

    def flip(y_mm: float) -> float:
        return page_height - y_mm * mm

    page = 1
    for ins in instructions:
        while ins.page > page:
            pdf.showPage()
            page += 1

        if ins.kind == "text":
            pdf.setFont(pdf_font_name(ins.font, ins.style), ins.size)
            pdf.setFillColor(HexColor(ins.color))
            x, y = ins.x * mm, flip(ins.y)
            if ins.align == "center":
                pdf.drawCentredString(x, y, ins.text)
            elif ins.align == "right":
                pdf.drawRightString(x, y, ins.text)
            else:
                pdf.drawString(x, y, ins.text)

        elif ins.kind == "rect":
            pdf.setFillColor(HexColor(ins.fill_color))
            pdf.rect(
                ins.x * mm,
                flip(ins.y + ins.height),
                ins.width * mm,
                ins.height * mm,
                stroke=0,
                fill=1,
            )

        elif ins.kind == "line":
            pdf.setStrokeColor(HexColor(ins.color))
            pdf.setLineWidth(ins.width * mm)
            pdf.line(ins.x1 * mm, flip(ins.y1), ins.x2 * mm, flip(ins.y2))

    pdf.showPage()
    pdf.save()
    return buf.getvalue()


def render_pdf(
    document: Document,
    client: Optional[Client] = None,
    business_name: str = "Orange Business",
    currency: str = "$",
) -> bytes:
    instructions = render_document(document, client, business_name, currency)
    return to_pdf(instructions, title=f"{document.type.title()} {document.id}")


def to_png_preview(pdf_bytes: bytes, max_width: int = 600) -> bytes:
    """First page of a rendered PDF as a PNG thumbnail."""
    pages = pdf_to_images(pdf_bytes, dpi=100)
    return make_thumbnail(pages[0], max_width=max_width)


# ── CSV ────────────────────────────────────────────────────────────────────────

def to_csv(document: Document, client: Optional[Client] = None) -> bytes:
    """
    Returns a UTF-8 CSV as bytes.

    Layout:
      Section 1 — Document summary (label, value rows)
      Section 2 — Line items table
    """
    totals = compute_totals(document.items)
    buf = io.StringIO()
    writer = csv.writer(buf)

    writer.writerow([f"{document.type.upper()} EXPORT"])
    writer.writerow(["Document ID", document.id])
    writer.writerow([])

    writer.writerow(["=== CLIENT ==="])
    writer.writerow(["Client Name",   client.name if client else ""])
    writer.writerow(["Company",       client.company if client else ""])
    writer.writerow(["Email",         client.email if client else ""])
    writer.writerow(["Address",       client.address if client else ""])
    writer.writerow([])

    writer.writerow(["=== DOCUMENT ==="])
    writer.writerow(["Type",          document.type])
    writer.writerow(["Status",        document.status])
    writer.writerow(["Issue Date",    document.issue_date.isoformat()])
    writer.writerow(["Due Date",      document.due_date.isoformat()])
    writer.writerow([])

    writer.writerow(["=== TOTALS ==="])
    writer.writerow(["Subtotal",      f"{totals.subtotal:.2f}"])
    writer.writerow([f"Tax ({TAX_RATE:.0%})", f"{totals.tax:.2f}"])
    writer.writerow(["TOTAL",         f"{totals.total:.2f}"])
    writer.writerow([])

    if document.notes:
        writer.writerow(["=== NOTES ==="])
        writer.writerow(["Notes", document.notes])
        writer.writerow([])

    writer.writerow(["=== LINE ITEMS ==="])
    writer.writerow(["#", "Description", "Quantity", "Unit Price", "Total"])
    for i, item in enumerate(document.items, start=1):
        writer.writerow([
            i,
            item.description,
            format_quantity(item.quantity),
            f"{item.unit_price:.2f}",
            f"{item.amount:.2f}",
        ])

    return buf.getvalue().encode("utf-8-sig")   # utf-8-sig = BOM for Excel compatibility


# ── Excel ──────────────────────────────────────────────────────────────────────

def to_excel(document: Document, client: Optional[Client] = None) -> bytes:
    """
    Returns an .xlsx file as bytes with two sheets:
      Sheet 1 — Document Summary
      Sheet 2 — Line Items
    Header fills use the document's accent colour.
    """
    from openpyxl import Workbook
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter

    totals = compute_totals(document.items)
    wb = Workbook()

    ws1 = wb.active
    ws1.title = "Document Summary"

    ACCENT = document.design.accent_color.lstrip("#").upper()
    LACCENT = "F1F5F9"
    DGRAY  = "1E293B"
    LGRAY  = "F8FAFC"

    thin = Side(style="thin", color="CBD5E1")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    def paint(cell, value, font: Font, fill_color: str):
        cell.value = value
        cell.font = font
        cell.fill = PatternFill("solid", fgColor=fill_color)
        cell.border = border

    def add_section(ws, title: str, rows: list[tuple], start_row: int) -> int:
        """Accent-coloured title bar over label/value rows. Returns next free row."""
        paint(ws.cell(row=start_row, column=1), title, Font(bold=True, color="FFFFFF", size=11), ACCENT)
        ws.cell(row=start_row, column=2).border = border
        ws.merge_cells(start_row=start_row, start_column=1, end_row=start_row, end_column=2)

        for offset, (label, value) in enumerate(rows, start=1):
            paint(ws.cell(row=start_row + offset, column=1), label, Font(bold=True, color=DGRAY, size=10), LACCENT)
            paint(ws.cell(row=start_row + offset, column=2), value, Font(color=DGRAY, size=10), LGRAY)

        return start_row + len(rows) + 2

    title_cell = ws1.cell(row=1, column=1, value=f"{document.type.upper()} EXPORT")
    title_cell.font = Font(bold=True, size=14, color=ACCENT)
    ws1.cell(row=1, column=2, value=f"ID: {document.id}").font = Font(size=10, color="64748B")
    ws1.row_dimensions[1].height = 24

    row = 3

    row = add_section(ws1, "CLIENT", [
        ("Client Name",  client.name if client else None),
        ("Company",      client.company if client else None),
        ("Email",        client.email if client else None),
        ("Address",      client.address if client else None),
    ], row)

    row = add_section(ws1, "DOCUMENT", [
        ("Type",         document.type),
        ("Status",       document.status),
        ("Issue Date",   document.issue_date),
        ("Due Date",     document.due_date),
    ], row)

    row = add_section(ws1, "TOTALS", [
        ("Subtotal",                totals.subtotal),
        (f"Tax ({TAX_RATE:.0%})",   totals.tax),
        ("TOTAL",                   totals.total),
    ], row)

    if document.notes:
        add_section(ws1, "NOTES", [("Notes", document.notes)], row)

    ws1.column_dimensions["A"].width = 22
    ws1.column_dimensions["B"].width = 45

    # ── Sheet 2: Line Items ────────────────────────────────────────────────────
    ws2 = wb.create_sheet("Line Items")

    col_headers = ["#", "Description", "Quantity", "Unit Price", "Total"]
    col_widths   = [5,   55,            12,         14,           14]

    for col_idx, (h, w) in enumerate(zip(col_headers, col_widths), start=1):
        cell = ws2.cell(row=1, column=col_idx, value=h)
        cell.font = Font(bold=True, color="FFFFFF", size=10)
        cell.fill = PatternFill("solid", fgColor=ACCENT)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = border
        ws2.column_dimensions[get_column_letter(col_idx)].width = w

    for row_idx, item in enumerate(document.items, start=2):
        fill = PatternFill("solid", fgColor="F1F5F9" if row_idx % 2 == 0 else "FFFFFF")
        values = [row_idx - 1, item.description, item.quantity, item.unit_price, item.amount]
        for col_idx, val in enumerate(values, start=1):
            cell = ws2.cell(row=row_idx, column=col_idx, value=val)
            cell.font = Font(size=10)
            cell.fill = fill
            cell.border = border
            if col_idx in (3, 4, 5):
                cell.alignment = Alignment(horizontal="right")
                cell.number_format = "#,##0.00"

    if document.items:
        total_row = len(document.items) + 2
        ws2.cell(row=total_row, column=2, value="TOTAL").font = Font(bold=True)
        ws2.cell(row=total_row, column=5, value=totals.total).font = Font(bold=True)
        ws2.cell(row=total_row, column=5).number_format = "#,##0.00"

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.read()

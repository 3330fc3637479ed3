import csv
import io
import os
import sys

import fitz  # PyMuPDF
import pytest
from PIL import Image

# Allow imports from parent directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models import Client, Document, DocumentDesign, LineItem  # noqa: E402


CLIENT = Client(id="c1", name="Acme Corp", email="contact@acme.com", company="Acme Inc")


@pytest.fixture
def document():
    return Document(
        id="d1002",
        client_id="c1",
        type="quote",
        status="sent",
        items=[
            LineItem(description="Maintenance", quantity=10, unit_price=200),
            LineItem(description="Setup fee", quantity="1", unit_price="abc"),
        ],
        issue_date="2023-11-01",
        due_date="2023-11-15",
        notes="Looking forward to working together.",
        design=DocumentDesign(accent_color="#059669", font_family="times", layout="classic"),
    )


def pdf_text(pdf_bytes: bytes) -> str:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    text = "\n".join(page.get_text() for page in doc)
    doc.close()
    return text


class TestPdf:
    def test_render_pdf_contains_document(self, document):
        from exports import render_pdf
        pdf = render_pdf(document, CLIENT)
        assert pdf.startswith(b"%PDF")
        text = pdf_text(pdf)
        assert "ORANGE BUSINESS" in text
        assert "QUOTE" in text
        assert "Acme Corp" in text
        assert "$2200.00" in text
        assert "Looking forward to working together." in text

    def test_one_pdf_page_per_instruction_page(self, document):
        from exports import to_pdf
        from renderer import page_count, render_document
        document.items = [LineItem(description=f"Row {n}", quantity=1, unit_price=1) for n in range(45)]
        instructions = render_document(document, CLIENT)
        pdf = fitz.open(stream=to_pdf(instructions), filetype="pdf")
        assert pdf.page_count == page_count(instructions)
        pdf.close()

    def test_png_preview(self, document):
        from exports import render_pdf, to_png_preview
        png = to_png_preview(render_pdf(document, CLIENT), max_width=300)
        img = Image.open(io.BytesIO(png))
        assert img.format == "PNG"
        assert img.width == 300
        assert img.height > img.width  # portrait A4


class TestCsv:
    def test_csv_sections(self, document):
        from exports import to_csv
        raw = to_csv(document, CLIENT)
        assert raw.startswith(b"\xef\xbb\xbf")
        rows = list(csv.reader(io.StringIO(raw.decode("utf-8-sig"))))
        assert rows[0] == ["QUOTE EXPORT"]
        assert ["Client Name", "Acme Corp"] in rows
        assert ["Subtotal", "2000.00"] in rows
        assert ["Tax (10%)", "200.00"] in rows
        assert ["TOTAL", "2200.00"] in rows
        assert ["1", "Maintenance", "10", "200.00", "2000.00"] in rows
        assert ["2", "Setup fee", "1", "0.00", "0.00"] in rows

    def test_csv_without_client(self, document):
        from exports import to_csv
        rows = list(csv.reader(io.StringIO(to_csv(document).decode("utf-8-sig"))))
        assert ["Client Name", ""] in rows


class TestExcel:
    def test_excel_sheets(self, document):
        from openpyxl import load_workbook
        from exports import to_excel
        wb = load_workbook(io.BytesIO(to_excel(document, CLIENT)))
        assert wb.sheetnames == ["Document Summary", "Line Items"]

        items = wb["Line Items"]
        assert items.cell(row=1, column=2).value == "Description"
        assert items.cell(row=1, column=1).fill.fgColor.rgb.endswith("059669")
        assert items.cell(row=2, column=2).value == "Maintenance"
        assert items.cell(row=2, column=5).value == 2000
        assert items.cell(row=4, column=5).value == pytest.approx(2200)

        summary = wb["Document Summary"]
        values = [row for row in summary.iter_rows(values_only=True)]
        assert ("TOTAL", pytest.approx(2200)) in values

    def test_summary_sections(self, document):
        from openpyxl import load_workbook
        from exports import to_excel
        summary = load_workbook(io.BytesIO(to_excel(document, CLIENT)))["Document Summary"]
        assert summary.cell(row=3, column=1).value == "CLIENT"
        assert summary.cell(row=3, column=1).fill.fgColor.rgb.endswith("059669")
        assert summary.cell(row=4, column=1).value == "Client Name"
        assert summary.cell(row=4, column=2).value == "Acme Corp"
        # four client rows plus a blank gap
        assert summary.cell(row=9, column=1).value == "DOCUMENT"

import io
import math
from typing import List

import fitz  # PyMuPDF
from PIL import Image


def to_float(value) -> float:
    """Coerce a form value to float; anything non-numeric becomes 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def pdf_to_images(pdf_bytes: bytes, dpi: int = 150) -> List[bytes]:
    """Convert each page of a PDF to a PNG image (bytes)."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    images = []
    for page in doc:
        mat = fitz.Matrix(dpi / 72, dpi / 72)
        pix = page.get_pixmap(matrix=mat)
        images.append(pix.tobytes("png"))
    doc.close()
    return images


def make_thumbnail(png_bytes: bytes, max_width: int = 600) -> bytes:
    """
    Downscale a PNG to at most max_width pixels wide (aspect kept).
    Returns PNG bytes; images already narrow enough are re-encoded as-is.
    """
    img = Image.open(io.BytesIO(png_bytes))
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGB")

    if img.width > max_width:
        height = max(1, round(img.height * max_width / img.width))
        img = img.resize((max_width, height), Image.LANCZOS)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

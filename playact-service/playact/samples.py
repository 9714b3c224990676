"""
Sample invoice PDFs used as fixtures for content and visual checks.

One correct invoice plus four defective variants, each differing from the
original in exactly one way. The PDFs carry a real text layer so the
extractor and validator can read them, and a raster logo so visual checks
have something to find.
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple, Union

import fitz  # PyMuPDF
import numpy as np
from PIL import Image, ImageDraw


class InvoiceVariant(str, Enum):
    ORIGINAL = "original"
    TOTAL_MISSING = "total-missing"
    LOGO_MISSING = "logo-missing"
    WRONG_LOGO = "wrong-logo"
    WRONG_CALCULATIONS = "wrong-calculations"


SAMPLE_FILES: Dict[InvoiceVariant, str] = {
    InvoiceVariant.ORIGINAL: "Invoice.pdf",
    InvoiceVariant.TOTAL_MISSING: "total-missing.pdf",
    InvoiceVariant.LOGO_MISSING: "logo-missing.pdf",
    InvoiceVariant.WRONG_LOGO: "wrong-logo.pdf",
    InvoiceVariant.WRONG_CALCULATIONS: "wrong-calculations.pdf",
}

# Fixture file name -> baseline snapshot name
BASELINE_NAMES: Dict[str, str] = {
    "Invoice.pdf": "original-invoice",
    "total-missing.pdf": "total-missing-invoice",
    "logo-missing.pdf": "logo-missing-invoice",
    "wrong-logo.pdf": "wrong-logo-invoice",
    "wrong-calculations.pdf": "wrong-calculations-invoice",
}

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")

LOGO_RECT = fitz.Rect(40, 40, 260, 240)
LOGO_PIXELS = (440, 400)

FONT = "helv"
FONT_BOLD = "hebo"
FONT_SIZE = 11

LEFT_LABEL, LEFT_VALUE = 40, 160
RIGHT_LABEL, RIGHT_VALUE = 320, 450

EMPLOYEE_ROWS: List[Tuple[str, str, str, str]] = [
    ("Employee Name", "John Doe", "Start Date", "01/10/2024"),
    ("Department", "Finance", "Month", "May / 2025"),
    ("Email", "john@doe.co", "Days Billed", "26.00"),
]

PAYABLES: List[Tuple[str, str]] = [
    ("Total Expanse", "500.00"),
    ("Service", "10.00"),
    ("Miscal", "5.00"),
]

DEDUCTIONS: List[Tuple[str, str]] = [
    ("Package Discount", "5.00"),
    ("Other Deductions", "0.00"),
]

TOTAL_INCOME = "515.00"
TOTAL_DEDUCTIONS = "5.00"
NET_BILL = "510.00"
WRONG_NET_BILL = "515.00"
CURRENCY = "PKR"

FOOTER = (
    "This is a system-generated document and does not require a physical stamp or signature."
)


def _png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def company_logo() -> bytes:
    """Solid navy badge with a light monogram bar."""
    width, height = LOGO_PIXELS
    img = Image.new("RGB", LOGO_PIXELS, (24, 42, 118))
    draw = ImageDraw.Draw(img)
    draw.rectangle((40, height // 2 - 20, width - 40, height // 2 + 20), fill=(96, 140, 230))
    return _png_bytes(img)


def wrong_logo() -> bytes:
    """Warm-toned noise, so the image is different everywhere and compresses badly."""
    width, height = LOGO_PIXELS
    rng = np.random.RandomState(7)
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[..., 0] = rng.randint(200, 256, size=(height, width))
    pixels[..., 1] = rng.randint(80, 180, size=(height, width))
    pixels[..., 2] = rng.randint(0, 60, size=(height, width))
    return _png_bytes(Image.fromarray(pixels))


def _pair(page: fitz.Page, y: float, label: str, value: str, label_x: float, value_x: float) -> None:
    page.insert_text((label_x, y), label, fontname=FONT, fontsize=FONT_SIZE)
    page.insert_text((value_x, y), value, fontname=FONT, fontsize=FONT_SIZE)


def build_invoice_pdf(variant: Union[InvoiceVariant, str] = InvoiceVariant.ORIGINAL) -> bytes:
    """
    Render one invoice variant to PDF bytes.
    """
    variant = InvoiceVariant(variant)
    doc = fitz.open()
    page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)

    if variant == InvoiceVariant.WRONG_LOGO:
        page.insert_image(LOGO_RECT, stream=wrong_logo())
    elif variant != InvoiceVariant.LOGO_MISSING:
        page.insert_image(LOGO_RECT, stream=company_logo())

    page.insert_text((320, 110), "Invoice", fontname=FONT_BOLD, fontsize=28)

    y = 280
    for left_label, left_value, right_label, right_value in EMPLOYEE_ROWS:
        _pair(page, y, left_label, left_value, LEFT_LABEL, LEFT_VALUE)
        _pair(page, y, right_label, right_value, RIGHT_LABEL, RIGHT_VALUE)
        y += 20

    y = 370
    page.insert_text((LEFT_LABEL, y), "Payable", fontname=FONT_BOLD, fontsize=FONT_SIZE)
    page.insert_text((RIGHT_LABEL, y), "Deductions", fontname=FONT_BOLD, fontsize=FONT_SIZE)
    y += 25
    for index in range(max(len(PAYABLES), len(DEDUCTIONS))):
        if index < len(PAYABLES):
            _pair(page, y, *PAYABLES[index], LEFT_LABEL, LEFT_VALUE)
        if index < len(DEDUCTIONS):
            _pair(page, y, *DEDUCTIONS[index], RIGHT_LABEL, RIGHT_VALUE)
        y += 20

    y += 15
    _pair(page, y, "Total Income", TOTAL_INCOME, LEFT_LABEL, LEFT_VALUE)
    _pair(page, y, "Total Deductions", TOTAL_DEDUCTIONS, RIGHT_LABEL, RIGHT_VALUE)

    if variant != InvoiceVariant.TOTAL_MISSING:
        net_bill = WRONG_NET_BILL if variant == InvoiceVariant.WRONG_CALCULATIONS else NET_BILL
        page.insert_text(
            (LEFT_LABEL, y + 50),
            f"Net Bill: {CURRENCY} {net_bill}",
            fontname=FONT_BOLD,
            fontsize=13,
        )

    page.insert_text((LEFT_LABEL, PAGE_HEIGHT - 80), FOOTER, fontname=FONT, fontsize=9)

    doc.set_metadata(
        {
            "title": "Invoice",
            "author": "PlayAct",
            "subject": f"Sample invoice ({variant.value})",
            "creator": "playact.samples",
        }
    )
    data = doc.tobytes(garbage=3, deflate=True)
    doc.close()
    return data


def write_sample_set(directory: Union[str, Path]) -> List[Path]:
    """
    Write every invoice variant into `directory` under its fixture file name.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for variant, filename in SAMPLE_FILES.items():
        path = out_dir / filename
        path.write_bytes(build_invoice_pdf(variant))
        logging.info(f"Wrote {path}")
        written.append(path)
    return written


def sample_for_filename(filename: str) -> InvoiceVariant:
    """
    Map a fixture file name back to its variant; raises KeyError if unknown.
    """
    for variant, name in SAMPLE_FILES.items():
        if name == filename:
            return variant
    raise KeyError(filename)

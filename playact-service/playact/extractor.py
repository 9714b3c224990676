"""
PDF content extraction and validation utilities using pdfplumber and pytesseract.

Features:
- Layout-aware text reconstruction using page.extract_words()
- Per-page text, page count, document info and XMP metadata
- OCR fallback using pdf2image + pytesseract for scanned PDFs or missing text layers
- Content checks: expected texts, page count, regular-expression search
"""

from __future__ import annotations

import io
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Pattern, Sequence, Union

import pdfplumber
import pytesseract
from pdf2image import convert_from_path
from pdfminer.pdftypes import resolve1

from .config import TESSERACT_PATHS
from .schema import (
    ContentValidationResult,
    PageCountValidation,
    ParsedPdf,
    PatternSearchResult,
    PdfMetadata,
)

for p in TESSERACT_PATHS:
    if os.path.exists(p):
        pytesseract.pytesseract.tesseract_cmd = p
        break

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

PdfSource = Union[str, Path, bytes, bytearray, BinaryIO]

# Below this many characters the text layer is treated as missing.
MIN_TEXT_LENGTH = 20

PDF_HEADER = re.compile(rb"%PDF-(\d+\.\d+)")

# ---------------- Utilities ----------------


def _safe_temp_pdf_from_bytes(b: Union[bytes, bytearray, BinaryIO]) -> str:
    """Write bytes/file-like to a temporary PDF file and return its path."""
    tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".pdf")
    if isinstance(b, (bytes, bytearray)):
        tmp.write(b)
    else:
        b.seek(0)
        tmp.write(b.read())
    tmp.flush()
    tmp.close()
    return tmp.name


def _open_target(source: PdfSource) -> Union[Path, BinaryIO]:
    """
    Turn a PDF source into something pdfplumber.open() accepts.

    Raises FileNotFoundError for paths that do not exist.
    """
    if isinstance(source, (str, Path)):
        pdf_path = Path(source)
        if not pdf_path.is_file():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")
        return pdf_path
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    source.seek(0)
    return source


def _read_header(source: PdfSource) -> bytes:
    if isinstance(source, (str, Path)):
        with open(source, "rb") as f:
            return f.read(1024)
    if isinstance(source, (bytes, bytearray)):
        return bytes(source[:1024])
    source.seek(0)
    head = source.read(1024)
    source.seek(0)
    return head


def _pdf_version(source: PdfSource) -> Optional[str]:
    m = PDF_HEADER.search(_read_header(source))
    return m.group(1).decode("ascii") if m else None


def _group_words_to_lines(words: List[dict], y_tolerance: int = 3) -> List[str]:
    """
    Given words from pdfplumber page.extract_words(), group by approximate y coordinate to form lines.
    Sort words in each line by x0 to preserve left-to-right order.
    """
    buckets: Dict[int, List[dict]] = {}
    for w in words:
        y_center = int(round((w.get("top", 0) + w.get("bottom", 0)) / 2))
        found_key = None
        for key in buckets:
            if abs(key - y_center) <= y_tolerance:
                found_key = key
                break
        if found_key is None:
            buckets[y_center] = [w]
        else:
            buckets[found_key].append(w)

    lines = []
    for y in sorted(buckets.keys()):
        line_words = sorted(buckets[y], key=lambda item: item.get("x0", 0))
        line_text = " ".join(w.get("text", "") for w in line_words).strip()
        if line_text:
            lines.append(line_text)
    return lines


def _page_text(page) -> str:
    """
    Layout-aware text for one page, falling back to page.extract_text().
    """
    try:
        words = page.extract_words()
    except Exception as e:
        logging.warning(
            f"Word extraction failed on page {page.page_number}: {e}. Falling back to extract_text()"
        )
        words = []
    if words:
        return "\n".join(_group_words_to_lines(words))
    return page.extract_text() or ""


def _xmp_metadata(pdf) -> Optional[str]:
    ref = pdf.doc.catalog.get("Metadata")
    if ref is None:
        return None
    stream = resolve1(ref)
    try:
        return stream.get_data().decode("utf-8", errors="replace")
    except AttributeError:
        return None


def _clean_info(info: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in info.items():
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        elif not isinstance(value, (str, int, float, bool)) and value is not None:
            value = str(value)
        cleaned[key] = value
    return cleaned


# ---------------- OCR fallback ----------------


def _extract_pages_with_ocr(source: PdfSource) -> List[str]:
    """
    Convert PDF pages to images and perform OCR with pytesseract.
    convert_from_path cannot take BytesIO directly; for bytes we create a temp file.
    """
    tmp_path = None
    try:
        if isinstance(source, (str, Path)):
            pdf_path = str(source)
        else:
            tmp_path = _safe_temp_pdf_from_bytes(source)
            pdf_path = tmp_path

        pages = []
        for img in convert_from_path(pdf_path):
            if img.mode != "RGB":
                img = img.convert("RGB")
            pages.append(pytesseract.image_to_string(img))
        return pages
    except Exception as e:
        logging.error(f"OCR extraction failed: {e}")
        return []
    finally:
        if tmp_path:
            try:
                os.remove(tmp_path)
            except OSError:
                logging.debug(f"Could not remove temporary file {tmp_path}")


# ---------------- Parsing ----------------


def parse_pdf(source: PdfSource, ocr_fallback: bool = True) -> ParsedPdf:
    """
    Parse a PDF from a path, bytes or binary file object.

    Text comes from the layout-aware extractor. When the whole document yields
    less than MIN_TEXT_LENGTH characters and `ocr_fallback` is set, the pages
    are rasterized and OCR'd instead.
    """
    target = _open_target(source)
    with pdfplumber.open(target) as pdf:
        pages = [_page_text(page) for page in pdf.pages]
        num_pages = len(pdf.pages)
        info = _clean_info(pdf.metadata or {})
        metadata = _xmp_metadata(pdf)

    if ocr_fallback and len("".join(pages).strip()) < MIN_TEXT_LENGTH:
        logging.info("Layout-aware extraction returned little text; trying OCR fallback.")
        ocr_pages = _extract_pages_with_ocr(source)
        if ocr_pages:
            pages = ocr_pages

    return ParsedPdf(
        text="\n\n".join(pages),
        pages=pages,
        num_pages=num_pages,
        info=info,
        metadata=metadata,
        version=_pdf_version(source),
    )


def parse_pdf_from_path(file_path: Union[str, Path]) -> ParsedPdf:
    return parse_pdf(Path(file_path))


def parse_pdf_from_bytes(data: Union[bytes, bytearray]) -> ParsedPdf:
    return parse_pdf(bytes(data))


def extract_pdf_text(source: PdfSource) -> str:
    """
    Extract the text of every page, pages separated by a blank line.
    """
    return parse_pdf(source).text


def extract_pdf_page_text(source: PdfSource, page_number: int) -> str:
    """
    Extract the text of a single page (1-indexed).
    """
    parsed = parse_pdf(source)
    if page_number < 1 or page_number > parsed.num_pages:
        raise ValueError(
            f"Page {page_number} out of range; document has {parsed.num_pages} page(s)"
        )
    return parsed.pages[page_number - 1]


def get_pdf_metadata(source: PdfSource) -> PdfMetadata:
    parsed = parse_pdf(source, ocr_fallback=False)
    return PdfMetadata(
        page_count=parsed.num_pages,
        info=parsed.info,
        metadata=parsed.metadata,
        version=parsed.version,
    )


# ---------------- Validation ----------------


def validate_pdf_content(
    source: PdfSource, expected_texts: Union[str, Sequence[str]]
) -> ContentValidationResult:
    """
    Check that every expected text occurs somewhere in the PDF.
    """
    text = extract_pdf_text(source)
    texts_to_check = [expected_texts] if isinstance(expected_texts, str) else list(expected_texts)

    result = ContentValidationResult()
    for expected in texts_to_check:
        if expected in text:
            result.found.append(expected)
        else:
            result.missing.append(expected)
            result.all_found = False
    return result


def validate_pdf_page_count(source: PdfSource, expected_count: int) -> PageCountValidation:
    metadata = get_pdf_metadata(source)
    return PageCountValidation(
        actual=metadata.page_count,
        expected=expected_count,
        valid=metadata.page_count == expected_count,
    )


def search_pdf_pattern(source: PdfSource, pattern: Union[str, Pattern]) -> PatternSearchResult:
    """
    Find every non-overlapping match of `pattern` in the PDF text.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    text = extract_pdf_text(source)
    matches = [m.group(0) for m in regex.finditer(text)]
    return PatternSearchResult(found=bool(matches), matches=matches, count=len(matches))

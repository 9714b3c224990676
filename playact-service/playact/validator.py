"""
Invoice calculation validation.

This module implements:
- Extraction of the Total Income, Total Deductions and Net Bill amounts
  from an invoice's text
- The business rule Net Bill = Total Income - Total Deductions
- Batch validation with a summary of the most common errors

The main entrypoints are:
- `validate_invoice_calculation` for a single PDF
- `validate_invoices` for a batch, including a summary
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .extractor import PdfSource, extract_pdf_text
from .schema import (
    BulkValidationReport,
    InvoiceCalculationResult,
    InvoiceFigures,
    InvoiceValidationError,
    ValidationSummary,
)

TOTAL_INCOME = re.compile(r"Total Income\s+([\d.]+)")
TOTAL_DEDUCTIONS = re.compile(r"Total Deductions\s+([\d.]+)")
NET_BILL = re.compile(r"Net Bill:\s*PKR\s+([\d.]+)")

# Amounts are printed with two decimals.
TOLERANCE = 0.005


def _find_amount(pattern: re.Pattern, text: str) -> Optional[float]:
    m = pattern.search(text)
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def _almost_equal(a: Optional[float], b: Optional[float], tol: float = TOLERANCE) -> bool:
    """
    Check if two numbers are equal within a given tolerance.
    """
    if a is None or b is None:
        return False
    return abs(a - b) <= tol


def extract_invoice_figures(text: str) -> InvoiceFigures:
    total_income = _find_amount(TOTAL_INCOME, text)
    total_deductions = _find_amount(TOTAL_DEDUCTIONS, text)
    expected = None
    if total_income is not None and total_deductions is not None:
        expected = round(total_income - total_deductions, 2)
    return InvoiceFigures(
        total_income=total_income,
        total_deductions=total_deductions,
        net_bill=_find_amount(NET_BILL, text),
        expected_net_bill=expected,
    )


def check_invoice_text(text: str, invoice_id: Optional[str] = None) -> InvoiceCalculationResult:
    """
    Validate already-extracted invoice text.
    """
    figures = extract_invoice_figures(text)
    errors: List[InvoiceValidationError] = []

    if figures.total_income is None:
        errors.append(
            InvoiceValidationError(
                code="MISSING_TOTAL_INCOME",
                field="total_income",
                message="Total Income amount not found.",
            )
        )
    if figures.total_deductions is None:
        errors.append(
            InvoiceValidationError(
                code="MISSING_TOTAL_DEDUCTIONS",
                field="total_deductions",
                message="Total Deductions amount not found.",
            )
        )
    if figures.net_bill is None:
        errors.append(
            InvoiceValidationError(
                code="MISSING_NET_BILL",
                field="net_bill",
                message="Net Bill amount not found.",
            )
        )

    is_correct = _almost_equal(figures.net_bill, figures.expected_net_bill)
    if figures.net_bill is not None and figures.expected_net_bill is not None and not is_correct:
        errors.append(
            InvoiceValidationError(
                code="NET_BILL_MISMATCH",
                field="net_bill",
                message=(
                    f"Net Bill {figures.net_bill:.2f} should equal Total Income - "
                    f"Total Deductions = {figures.expected_net_bill:.2f}."
                ),
            )
        )

    return InvoiceCalculationResult(
        invoice_id=invoice_id,
        has_net_bill=figures.net_bill is not None,
        is_calculation_correct=is_correct,
        values=figures,
        errors=errors,
    )


def validate_invoice_calculation(
    source: PdfSource, invoice_id: Optional[str] = None
) -> InvoiceCalculationResult:
    """
    Validate a single invoice PDF.

    Parameters
    ----------
    source:
        Path, bytes or binary file object of the PDF.
    invoice_id:
        Identifier to report; defaults to the file name for path sources.
    """
    if invoice_id is None and isinstance(source, (str, Path)):
        invoice_id = Path(source).name
    return check_invoice_text(extract_pdf_text(source), invoice_id=invoice_id)


def validate_invoice_or_report(
    source: PdfSource, invoice_id: Optional[str] = None
) -> InvoiceCalculationResult:
    """
    Like `validate_invoice_calculation`, but a PDF that cannot be read is
    logged and reported as an invalid invoice instead of raising.
    """
    if invoice_id is None and isinstance(source, (str, Path)):
        invoice_id = Path(source).name
    try:
        return validate_invoice_calculation(source, invoice_id=invoice_id)
    except Exception as e:
        logging.error(f"Failed to validate {invoice_id or 'PDF'}: {e}")
        return InvoiceCalculationResult(
            invoice_id=invoice_id,
            has_net_bill=False,
            is_calculation_correct=False,
            errors=[
                InvoiceValidationError(
                    code="UNREADABLE_PDF",
                    message=f"PDF could not be read: {e}",
                )
            ],
        )


def summarize(results: List[InvoiceCalculationResult]) -> BulkValidationReport:
    total_invoices = len(results)
    invalid_invoices = sum(1 for r in results if not r.is_valid)

    error_counter: Counter = Counter()
    for r in results:
        for e in r.errors:
            error_counter[e.code] += 1

    summary = ValidationSummary(
        total_invoices=total_invoices,
        valid_invoices=total_invoices - invalid_invoices,
        invalid_invoices=invalid_invoices,
        top_errors=[code for code, _ in error_counter.most_common(5)],
    )
    return BulkValidationReport(results=results, summary=summary)


def validate_invoices(sources: Iterable[Union[str, Path]]) -> BulkValidationReport:
    """
    Validate a batch of invoice PDFs and return detailed results plus a summary.

    Unreadable files are reported with an UNREADABLE_PDF error and the
    rest of the batch still runs.
    """
    return summarize([validate_invoice_or_report(source) for source in sources])

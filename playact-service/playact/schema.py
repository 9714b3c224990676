"""
Data models and schema definitions for the demo form and the PDF harness.

All external components (forms, extractor, visual, snapshots, validator,
API, CLI) should use these Pydantic models to ensure a consistent contract.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Fruit(str, Enum):
    """
    Options offered by the autocomplete widget, in display order.
    """

    APPLE = "Apple"
    BANANA = "Banana"
    CHERRY = "Cherry"
    DATE = "Date"
    ELDERBERRY = "Elderberry"
    FIG = "Fig"
    GRAPE = "Grape"
    HONEYDEW = "Honeydew"


FRUIT_OPTIONS: List[str] = [fruit.value for fruit in Fruit]


# ---------------- Demo form ----------------


class FormState(BaseModel):
    """
    The three independent fields of the demo page.
    """

    accepted: bool = Field(
        default=False, description="Whether the terms checkbox is ticked."
    )
    name: str = Field(default="", description="Current value of the name field.")
    fruit: Optional[Fruit] = Field(
        default=None, description="Selected autocomplete option, if any."
    )

    @property
    def checkbox_status(self) -> str:
        return f"Status: {'Accepted' if self.accepted else 'Not Accepted'}"

    @property
    def character_count(self) -> int:
        """Length in UTF-16 code units, as a browser reports it."""
        return len(self.name.encode("utf-16-le")) // 2

    @property
    def helper_text(self) -> str:
        return f"Character count: {self.character_count}"

    @property
    def greeting(self) -> Optional[str]:
        return f"Hello, {self.name}!" if self.name else None

    @property
    def selection_message(self) -> Optional[str]:
        return f"You selected: {self.fruit.value}" if self.fruit else None


class FormView(BaseModel):
    """
    Text the page shows for a given form state.
    """

    checkbox_status: str = Field(..., description="Checkbox status line.")
    helper_text: str = Field(..., description="Character counter under the name field.")
    character_count: int = Field(..., description="Number of characters in the name.")
    greeting: Optional[str] = Field(
        default=None, description="Greeting, present only when a name is entered."
    )
    selection_message: Optional[str] = Field(
        default=None, description="Selection line, present only when a fruit is chosen."
    )


class FruitOptions(BaseModel):
    """
    Autocomplete options matching a query.
    """

    query: str = Field(default="", description="Query the options were filtered by.")
    options: List[str] = Field(default_factory=list, description="Matching labels.")


# ---------------- PDF content ----------------


class ParsedPdf(BaseModel):
    """
    Text and document-level information read from a PDF.
    """

    text: str = Field(default="", description="Text of the whole document.")
    pages: List[str] = Field(default_factory=list, description="Text of each page.")
    num_pages: int = Field(..., description="Number of pages.")
    info: Dict[str, Any] = Field(
        default_factory=dict, description="Document information dictionary."
    )
    metadata: Optional[str] = Field(
        default=None, description="Raw XMP metadata stream, if the PDF has one."
    )
    version: Optional[str] = Field(
        default=None, description="PDF header version, e.g. '1.7'."
    )


class PdfMetadata(BaseModel):
    """
    Document-level information without the text.
    """

    page_count: int = Field(..., description="Number of pages.")
    info: Dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None)


class ContentValidationResult(BaseModel):
    """
    Which expected texts were found in a PDF.
    """

    found: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    all_found: bool = Field(default=True)


class PageCountValidation(BaseModel):
    actual: int
    expected: int
    valid: bool


class PatternSearchResult(BaseModel):
    """
    Regular-expression matches in the text of a PDF.
    """

    found: bool = Field(default=False)
    matches: List[str] = Field(default_factory=list)
    count: int = Field(default=0)


# ---------------- Visual comparison ----------------


class ImageSize(BaseModel):
    width: int
    height: int


class ImageComparisonResult(BaseModel):
    """
    Outcome of a pixel comparison between two images.

    `diff_percentage` is kept as a two-decimal string so reports print the
    same value that the match decision was made on.
    """

    match: bool = Field(..., description="True when the difference is within tolerance.")
    num_diff_pixels: Optional[int] = Field(default=None)
    total_pixels: Optional[int] = Field(default=None)
    diff_percentage: Optional[str] = Field(
        default=None, description="Differing pixels as a percentage, e.g. '8.76'."
    )
    error: Optional[str] = Field(
        default=None, description="Set when the images could not be compared."
    )
    dimensions: Optional[Dict[str, ImageSize]] = Field(
        default=None, description="Both image sizes when they do not match."
    )
    diff_image_path: Optional[str] = Field(
        default=None, description="Where the diff image was written, if anywhere."
    )
    diff_image: Optional[bytes] = Field(
        default=None, exclude=True, description="Diff image as PNG bytes."
    )

    @property
    def diff_ratio(self) -> float:
        """Numeric diff percentage, 100.0 when the images were not comparable."""
        if self.diff_percentage is None:
            return 100.0
        return float(self.diff_percentage)


class PageComparisonStatus(str, Enum):
    BASELINE_CREATED = "baseline_created"
    BASELINE_UPDATED = "baseline_updated"
    MATCH = "match"
    MISMATCH = "mismatch"


class PageComparisonResult(BaseModel):
    """
    Visual comparison result for one page against its baseline snapshot.
    """

    page: int = Field(..., description="1-indexed page number.")
    status: PageComparisonStatus
    path: Optional[str] = Field(
        default=None, description="Baseline path, for created or updated baselines."
    )
    previous_diff: Optional[str] = Field(
        default=None, description="Diff percentage that triggered a baseline update."
    )
    comparison: Optional[ImageComparisonResult] = Field(
        default=None, description="Pixel comparison, when one was made."
    )

    @property
    def diff_percentage(self) -> Optional[str]:
        return self.comparison.diff_percentage if self.comparison else None


class VisualComparisonReport(BaseModel):
    """
    Visual comparison of every page of a PDF against its baselines.
    """

    total_pages: int
    results: List[PageComparisonResult] = Field(default_factory=list)
    all_match: bool


class ComparisonMatrixEntry(BaseModel):
    left: str
    right: str
    diff_percentage: Optional[str] = None
    num_diff_pixels: Optional[int] = None


class RankedDifference(BaseModel):
    name: str
    percentage: float
    pixels: Optional[int] = None


# ---------------- Invoice validation ----------------


class InvoiceFigures(BaseModel):
    """
    Amounts read from an invoice's text.
    """

    total_income: Optional[float] = Field(default=None)
    total_deductions: Optional[float] = Field(default=None)
    net_bill: Optional[float] = Field(default=None)
    expected_net_bill: Optional[float] = Field(
        default=None, description="total_income - total_deductions, when both are known."
    )


class InvoiceValidationError(BaseModel):
    """
    Represents a single validation error for an invoice.
    """

    code: str = Field(..., description="Short machine-readable error code.")
    message: str = Field(..., description="Human-readable description of the error.")
    field: Optional[str] = Field(
        default=None,
        description="Optional field name associated with the error (if applicable).",
    )


class InvoiceCalculationResult(BaseModel):
    """
    Calculation check for a single invoice.
    """

    invoice_id: Optional[str] = Field(
        default=None, description="Identifier for the invoice, usually the file name."
    )
    has_net_bill: bool = Field(..., description="True if a Net Bill amount was found.")
    is_calculation_correct: bool = Field(
        ..., description="True if Net Bill equals Total Income - Total Deductions."
    )
    values: InvoiceFigures = Field(default_factory=InvoiceFigures)
    errors: List[InvoiceValidationError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ValidationSummary(BaseModel):
    """
    Aggregate summary for validating multiple invoices.
    """

    total_invoices: int = Field(..., description="Total number of invoices checked.")
    valid_invoices: int = Field(
        ..., description="Number of invoices that passed all checks."
    )
    invalid_invoices: int = Field(
        ..., description="Number of invoices that failed at least one check."
    )
    top_errors: List[str] = Field(
        default_factory=list,
        description="Most common error codes across all invoices.",
    )


class BulkValidationReport(BaseModel):
    """
    Structure used when returning a full validation report for many invoices.
    """

    results: List[InvoiceCalculationResult] = Field(
        default_factory=list, description="Per-invoice validation results."
    )
    summary: ValidationSummary = Field(
        ..., description="High-level validation statistics."
    )

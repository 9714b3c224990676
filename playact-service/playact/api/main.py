"""
FastAPI application for PlayAct.

Endpoints
---------
- GET  /                      demo page with the three form widgets
- GET  /health
- GET  /api/fruits?q=         autocomplete options matching a query
- POST /api/state             text shown for a form state
- GET  /samples               sample invoice file names
- GET  /samples/{filename}    download a sample invoice PDF
- POST /validate-pdfs         upload invoices, check their calculations
- POST /compare-pdfs          upload two PDFs, pixel-diff their pages
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from .. import __version__
from ..forms import NO_OPTIONS_TEXT, filter_options, parse_fruit, render_view
from ..schema import (
    FRUIT_OPTIONS,
    BulkValidationReport,
    FormState,
    FormView,
    FruitOptions,
    ImageComparisonResult,
)
from ..samples import SAMPLE_FILES, build_invoice_pdf, sample_for_filename
from ..validator import summarize, validate_invoice_or_report
from ..visual import compare_images, convert_pdf_to_images

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

PAGE_TITLE = "PlayAct - Form Widgets Testing Demo"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

app = FastAPI(title="PlayAct", version=__version__)

# Basic CORS configuration (can be tightened in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _read_pdf_upload(file: UploadFile) -> bytes:
    content = file.file.read()
    if not content.startswith(b"%PDF"):
        raise HTTPException(status_code=400, detail=f"{file.filename} is not a PDF file")
    return content


@app.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    accepted: bool = False,
    name: str = "",
    fruit: Optional[str] = None,
):
    """
    Render the demo page. Query parameters pre-populate the form.
    """
    try:
        state = FormState(accepted=accepted, name=name, fruit=parse_fruit(fruit))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": PAGE_TITLE,
            "state": state,
            "view": render_view(state),
            "options": FRUIT_OPTIONS,
            "no_options_text": NO_OPTIONS_TEXT,
        },
    )


@app.get("/health")
async def health() -> dict:
    """
    Simple health-check endpoint.
    """
    return {"status": "ok"}


@app.get("/api/fruits", response_model=FruitOptions)
async def fruits(q: str = "") -> FruitOptions:
    return FruitOptions(query=q, options=filter_options(q))


@app.post("/api/state", response_model=FormView)
async def form_state(state: FormState) -> FormView:
    """
    Compute the status, counter, greeting and selection text for a form state.
    """
    return render_view(state)


@app.get("/samples")
async def list_samples() -> dict:
    return {"samples": list(SAMPLE_FILES.values())}


@app.get("/samples/{filename}")
async def download_sample(filename: str) -> Response:
    """
    Serve a generated sample invoice as a file download.
    """
    try:
        variant = sample_for_filename(filename)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown sample: {filename}")

    return Response(
        content=build_invoice_pdf(variant),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/validate-pdfs", response_model=BulkValidationReport)
def validate_pdfs(
    files: List[UploadFile] = File(..., description="One or more PDF invoice files."),
) -> BulkValidationReport:
    """
    Upload invoice PDFs and check Net Bill = Total Income - Total Deductions.
    """
    results = []
    for file in files:
        content = _read_pdf_upload(file)
        results.append(validate_invoice_or_report(content, invoice_id=file.filename))
    return summarize(results)


@app.post("/compare-pdfs", response_model=List[ImageComparisonResult])
def compare_pdfs(
    baseline: UploadFile = File(..., description="Reference PDF."),
    candidate: UploadFile = File(..., description="PDF to compare against the reference."),
    threshold: float = Form(0.1),
    tolerance: float = Form(0.0),
) -> List[ImageComparisonResult]:
    """
    Render both PDFs and compare them page by page.
    """
    baseline_pages = convert_pdf_to_images(_read_pdf_upload(baseline))
    candidate_pages = convert_pdf_to_images(_read_pdf_upload(candidate))

    results = []
    for index in range(max(len(baseline_pages), len(candidate_pages))):
        if index >= len(baseline_pages) or index >= len(candidate_pages):
            missing_from = "baseline" if index >= len(baseline_pages) else "candidate"
            results.append(
                ImageComparisonResult(match=False, error=f"Page {index + 1} missing from {missing_from}")
            )
            continue
        results.append(
            compare_images(
                baseline_pages[index], candidate_pages[index], threshold=threshold, tolerance=tolerance
            )
        )
    logging.info(f"Compared {baseline.filename} with {candidate.filename}: {len(results)} page(s)")
    return results


# For local development convenience:
#   uvicorn playact.api.main:app --reload

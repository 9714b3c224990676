"""
Command-line interface for PlayAct.

Usage examples:
    playact make-samples --out-dir e2e/fixtures/pdfs
    playact validate --pdf-dir e2e/fixtures/pdfs --report output/validation_report.json
    playact check-content --pdf Invoice.pdf --expect "John Doe" --expect "Net Bill"
    playact compare Invoice.pdf logo-missing.pdf --diff-out output/logo-diff.png
    playact snapshot --pdf Invoice.pdf --name original-invoice
    playact serve --port 8000
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn

from . import config
from .extractor import validate_pdf_content
from .samples import BASELINE_NAMES, write_sample_set
from .schema import BulkValidationReport, PageComparisonStatus
from .snapshots import (
    cleanup_diff_images,
    compare_pdf_visual,
    generate_baselines,
    list_baselines,
    mismatch_details,
)
from .validator import validate_invoices
from .visual import build_comparison_matrix, compare_images, convert_pdf_to_images, save_diff_image

app = typer.Typer(help="Form demo server and PDF invoice QC harness.")


def _ensure_parent_directory(path: Path) -> None:
    """
    Ensure the parent directory for a file path exists.
    """
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _require_file(path: Path, label: str = "PDF") -> None:
    if not path.exists() or not path.is_file():
        typer.echo(f"{label} not found: {path}", err=True)
        raise typer.Exit(code=1)


def _require_dir(path: Path) -> None:
    if not path.exists() or not path.is_dir():
        typer.echo(f"PDF directory not found: {path}", err=True)
        raise typer.Exit(code=1)


@app.command("make-samples")
def make_samples(
    out_dir: str = typer.Option(
        str(config.FIXTURES_DIR / "pdfs"),
        "--out-dir",
        help="Directory to write the sample invoice PDFs into.",
    ),
) -> None:
    """
    Write the sample invoice set (original plus defective variants).
    """
    written = write_sample_set(Path(out_dir))
    for path in written:
        typer.echo(f"Wrote {path}")


@app.command()
def validate(
    pdf_dir: str = typer.Option(
        ...,
        "--pdf-dir",
        help="Directory containing PDF invoices to validate.",
    ),
    report: str = typer.Option(
        "output/validation_report.json",
        "--report",
        help="Path to write the validation report as JSON.",
    ),
) -> None:
    """
    Check that Net Bill = Total Income - Total Deductions for every invoice.
    """
    pdf_directory = Path(pdf_dir)
    _require_dir(pdf_directory)

    report_obj: BulkValidationReport = validate_invoices(sorted(pdf_directory.glob("*.pdf")))

    report_path = Path(report)
    _ensure_parent_directory(report_path)
    with report_path.open("w", encoding="utf-8") as f:
        json.dump(report_obj.dict(), f, indent=2, default=str)

    summary = report_obj.summary
    typer.echo(f"Total invoices: {summary.total_invoices}")
    typer.echo(f"Valid invoices: {summary.valid_invoices}")
    typer.echo(f"Invalid invoices: {summary.invalid_invoices}")
    typer.echo(f"Top errors: {', '.join(summary.top_errors) if summary.top_errors else 'None'}")

    # Exit non-zero if there are invalid invoices
    if summary.invalid_invoices > 0:
        raise typer.Exit(code=2)


@app.command("check-content")
def check_content(
    pdf: str = typer.Option(..., "--pdf", help="PDF file to inspect."),
    expect: List[str] = typer.Option([], "--expect", help="Text that must be present."),
    absent: List[str] = typer.Option([], "--absent", help="Text that must not be present."),
) -> None:
    """
    Check a PDF for expected and forbidden texts.
    """
    pdf_path = Path(pdf)
    _require_file(pdf_path)

    failed = False
    if expect:
        result = validate_pdf_content(pdf_path, expect)
        if not result.all_found:
            typer.echo(f"PDF missing texts: {', '.join(result.missing)}", err=True)
            failed = True
    if absent:
        result = validate_pdf_content(pdf_path, absent)
        if result.found:
            typer.echo(f"PDF contains unexpected texts: {', '.join(result.found)}", err=True)
            failed = True

    if failed:
        raise typer.Exit(code=1)
    typer.echo("Content OK")


@app.command()
def compare(
    baseline: str = typer.Argument(..., help="Reference PDF."),
    candidate: str = typer.Argument(..., help="PDF to compare against the reference."),
    threshold: float = typer.Option(config.DIFF_THRESHOLD, "--threshold", help="Per-pixel colour sensitivity (0-1)."),
    tolerance: float = typer.Option(config.DIFF_TOLERANCE, "--tolerance", help="Allowed difference in percent."),
    diff_out: Optional[str] = typer.Option(None, "--diff-out", help="Where to write the diff image."),
) -> None:
    """
    Pixel-diff the first pages of two PDFs.
    """
    baseline_path, candidate_path = Path(baseline), Path(candidate)
    _require_file(baseline_path)
    _require_file(candidate_path)

    result = compare_images(
        convert_pdf_to_images(baseline_path)[0],
        convert_pdf_to_images(candidate_path)[0],
        threshold=threshold,
        tolerance=tolerance,
    )
    if result.error:
        typer.echo(result.error, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Difference: {result.diff_percentage}% ({result.num_diff_pixels} pixels)")
    if diff_out and result.diff_image:
        typer.echo(f"Diff image saved: {save_diff_image(result.diff_image, diff_out)}")
    if not result.match:
        raise typer.Exit(code=1)


@app.command()
def snapshot(
    pdf: str = typer.Option(..., "--pdf", help="PDF to compare with its baselines."),
    name: str = typer.Option(..., "--name", help="Baseline name."),
    threshold: float = typer.Option(config.DIFF_THRESHOLD, "--threshold"),
    tolerance: float = typer.Option(config.DIFF_TOLERANCE, "--tolerance"),
    update: bool = typer.Option(config.UPDATE_SNAPSHOTS, "--update", help="Overwrite mismatching baselines."),
) -> None:
    """
    Compare every page of a PDF with its baseline snapshots.
    """
    pdf_path = Path(pdf)
    _require_file(pdf_path)

    report = compare_pdf_visual(
        pdf_path, name, threshold=threshold, tolerance=tolerance, update_snapshots=update
    )
    for result in report.results:
        line = f"Page {result.page}: {result.status.value}"
        if result.status == PageComparisonStatus.BASELINE_UPDATED:
            line += f" (was {result.previous_diff}% different)"
        elif result.comparison is not None:
            line += f" ({result.diff_percentage}% different)"
        typer.echo(line)

    if any(r.status == PageComparisonStatus.MISMATCH for r in report.results):
        typer.echo(f"PDF visual mismatch:\n{mismatch_details(report)}", err=True)
        raise typer.Exit(code=1)


@app.command()
def baselines() -> None:
    """
    List existing baseline snapshots.
    """
    names = list_baselines()
    typer.echo(f"Found {len(names)} baseline snapshots:")
    for name in names:
        typer.echo(f"  - {name}")


@app.command("cleanup-diffs")
def cleanup_diffs() -> None:
    """
    Delete diff images left by failed comparisons.
    """
    deleted = cleanup_diff_images()
    typer.echo(f"Cleaned up {len(deleted)} diff files")


@app.command("generate-baselines")
def generate_baselines_command() -> None:
    """
    Regenerate baselines for every sample invoice found in the fixtures directory.
    """
    reports = generate_baselines(BASELINE_NAMES)
    for filename in reports:
        typer.echo(f"Done: {filename}")
    typer.echo(f"Generated baselines for {len(reports)} PDF(s)")


@app.command()
def matrix(
    pdf_dir: str = typer.Option(..., "--pdf-dir", help="Directory containing the PDFs to compare."),
    threshold: float = typer.Option(config.DIFF_THRESHOLD, "--threshold"),
) -> None:
    """
    Print the pairwise first-page difference of every PDF in a directory.
    """
    pdf_directory = Path(pdf_dir)
    _require_dir(pdf_directory)

    images = {p.name: convert_pdf_to_images(p)[0] for p in sorted(pdf_directory.glob("*.pdf"))}
    typer.echo("Visual Comparison Matrix:")
    typer.echo("=" * 70)
    for entry in build_comparison_matrix(images, threshold=threshold):
        typer.echo(f"{entry.left} vs {entry.right}: {entry.diff_percentage}%")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """
    Run the demo web app.
    """
    uvicorn.run("playact.api.main:app", host=host, port=port, reload=reload)


def main() -> None:
    """
    Entrypoint used when executing as a module.
    """
    app()


if __name__ == "__main__":
    main()

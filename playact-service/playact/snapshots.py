"""
Baseline snapshot management for PDF visual regression checks.

Baselines live in `<fixtures>/snapshots` and are named
`<baseline-name>-page-<N>.png`; mismatching renders leave a
`<baseline-name>-page-<N>-diff.png` next to them for inspection.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from . import config
from .schema import (
    PageComparisonResult,
    PageComparisonStatus,
    VisualComparisonReport,
)
from .visual import compare_images, convert_pdf_to_images, read_image_file, save_diff_image

DIFF_SUFFIX = "-diff.png"

# ---------------- Paths ----------------


def get_fixtures_path(sub_dir: str = "") -> Path:
    return Path(config.FIXTURES_DIR) / sub_dir if sub_dir else Path(config.FIXTURES_DIR)


def get_pdf_fixture_path(filename: str) -> Path:
    return get_fixtures_path("pdfs") / filename


def get_snapshot_path(filename: str = "") -> Path:
    return get_fixtures_path("snapshots") / filename if filename else get_fixtures_path("snapshots")


def baseline_filename(baseline_name: str, page: int) -> str:
    return f"{baseline_name}-page-{page}.png"


def diff_filename(baseline_name: str, page: int) -> str:
    return f"{baseline_name}-page-{page}{DIFF_SUFFIX}"


# ---------------- Files ----------------


def save_to_file(data: bytes, file_path: Union[str, Path]) -> Path:
    """
    Write bytes to a file, creating missing parent directories.
    """
    path = Path(file_path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def file_exists(file_path: Union[str, Path]) -> bool:
    return Path(file_path).exists()


def get_file_size(file_path: Union[str, Path]) -> int:
    return Path(file_path).stat().st_size


def delete_file(file_path: Union[str, Path]) -> None:
    Path(file_path).unlink(missing_ok=True)


# ---------------- Baselines ----------------


def compare_pdf_visual(
    source: Union[str, Path, bytes],
    baseline_name: str,
    threshold: Optional[float] = None,
    tolerance: Optional[float] = None,
    update_snapshots: Optional[bool] = None,
) -> VisualComparisonReport:
    """
    Compare each rendered page of a PDF with its stored baseline.

    Missing baselines are created from the current render. With
    `update_snapshots`, mismatching baselines are overwritten instead of
    reported. Otherwise a mismatch writes a diff image beside the baseline.
    """
    if update_snapshots is None:
        update_snapshots = config.UPDATE_SNAPSHOTS

    images = convert_pdf_to_images(source)
    results: List[PageComparisonResult] = []

    for index, image in enumerate(images):
        page_num = index + 1
        snapshot_path = get_snapshot_path(baseline_filename(baseline_name, page_num))

        if not file_exists(snapshot_path):
            save_to_file(image, snapshot_path)
            logging.info(f"Created baseline {snapshot_path}")
            results.append(
                PageComparisonResult(
                    page=page_num,
                    status=PageComparisonStatus.BASELINE_CREATED,
                    path=str(snapshot_path),
                )
            )
            continue

        baseline = read_image_file(snapshot_path)
        comparison = compare_images(baseline, image, threshold=threshold, tolerance=tolerance)

        if not comparison.match and update_snapshots:
            save_to_file(image, snapshot_path)
            logging.info(f"Updated baseline {snapshot_path} (was {comparison.diff_percentage}% different)")
            results.append(
                PageComparisonResult(
                    page=page_num,
                    status=PageComparisonStatus.BASELINE_UPDATED,
                    path=str(snapshot_path),
                    previous_diff=comparison.diff_percentage,
                )
            )
            continue

        if not comparison.match and comparison.diff_image:
            diff_path = save_diff_image(
                comparison.diff_image, get_snapshot_path(diff_filename(baseline_name, page_num))
            )
            comparison.diff_image_path = str(diff_path)
            logging.warning(
                f"{baseline_name} page {page_num}: {comparison.diff_percentage}% different, diff at {diff_path}"
            )

        results.append(
            PageComparisonResult(
                page=page_num,
                status=PageComparisonStatus.MATCH if comparison.match else PageComparisonStatus.MISMATCH,
                comparison=comparison,
            )
        )

    all_match = all(
        r.status in (PageComparisonStatus.MATCH, PageComparisonStatus.BASELINE_CREATED)
        for r in results
    )
    return VisualComparisonReport(total_pages=len(images), results=results, all_match=all_match)


def mismatch_details(report: VisualComparisonReport) -> str:
    return "\n".join(
        f"Page {r.page}: {r.diff_percentage}% different"
        for r in report.results
        if r.status == PageComparisonStatus.MISMATCH
    )


def list_baselines() -> List[str]:
    """
    Names of the PNG files in the snapshots directory, sorted.
    """
    snapshots_dir = get_snapshot_path()
    if not snapshots_dir.exists():
        return []
    return sorted(p.name for p in snapshots_dir.glob("*.png"))


def cleanup_diff_images() -> List[str]:
    """
    Delete every diff image in the snapshots directory and return their names.
    """
    snapshots_dir = get_snapshot_path()
    if not snapshots_dir.exists():
        return []
    deleted = []
    for diff_path in sorted(snapshots_dir.glob(f"*{DIFF_SUFFIX}")):
        delete_file(diff_path)
        logging.info(f"Deleted: {diff_path.name}")
        deleted.append(diff_path.name)
    return deleted


def generate_baselines(invoices: Dict[str, str]) -> Dict[str, VisualComparisonReport]:
    """
    Regenerate baselines for `{fixture file name: baseline name}` pairs.

    Fixture files that do not exist are skipped.
    """
    reports: Dict[str, VisualComparisonReport] = {}
    for filename, baseline_name in invoices.items():
        pdf_path = get_pdf_fixture_path(filename)
        if not file_exists(pdf_path):
            logging.info(f"Skipping {filename} - not found")
            continue
        logging.info(f"Generating baseline for {filename}...")
        reports[filename] = compare_pdf_visual(pdf_path, baseline_name, update_snapshots=True)
    return reports

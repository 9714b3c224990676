"""
Runtime settings for PlayAct, read from environment variables.

Values are resolved once at import. Tests and callers that need different
locations pass explicit paths or patch these module attributes.
"""

from __future__ import annotations

import os
from pathlib import Path

TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


FIXTURES_DIR = Path(os.environ.get("PLAYACT_FIXTURES_DIR", Path.cwd() / "e2e" / "fixtures"))
DOWNLOADS_DIR = Path(os.environ.get("PLAYACT_DOWNLOADS_DIR", Path.cwd() / "e2e" / "downloads"))

# pdf2image renders at 72 DPI per unit of scale
RENDER_SCALE = _env_float("PLAYACT_RENDER_SCALE", 2.0)
DIFF_THRESHOLD = _env_float("PLAYACT_DIFF_THRESHOLD", 0.1)
DIFF_TOLERANCE = _env_float("PLAYACT_DIFF_TOLERANCE", 0.0)

UPDATE_SNAPSHOTS = _env_flag("UPDATE_SNAPSHOTS")
BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000")

# Configure Tesseract path for Windows
TESSERACT_PATHS = [
    r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
]

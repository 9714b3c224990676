"""
Top-level package for PlayAct.

This package exposes:
- The three-widget demo form (state and autocomplete filtering)
- PDF content extraction and validation utilities
- PDF rendering, pixel diffing and baseline snapshot management
- Invoice calculation validation
- CLI entrypoints
- HTTP app (FastAPI)
"""

__version__ = "1.0.0"

__all__ = [
    "schema",
    "forms",
    "extractor",
    "visual",
    "snapshots",
    "validator",
    "samples",
]

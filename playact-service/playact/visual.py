"""
PDF rendering and pixel-level image comparison.

Pages are rasterized with pdf2image (poppler) and compared pixel by pixel in
YIQ colour space: a pixel counts as different when its perceived colour
distance exceeds `threshold` (0 = exact, 1 = anything goes) and it is not an
anti-aliased edge. The diff image paints differing pixels red and skipped
anti-aliased pixels yellow over a faded grayscale copy of the first image.
"""

from __future__ import annotations

import io
import logging
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path
from PIL import Image

from . import config
from .schema import (
    ComparisonMatrixEntry,
    ImageComparisonResult,
    ImageSize,
    RankedDifference,
)

ImageSource = Union[bytes, bytearray, str, Path, Image.Image]

# Largest possible YIQ delta between two colours (black vs white).
MAX_YIQ_DELTA = 35215.0

DIFF_COLOR = (255, 0, 0)
AA_COLOR = (255, 255, 0)
DIFF_ALPHA = 0.1


def _pdf_dpi(scale: float) -> int:
    return int(round(72 * scale))


def convert_pdf_to_images(
    source: Union[str, Path, bytes, bytearray],
    scale: Optional[float] = None,
) -> List[bytes]:
    """
    Render every page of a PDF to PNG bytes.

    Parameters
    ----------
    source:
        Path to the PDF or its raw bytes.
    scale:
        Zoom factor relative to 72 DPI. Defaults to config.RENDER_SCALE.
    """
    dpi = _pdf_dpi(scale if scale is not None else config.RENDER_SCALE)
    if isinstance(source, (str, Path)):
        pdf_path = Path(source)
        if not pdf_path.is_file():
            raise FileNotFoundError(f"PDF not found: {pdf_path}")
        pages = convert_from_path(str(pdf_path), dpi=dpi)
    else:
        pages = convert_from_bytes(bytes(source), dpi=dpi)

    images = []
    for page in pages:
        buf = io.BytesIO()
        page.save(buf, format="PNG")
        images.append(buf.getvalue())
    logging.info(f"Rendered {len(images)} page(s) at {dpi} DPI")
    return images


def _load_image(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        img = source
    elif isinstance(source, (bytes, bytearray)):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)
    return img.convert("RGBA")


def _blend_with_white(rgba: np.ndarray) -> np.ndarray:
    """Composite an RGBA float array over white, returning RGB."""
    alpha = rgba[..., 3:4] / 255.0
    return 255.0 + (rgba[..., :3] - 255.0) * alpha


def _yiq_luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _yiq_delta(rgb1: np.ndarray, rgb2: np.ndarray) -> np.ndarray:
    """
    Squared perceptual colour distance between two RGB arrays.
    """
    d = rgb1 - rgb2
    r, g, b = d[..., 0], d[..., 1], d[..., 2]
    y = r * 0.29889531 + g * 0.58662247 + b * 0.11448223
    i = r * 0.59597799 - g * 0.27417610 - b * 0.32180189
    q = r * 0.21147017 - g * 0.52261711 + b * 0.31114694
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


# ---------------- Anti-aliasing detection ----------------
#
# Same neighbourhood rules as pixelmatch: a differing pixel is treated as an
# anti-aliased edge when, in either image, it sits between a darker and a
# brighter neighbour and one of those neighbours lies inside a flat region
# in both images. Neighbours are visited column by column so ties resolve
# to the same neighbour pixelmatch picks.

NEIGHBOURS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if dx or dy]


def _pack_rgba(rgba: np.ndarray) -> np.ndarray:
    """One uint32 per pixel, for exact colour equality."""
    return np.ascontiguousarray(rgba, dtype=np.uint8).view(np.uint32)[..., 0]


def _border_zeroes(xs: np.ndarray, ys: np.ndarray, width: int, height: int) -> np.ndarray:
    on_border = (xs == 0) | (xs == width - 1) | (ys == 0) | (ys == height - 1)
    return on_border.astype(np.int32)


def _neighbour(xs, ys, dx, dy, width, height):
    nx, ny = xs + dx, ys + dy
    inside = (nx >= 0) & (nx < width) & (ny >= 0) & (ny < height)
    return np.clip(nx, 0, width - 1), np.clip(ny, 0, height - 1), inside


def _has_many_siblings(packed: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """True where more than two neighbours have exactly the pixel's colour."""
    height, width = packed.shape
    zeroes = _border_zeroes(xs, ys, width, height)
    centre = packed[ys, xs]
    for dx, dy in NEIGHBOURS:
        nx, ny, inside = _neighbour(xs, ys, dx, dy, width, height)
        zeroes += inside & (packed[ny, nx] == centre)
    return zeroes > 2


def _antialiased(
    luma: np.ndarray,
    packed: np.ndarray,
    other_packed: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
) -> np.ndarray:
    height, width = luma.shape
    zeroes = _border_zeroes(xs, ys, width, height)
    centre = luma[ys, xs]

    min_delta = np.zeros(len(xs), dtype=luma.dtype)
    max_delta = np.zeros(len(xs), dtype=luma.dtype)
    min_x, min_y = xs.copy(), ys.copy()
    max_x, max_y = xs.copy(), ys.copy()

    for dx, dy in NEIGHBOURS:
        nx, ny, inside = _neighbour(xs, ys, dx, dy, width, height)
        delta = centre - luma[ny, nx]
        flat = inside & (delta == 0)
        zeroes += flat
        darker = inside & ~flat & (delta < min_delta)
        brighter = inside & ~flat & ~darker & (delta > max_delta)

        min_delta = np.where(darker, delta, min_delta)
        min_x, min_y = np.where(darker, nx, min_x), np.where(darker, ny, min_y)
        max_delta = np.where(brighter, delta, max_delta)
        max_x, max_y = np.where(brighter, nx, max_x), np.where(brighter, ny, max_y)

    edge = (zeroes <= 2) & (min_delta != 0) & (max_delta != 0)
    if not edge.any():
        return edge

    by_darkest = _has_many_siblings(packed, min_x, min_y) & _has_many_siblings(other_packed, min_x, min_y)
    by_brightest = _has_many_siblings(packed, max_x, max_y) & _has_many_siblings(other_packed, max_x, max_y)
    return edge & (by_darkest | by_brightest)


def _diff_image(base_rgb: np.ndarray, diff_mask: np.ndarray, aa_mask: np.ndarray) -> bytes:
    gray = 255.0 + (_yiq_luma(base_rgb) - 255.0) * DIFF_ALPHA
    out = np.repeat(gray[..., None], 3, axis=2)
    out[aa_mask] = AA_COLOR
    out[diff_mask] = DIFF_COLOR
    img = Image.fromarray(np.clip(out, 0, 255).astype(np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def compare_images(
    img1: ImageSource,
    img2: ImageSource,
    threshold: Optional[float] = None,
    tolerance: Optional[float] = None,
    include_aa: bool = False,
) -> ImageComparisonResult:
    """
    Compare two images pixel by pixel.

    Parameters
    ----------
    img1, img2:
        PNG bytes, image file paths or PIL images.
    threshold:
        Per-pixel colour sensitivity in [0, 1]. Defaults to config.DIFF_THRESHOLD.
    tolerance:
        Largest diff percentage still reported as a match. Defaults to
        config.DIFF_TOLERANCE.
    include_aa:
        Count anti-aliased edge pixels as differences. They are left out
        by default and drawn yellow in the diff image.

    Returns
    -------
    ImageComparisonResult
        Includes the diff image as PNG bytes when the sizes match.
    """
    threshold = config.DIFF_THRESHOLD if threshold is None else threshold
    tolerance = config.DIFF_TOLERANCE if tolerance is None else tolerance

    first = _load_image(img1)
    second = _load_image(img2)

    if first.size != second.size:
        return ImageComparisonResult(
            match=False,
            error="Image dimensions do not match",
            dimensions={
                "img1": ImageSize(width=first.width, height=first.height),
                "img2": ImageSize(width=second.width, height=second.height),
            },
        )

    raw1 = np.asarray(first, dtype=np.uint8)
    raw2 = np.asarray(second, dtype=np.uint8)
    a = raw1.astype(np.float32)
    b = raw2.astype(np.float32)

    identical = np.all(raw1 == raw2, axis=2)
    rgb1 = _blend_with_white(a)
    rgb2 = _blend_with_white(b)
    max_delta = MAX_YIQ_DELTA * threshold * threshold
    over_threshold = (_yiq_delta(rgb1, rgb2) > max_delta) & ~identical

    aa_mask = np.zeros_like(over_threshold)
    if not include_aa and over_threshold.any():
        ys, xs = np.nonzero(over_threshold)
        packed1, packed2 = _pack_rgba(raw1), _pack_rgba(raw2)
        aa = _antialiased(_yiq_luma(rgb1), packed1, packed2, xs, ys) | _antialiased(
            _yiq_luma(rgb2), packed2, packed1, xs, ys
        )
        aa_mask[ys[aa], xs[aa]] = True
    diff_mask = over_threshold & ~aa_mask

    num_diff_pixels = int(diff_mask.sum())
    total_pixels = first.width * first.height
    diff_percentage = num_diff_pixels / total_pixels * 100

    return ImageComparisonResult(
        match=diff_percentage <= tolerance,
        num_diff_pixels=num_diff_pixels,
        total_pixels=total_pixels,
        diff_percentage=f"{diff_percentage:.2f}",
        diff_image=_diff_image(rgb1, diff_mask, aa_mask),
    )


def save_diff_image(diff_image: bytes, output_path: Union[str, Path]) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(diff_image)
    return path


def read_image_file(file_path: Union[str, Path]) -> bytes:
    return Path(file_path).read_bytes()


def is_png(data: bytes) -> bool:
    return data[:8] == b"\x89PNG\r\n\x1a\n"


def build_comparison_matrix(
    images: Mapping[str, ImageSource], threshold: Optional[float] = None
) -> List[ComparisonMatrixEntry]:
    """
    Compare every unordered pair of images once, in insertion order.
    """
    entries = []
    for left, right in combinations(list(images), 2):
        result = compare_images(images[left], images[right], threshold=threshold)
        entries.append(
            ComparisonMatrixEntry(
                left=left,
                right=right,
                diff_percentage=result.diff_percentage,
                num_diff_pixels=result.num_diff_pixels,
            )
        )
    return entries


def rank_differences(
    baseline: ImageSource,
    variants: Mapping[str, ImageSource],
    threshold: Optional[float] = None,
) -> List[RankedDifference]:
    """
    Compare each variant with the baseline; smallest difference first.
    """
    ranked: Dict[str, RankedDifference] = {}
    for name, image in variants.items():
        result = compare_images(baseline, image, threshold=threshold)
        ranked[name] = RankedDifference(
            name=name, percentage=result.diff_ratio, pixels=result.num_diff_pixels
        )
    return sorted(ranked.values(), key=lambda d: d.percentage)

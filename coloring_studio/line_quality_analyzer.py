"""
Line Quality Analyzer (post-processing sensor).

Measures a finished coloring page; it never changes the image. PIL + numpy
only. Metrics are computed on a copy downsampled to at most ``size`` pixels
per side so the pure-Python component walk stays fast.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter

SPECK_MAX_PIXELS = 12


@dataclass(frozen=True)
class LineArtMetrics:
    black_ratio: float    # share of ink pixels
    edge_density: float   # share of stroke-boundary pixels
    speck_ratio: float    # share of black components with <= SPECK_MAX_PIXELS pixels

    def to_dict(self) -> dict:
        return {
            "black_ratio": self.black_ratio,
            "edge_density": self.edge_density,
            "speck_ratio": self.speck_ratio,
        }


def _load_gray(png_bytes: bytes, size: int) -> Image.Image:
    img = Image.open(io.BytesIO(png_bytes)).convert("L")
    if max(img.size) > size:
        img.thumbnail((size, size), Image.Resampling.NEAREST)
    return img


def _connected_components(mask: np.ndarray) -> list[int]:
    """Sizes of 4-connected True regions."""
    h, w = mask.shape
    visited = np.zeros((h, w), dtype=bool)
    sizes: list[int] = []

    for y in range(h):
        for x in range(w):
            if not mask[y, x] or visited[y, x]:
                continue
            stack = [(y, x)]
            visited[y, x] = True
            size = 0
            while stack:
                cy, cx = stack.pop()
                size += 1
                for ny, nx in ((cy - 1, cx), (cy + 1, cx), (cy, cx - 1), (cy, cx + 1)):
                    if 0 <= ny < h and 0 <= nx < w and mask[ny, nx] and not visited[ny, nx]:
                        visited[ny, nx] = True
                        stack.append((ny, nx))
            sizes.append(size)
    return sizes


def analyze_line_art(png_bytes: bytes, *, size: int = 256) -> LineArtMetrics:
    """
    Compute coverage and cleanliness metrics for a post-processed page.

    Notes:
    - black_ratio too high  => large filled areas, hard to color
    - edge_density too high => sketchy or noisy strokes
    - speck_ratio too high  => leftover dots from binarization
    """
    gray = _load_gray(png_bytes, size)
    ink = np.asarray(gray, dtype=np.uint8) < 128

    black_ratio = float(ink.mean()) if ink.size else 0.0

    edges = np.asarray(gray.filter(ImageFilter.FIND_EDGES), dtype=np.uint8)
    edge_density = float((edges >= 64).mean()) if edges.size else 0.0

    sizes = _connected_components(ink)
    if sizes:
        specks = sum(1 for s in sizes if s <= SPECK_MAX_PIXELS)
        speck_ratio = float(specks / len(sizes))
    else:
        speck_ratio = 0.0

    return LineArtMetrics(
        black_ratio=black_ratio,
        edge_density=edge_density,
        speck_ratio=speck_ratio,
    )

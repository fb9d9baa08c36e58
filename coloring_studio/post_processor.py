"""
Post Processor - turns a generated image into print-ready binary line art.

Pipeline (fixed order): fetch -> grayscale -> median denoise -> threshold
-> optional fit-inside resize -> encode.

Denoising runs before thresholding; a median filter on an already binarized
raster would erode thin strokes. Resizing uses nearest-neighbour resampling
so the raster stays strictly black/white until encoding. JPEG output is
lossy and reintroduces gray pixels around strokes; PNG is the default.
"""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
import requests
from PIL import Image, ImageFilter

from .errors import PipelineError, PipelineStage
from .utils import get_logger

logger = get_logger("post_processor")

OUTPUT_FORMATS = ("png", "jpeg")
MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}
FETCH_TIMEOUT = 30


@dataclass(frozen=True)
class PostProcessOptions:
    threshold: int = 128
    denoise: bool = True
    denoise_kernel: int = 3
    output_format: str = "png"
    output_width: Optional[int] = None
    output_height: Optional[int] = None

    def __post_init__(self):
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be within 0-255, got {self.threshold}")
        if self.denoise_kernel < 1 or self.denoise_kernel % 2 == 0:
            raise ValueError(f"denoise_kernel must be a positive odd integer, got {self.denoise_kernel}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {self.output_format}")
        for dim in (self.output_width, self.output_height):
            if dim is not None and dim <= 0:
                raise ValueError(f"Output dimensions must be positive, got {dim}")

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self.output_format]


def fetch_image_bytes(url: str, timeout: int = FETCH_TIMEOUT) -> bytes:
    """Download an image (or decode a base64 data URI)."""
    if url.startswith("data:"):
        try:
            _, payload = url.split(",", 1)
            return base64.b64decode(payload)
        except ValueError as exc:
            raise PipelineError(f"Malformed data URI: {exc}", PipelineStage.POST_PROCESSING, exc) from exc
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise PipelineError(f"Failed to fetch image: {exc}", PipelineStage.POST_PROCESSING, exc) from exc
    return resp.content


def _flatten_to_grayscale(img: Image.Image) -> Image.Image:
    # Transparent pixels would otherwise turn black when alpha is dropped.
    if img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        canvas = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        img = Image.alpha_composite(canvas, rgba)
    return img.convert("L")


def binarize(gray: Image.Image, threshold: int = 128) -> Image.Image:
    """Pixels darker than threshold become 0, everything else 255."""
    arr = np.asarray(gray.convert("L"), dtype=np.uint8)
    out = np.where(arr < threshold, 0, 255).astype(np.uint8)
    return Image.fromarray(out)


def fit_inside(
    size: Tuple[int, int],
    max_width: Optional[int],
    max_height: Optional[int],
) -> Tuple[int, int]:
    """Largest size within the box that keeps aspect ratio and never upscales."""
    width, height = size
    scale = 1.0
    if max_width:
        scale = min(scale, max_width / width)
    if max_height:
        scale = min(scale, max_height / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def render_line_art(image_bytes: bytes, options: Optional[PostProcessOptions] = None) -> Image.Image:
    """Run the raster steps and return the binary image before encoding."""
    options = options or PostProcessOptions()
    with Image.open(io.BytesIO(image_bytes)) as src:
        src.load()
        gray = _flatten_to_grayscale(src)

    if options.denoise:
        gray = gray.filter(ImageFilter.MedianFilter(size=options.denoise_kernel))

    line_art = binarize(gray, options.threshold)

    if options.output_width or options.output_height:
        target = fit_inside(line_art.size, options.output_width, options.output_height)
        if target != line_art.size:
            line_art = line_art.resize(target, Image.Resampling.NEAREST)
    return line_art


def encode(line_art: Image.Image, output_format: str = "png") -> bytes:
    buf = io.BytesIO()
    if output_format == "png":
        line_art.convert("1", dither=Image.Dither.NONE).save(buf, format="PNG", optimize=True)
    else:
        line_art.save(buf, format="JPEG", quality=95)
    return buf.getvalue()


def process(
    image: Union[bytes, str],
    options: Optional[PostProcessOptions] = None,
) -> bytes:
    """
    Post-process a generated coloring page into clean line art.

    Args:
        image: Raw image bytes, or an image URL / data URI to fetch
        options: Threshold, denoise and output settings

    Returns:
        Encoded PNG or JPEG bytes
    """
    options = options or PostProcessOptions()
    image_bytes = fetch_image_bytes(image) if isinstance(image, str) else image
    try:
        line_art = render_line_art(image_bytes, options)
        data = encode(line_art, options.output_format)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise PipelineError(f"Post-processing failed: {exc}", PipelineStage.POST_PROCESSING, exc) from exc
    logger.debug(f"Post-processed {line_art.size[0]}x{line_art.size[1]} {options.output_format} ({len(data)} bytes)")
    return data

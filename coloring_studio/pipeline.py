"""
Single-image pipeline: analysis -> generation -> post-processing.

The first failing stage raises its PipelineError unchanged.
"""

from __future__ import annotations

import time
from typing import Literal, Optional, Tuple, Union

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import image_generator
from .analysis_normalizer import normalize
from .config import DEFAULT_GENERATION_MODEL
from .errors import PipelineError, PipelineStage
from .pipeline_types import AnalysisResult, GenerationResult, PipelineOutput
from .post_processor import PostProcessOptions, process
from .schemas import ComplexityLevelName, RichAnalysis
from .utils import get_logger, infer_mime_type, to_data_uri
from .visual_analyst import run_visual_analyst

logger = get_logger("pipeline")

VariantName = Literal["direct-transform", "preservation-heavy", "simplification-heavy"]


class PipelineOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    target_complexity: ComplexityLevelName
    prompt_variant: VariantName = "direct-transform"
    model: str = DEFAULT_GENERATION_MODEL
    use_analysis: bool = True
    output_format: Literal["png", "jpeg"] = "png"
    output_width: Optional[int] = Field(default=None, gt=0)
    output_height: Optional[int] = Field(default=None, gt=0)

    def post_process_options(self) -> PostProcessOptions:
        return PostProcessOptions(
            output_format=self.output_format,
            output_width=self.output_width,
            output_height=self.output_height,
        )


def _coerce_options(options: Union[PipelineOptions, dict]) -> PipelineOptions:
    if isinstance(options, PipelineOptions):
        return options
    try:
        return PipelineOptions.model_validate(options)
    except ValidationError as exc:
        raise PipelineError(f"Invalid pipeline options: {exc}", PipelineStage.ANALYSIS, exc) from exc


def _fetch_source_image(url: str) -> bytes:
    try:
        resp = requests.get(url, timeout=30)
        resp.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise PipelineError(f"Failed to fetch source image: {exc}", PipelineStage.ANALYSIS, exc) from exc
    return resp.content


# ---------- Steps ----------
def analyze_image(image_bytes: bytes, mime: Optional[str] = None) -> Tuple[RichAnalysis, AnalysisResult]:
    """Vision call plus normalization."""
    rich = run_visual_analyst(image_bytes, mime or infer_mime_type(image_bytes))
    return rich, normalize(rich)


def generate_coloring_page(
    image_url: str,
    options: PipelineOptions,
    analysis: Optional[AnalysisResult] = None,
) -> GenerationResult:
    return image_generator.generate_coloring_page(
        image_url,
        options.model,
        options.target_complexity,
        options.prompt_variant,
        analysis,
    )


def post_process(image_url: str, options: PipelineOptions) -> bytes:
    return process(image_url, options.post_process_options())


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def run_pipeline(
    image: Union[bytes, str],
    options: Union[PipelineOptions, dict],
) -> PipelineOutput:
    """
    Convert one photograph into a coloring page.

    Args:
        image: Raw image bytes, or a URL to the photo
        options: PipelineOptions or an equivalent dict

    Returns:
        PipelineOutput with the final image, analysis, generation record and timings
    """
    opts = _coerce_options(options)
    total_start = time.perf_counter()

    if isinstance(image, str):
        image_url = image
        image_bytes = None
    else:
        image_bytes = image
        image_url = to_data_uri(image)

    rich = None
    analysis = None
    analysis_ms = 0
    if opts.use_analysis:
        start = time.perf_counter()
        if image_bytes is None:
            image_bytes = _fetch_source_image(image_url)
        rich, analysis = analyze_image(image_bytes)
        analysis_ms = _elapsed_ms(start)
        logger.info(f"Analysis complete ({analysis_ms}ms, photo_type={rich.photo_type})")

    start = time.perf_counter()
    generation = generate_coloring_page(image_url, opts, analysis)
    generation_ms = _elapsed_ms(start)
    logger.info(f"Generation complete ({generation_ms}ms, model={opts.model})")

    start = time.perf_counter()
    final_image = post_process(generation.image_url, opts)
    post_processing_ms = _elapsed_ms(start)

    timing = {
        "analysis_ms": analysis_ms,
        "generation_ms": generation_ms,
        "post_processing_ms": post_processing_ms,
        "total_ms": _elapsed_ms(total_start),
    }
    logger.info(f"Pipeline complete ({timing['total_ms']}ms)")
    return PipelineOutput(
        final_image=final_image,
        mime_type=opts.post_process_options().mime_type,
        rich_analysis=rich,
        analysis=analysis,
        generation=generation,
        timing=timing,
    )

"""
Image Generator - composes the prompt for a (model, complexity, variant)
triple and calls the matching fal.ai endpoint.
"""

from __future__ import annotations

from typing import Optional

from .fal_client import call_image_edit, call_image_generation
from .generation_models import is_edit_model
from .pipeline_types import AnalysisResult, GenerationResult
from .prompt_engineer import compose, compose_for_edit, get_inference_config
from .utils import get_logger

logger = get_logger("image_generator")


def generate_coloring_page(
    image_url: str,
    model: str,
    complexity: str,
    variant: str,
    analysis: Optional[AnalysisResult] = None,
    status_writer=None,
) -> GenerationResult:
    """
    Generate one coloring page.

    Args:
        image_url: Source photo as URL or data URI (used by edit models only)
        model: fal model id
        complexity: Target complexity level
        variant: Prompt variant
        analysis: Normalized analysis, if available

    Returns:
        GenerationResult for the first returned image
    """
    if is_edit_model(model):
        prompt = compose_for_edit(variant, complexity, analysis)
        logger.info(f"Edit generation: model={model} complexity={complexity} variant={variant}")
        response = call_image_edit(
            model=model,
            prompt=prompt,
            image_urls=[image_url],
            output_format="png",
            status_writer=status_writer,
        )
        image = response.images[0]
        return GenerationResult(
            image_url=image.url,
            width=image.width,
            height=image.height,
            model=model,
            prompt_used=prompt,
            description=response.description,
        )

    bundle = compose(variant, complexity, analysis)
    inference = get_inference_config(complexity)
    logger.info(
        f"Text-to-image generation: model={model} complexity={complexity} variant={variant} "
        f"steps={inference.num_inference_steps} guidance={inference.guidance_scale}"
    )
    response = call_image_generation(
        prompt=bundle.prompt,
        negative_prompt=bundle.negative_prompt,
        num_inference_steps=inference.num_inference_steps,
        guidance_scale=inference.guidance_scale,
        model=model,
        status_writer=status_writer,
    )
    image = response.images[0]
    return GenerationResult(
        image_url=image.url,
        width=image.width,
        height=image.height,
        model=model,
        prompt_used=bundle.prompt,
        negative_prompt_used=bundle.negative_prompt,
        seed=response.seed,
        num_inference_steps=inference.num_inference_steps,
        guidance_scale=inference.guidance_scale,
    )

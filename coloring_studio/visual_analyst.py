"""
Visual Analyst Agent - structured photo analysis using Gemini.
"""

from __future__ import annotations

import json
import time

from google.genai import types as genai_types
from pydantic import ValidationError

from .config import ANALYST_SYSTEM_PROMPT, ANALYST_USER_PROMPT
from .errors import PipelineError, PipelineStage
from .gemini_client import get_genai_client, get_model_name, get_thinking_config
from .schemas import RichAnalysis
from .utils import get_logger, strip_code_fences

logger = get_logger("visual_analyst")


def parse_rich_analysis(text: str) -> RichAnalysis:
    """
    Parse and validate the vision model's JSON reply.

    Raises:
        PipelineError: stage "analysis" for non-JSON text or a schema mismatch
    """
    blob = strip_code_fences(text)
    try:
        payload = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise PipelineError(
            f"Vision response is not valid JSON: {exc}", PipelineStage.ANALYSIS, exc
        ) from exc
    try:
        return RichAnalysis.model_validate(payload)
    except ValidationError as exc:
        raise PipelineError(
            f"Vision response failed schema validation: {exc}", PipelineStage.ANALYSIS, exc
        ) from exc


def run_visual_analyst(image_bytes: bytes, mime: str) -> RichAnalysis:
    """
    Run the vision model over a photograph.

    Args:
        image_bytes: Raw image data
        mime: Image media type (e.g. "image/jpeg")

    Returns:
        Schema-validated RichAnalysis
    """
    client = get_genai_client()
    if client is None:
        raise PipelineError(
            "Gemini API key missing: set GEMINI_API_KEY or GOOGLE_GENAI_API_KEY",
            PipelineStage.ANALYSIS,
        )

    model_name = get_model_name()
    image_part = genai_types.Part.from_bytes(data=image_bytes, mime_type=mime)
    contents = [image_part, ANALYST_USER_PROMPT.strip()]

    start = time.perf_counter()
    try:
        response = client.models.generate_content(
            model=model_name,
            contents=contents,
            config=genai_types.GenerateContentConfig(
                temperature=0.2,
                system_instruction=ANALYST_SYSTEM_PROMPT.strip(),
                response_mime_type="application/json",
                thinking_config=get_thinking_config(),
            ),
        )
    except Exception as exc:
        logger.error(f"Gemini analysis call failed: {exc}")
        raise PipelineError(f"Vision call failed: {exc}", PipelineStage.ANALYSIS, exc) from exc

    text = response.text or ""
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(f"Visual analyst response received ({len(text)} chars, {elapsed_ms}ms, model={model_name})")

    if not text.strip():
        raise PipelineError("Vision model returned an empty response", PipelineStage.ANALYSIS)
    return parse_rich_analysis(text)

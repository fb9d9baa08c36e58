"""
Prompt Engineer - variant- and complexity-specific coloring page prompts.

Every variant assembles five ordered clauses (task, preservation, style,
negative constraints, complexity target) joined by single spaces. The
machine-readable negative prompt is shared by all variants.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .config import ComplexityProfile, InferenceConfig, get_complexity_profile
from .pipeline_types import AnalysisResult, PromptBundle
from .utils import get_logger

logger = get_logger("prompt_engineer")

NEGATIVE_PROMPT = ", ".join((
    "color",
    "shading",
    "gradient",
    "gray",
    "grey",
    "shadow",
    "photograph",
    "photorealistic",
    "3d render",
    "watermark",
    "text",
    "signature",
    "blurry",
    "low quality",
    "filled areas",
    "solid black regions",
    "halftone",
    "crosshatch",
    "noise",
    "grain",
))

BACKGROUND_INSTRUCTIONS = {
    "remove": "Pure white background, no background elements.",
    "simplify": "Minimally suggested background with only essential structural lines.",
    "preserve-structure": "Background shows recognizable shapes as simple outlines.",
    "preserve-detail": "Background included with full structural detail rendered as line art.",
}

_BASE_CONSTRAINTS = (
    "No color, no shading, no gradients, no gray tones. "
    "Every region either pure black outline or pure white fill, nothing in between."
)

_FACE_FIDELITY = "Preserve exact facial features, proportions, hairstyle, glasses"

_FACIAL_STRUCTURE = (
    "Facial structure is the top priority: jawline, nose shape, eye spacing, brow shape, "
    "and lip proportions must match the original."
)

_ACCESSORY_FIDELITY = (
    "Distinguishing accessories (glasses, earrings, hats, jewelry) must appear in their exact form."
)


# ---------- Shared Helpers ----------
def _scene_block(analysis: AnalysisResult) -> str:
    subjects = [e.description for e in analysis.elements if e.category == "subject"]
    objects = [e.description for e in analysis.elements if e.category == "object"]
    parts = [f"Scene: {analysis.scene_description}."]
    if subjects:
        parts.append(f"Main subjects: {', '.join(subjects)}.")
    if objects:
        parts.append(f"Also includes: {', '.join(objects)}.")
    return " ".join(parts)


def _face_block(analysis: AnalysisResult) -> str:
    return "; ".join(
        f"{face.description} ({face.position}), features: {', '.join(face.distinguishing_features)}"
        for face in analysis.face_regions
    )


def background_instruction(strategy: str) -> str:
    try:
        return BACKGROUND_INSTRUCTIONS[strategy]
    except KeyError:
        raise ValueError(f"Unknown background strategy: {strategy}") from None


def _complexity_clause(profile: ComplexityProfile) -> str:
    return (
        f"Detail level: {profile.detail_level}. Region sizes: {profile.region_size_guidance}. "
        f"{profile.extra_instructions}"
    )


def _join_clauses(*clauses: str) -> str:
    return " ".join(c for c in clauses if c)


# ---------- Variant: direct-transform ----------
def direct_transform(profile: ComplexityProfile, analysis: Optional[AnalysisResult] = None) -> str:
    """Balanced single pass across all concerns."""
    task = (
        "Convert this photograph into a coloring book page. "
        f"Black and white line art drawing suitable for {profile.age_description}."
    )

    if analysis:
        preservation = _scene_block(analysis)
        faces = _face_block(analysis)
        if faces:
            preservation += (
                " The people must be recognizable as the same individuals. "
                f"{_FACE_FIDELITY}: {faces}."
            )
        background = background_instruction(analysis.background_strategy)
    else:
        preservation = (
            "If people are present, the people must be recognizable as the same individuals. "
            f"{_FACE_FIDELITY}."
        )
        background = "Simplify the background to minimal structural outlines."

    style = f"Style: {profile.line_weight}. Bold black outlines on pure white background. {background}"
    return _join_clauses(task, preservation, style, _BASE_CONSTRAINTS, _complexity_clause(profile))


# ---------- Variant: preservation-heavy ----------
def preservation_heavy(profile: ComplexityProfile, analysis: Optional[AnalysisResult] = None) -> str:
    """Identity first: reinforces facial and accessory fidelity throughout."""
    task = (
        "Convert this photograph into a coloring book page while maintaining the identity "
        f"and likeness of every person. Black and white line art for {profile.age_description}."
    )

    if analysis:
        preservation = _scene_block(analysis)
        faces = _face_block(analysis)
        if faces:
            preservation += " " + " ".join((
                "CRITICAL: The people must be recognizable as the same individuals from the original photo.",
                f"{_FACE_FIDELITY} for each person: {faces}.",
                _FACIAL_STRUCTURE,
                _ACCESSORY_FIDELITY,
            ))
        background = background_instruction(analysis.background_strategy)
    else:
        preservation = " ".join((
            "CRITICAL: The people must be recognizable as the same individuals from the original photo.",
            f"{_FACE_FIDELITY}.",
            _FACIAL_STRUCTURE,
            _ACCESSORY_FIDELITY,
        ))
        background = "Simplify the background to keep focus on the people."

    style = (
        f"Style: {profile.line_weight}. Bold black outlines on pure white background. "
        "Use line weight variation to emphasize facial features: thinner lines for facial detail, "
        f"thicker for body contours. {background}"
    )
    constraints = (
        f"{_BASE_CONSTRAINTS} Do not simplify faces; only simplify non-face regions "
        "to match the target complexity."
    )
    complexity = (
        f"{_complexity_clause(profile)} "
        "Exception: faces always retain full detail regardless of complexity level."
    )
    return _join_clauses(task, preservation, style, constraints, complexity)


# ---------- Variant: simplification-heavy ----------
def simplification_heavy(profile: ComplexityProfile, analysis: Optional[AnalysisResult] = None) -> str:
    """Colorability first: clean single strokes and closed, well-bounded regions."""
    task = (
        "Create a clean, professionally illustrated coloring book page from this photograph. "
        "Prioritize clear, unbroken outlines and well-defined coloring regions. "
        f"Black and white line art for {profile.age_description}."
    )

    if analysis:
        preservation = _scene_block(analysis)
        faces = _face_block(analysis)
        if faces:
            preservation += (
                " The people must be recognizable as the same individuals. "
                f"{_FACE_FIDELITY}, but render them with clean simplified strokes: {faces}."
            )
        background = background_instruction(analysis.background_strategy)
    else:
        preservation = (
            "If people are present, the people must be recognizable as the same individuals. "
            f"{_FACE_FIDELITY}, but render them with clean simplified strokes."
        )
        background = "Remove or heavily simplify the background."

    style = " ".join((
        f"Style: {profile.line_weight}. Bold black outlines on pure white background.",
        "Every outline must be a single clean stroke, no sketchy or doubled lines.",
        "Every enclosed region must be clearly bounded by unbroken lines with no gaps.",
        "Merge small adjacent details into larger, easier-to-color regions.",
        background,
    ))
    constraints = (
        f"{_BASE_CONSTRAINTS} No cross-hatching, no stippling, no texture marks, "
        "no decorative fills inside regions."
    )
    complexity = (
        f"{_complexity_clause(profile)} "
        "When in doubt, simplify further: fewer well-defined regions are better than many ambiguous ones."
    )
    return _join_clauses(task, preservation, style, constraints, complexity)


VARIANT_BUILDERS: Dict[str, Callable[[ComplexityProfile, Optional[AnalysisResult]], str]] = {
    "direct-transform": direct_transform,
    "preservation-heavy": preservation_heavy,
    "simplification-heavy": simplification_heavy,
}


def _build_prompt(variant: str, complexity_level: str, analysis: Optional[AnalysisResult]) -> str:
    builder = VARIANT_BUILDERS.get(variant)
    if builder is None:
        raise ValueError(
            f"Unknown prompt variant: {variant!r} (expected one of {', '.join(VARIANT_BUILDERS)})"
        )
    return builder(get_complexity_profile(complexity_level), analysis)


# ---------- Public API ----------
def compose(
    variant: str,
    complexity_level: str,
    analysis: Optional[AnalysisResult] = None,
) -> PromptBundle:
    """
    Build the positive prompt for a variant plus the shared negative prompt.

    Args:
        variant: One of the prompt variants
        complexity_level: Target audience tier
        analysis: Normalized analysis; generic fallbacks are used when omitted

    Returns:
        PromptBundle(prompt, negative_prompt)
    """
    prompt = _build_prompt(variant, complexity_level, analysis)
    logger.debug(f"Composed {variant}/{complexity_level} prompt ({len(prompt)} chars)")
    return PromptBundle(prompt=prompt, negative_prompt=NEGATIVE_PROMPT)


def compose_for_edit(
    variant: str,
    complexity_level: str,
    analysis: Optional[AnalysisResult] = None,
) -> str:
    """
    Single prompt for edit endpoints, which have no negative-prompt field.
    The negative constraints are folded in as a trailing MUST NOT clause.
    """
    prompt = _build_prompt(variant, complexity_level, analysis)
    return f"{prompt} MUST NOT include: {NEGATIVE_PROMPT}."


def get_inference_config(complexity_level: str) -> InferenceConfig:
    """More detail needs more steps but looser prompt adherence."""
    profile = get_complexity_profile(complexity_level)
    return InferenceConfig(
        num_inference_steps=profile.inference_steps,
        guidance_scale=profile.guidance_scale,
    )

"""
Configuration, constants, and complexity profiles for Coloring Studio.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType

from dotenv import load_dotenv

# Environment overrides (FAL_KEY, GEMINI_API_KEY, ...) may live in a local .env file.
load_dotenv()


# ---------- Vocabularies ----------
COMPLEXITY_LEVELS = ("toddler", "child", "tween", "adult")

PROMPT_VARIANTS = (
    "direct-transform",
    "preservation-heavy",
    "simplification-heavy",
)

BACKGROUND_STRATEGIES = ("remove", "simplify", "preserve-structure", "preserve-detail")

ELEMENT_CATEGORIES = ("subject", "object", "background", "accessory")


# ---------- Data Models ----------
@dataclass(frozen=True)
class ComplexityProfile:
    """Line-art targets for one audience tier."""
    line_weight: str
    detail_level: str
    region_size_guidance: str
    age_description: str
    extra_instructions: str
    inference_steps: int
    guidance_scale: float


@dataclass(frozen=True)
class InferenceConfig:
    num_inference_steps: int
    guidance_scale: float

    def to_dict(self) -> dict:
        return {
            "num_inference_steps": self.num_inference_steps,
            "guidance_scale": self.guidance_scale,
        }


# ---------- Complexity Profiles ----------
COMPLEXITY_PROFILES = MappingProxyType({
    "toddler": ComplexityProfile(
        line_weight="very thick, bold outlines (6-8px equivalent)",
        detail_level="extremely simplified, only the most basic shapes",
        region_size_guidance="very large coloring regions, no small details",
        age_description="toddlers ages 2-4",
        extra_instructions=(
            "Reduce everything to basic geometric shapes. No small details, no textures, "
            "no patterns. Maximum 8-10 distinct regions to color."
        ),
        inference_steps=20,
        guidance_scale=8.0,
    ),
    "child": ComplexityProfile(
        line_weight="thick, clear outlines (4-6px equivalent)",
        detail_level="simplified but recognizable, moderate detail",
        region_size_guidance="medium to large coloring regions",
        age_description="children ages 5-8",
        extra_instructions=(
            "Keep shapes recognizable but simplified. Include some detail in clothing "
            "and hair. Around 15-25 distinct coloring regions."
        ),
        inference_steps=25,
        guidance_scale=7.5,
    ),
    "tween": ComplexityProfile(
        line_weight="medium outlines (2-4px equivalent)",
        detail_level="detailed with clear shapes, moderate complexity",
        region_size_guidance="varied region sizes including some smaller details",
        age_description="tweens ages 9-12",
        extra_instructions=(
            "Include detailed features like clothing folds, hair texture, and background "
            "elements. Around 30-50 distinct coloring regions."
        ),
        inference_steps=30,
        guidance_scale=7.5,
    ),
    "adult": ComplexityProfile(
        line_weight="fine, precise outlines (1-3px equivalent)",
        detail_level="highly detailed, intricate patterns where appropriate",
        region_size_guidance="many small and detailed regions",
        age_description="adults and advanced colorists",
        extra_instructions=(
            "Include fine details: fabric textures, individual leaves, architectural "
            "details, hair strands. Add decorative patterns in large empty areas. "
            "50+ distinct coloring regions."
        ),
        inference_steps=35,
        guidance_scale=7.0,
    ),
})


def get_complexity_profile(level: str) -> ComplexityProfile:
    """Lookup a complexity profile by level name."""
    try:
        return COMPLEXITY_PROFILES[level]
    except KeyError:
        raise ValueError(
            f"Unknown complexity level: {level!r} (expected one of {', '.join(COMPLEXITY_LEVELS)})"
        ) from None


# ---------- Generation Models ----------
GENERATION_MODELS = {
    "fal-ai/nano-banana-pro/edit": {
        "label": "Nano Banana Pro",
        "type": "edit",
    },
    "fal-ai/gpt-image-1.5/edit": {
        "label": "GPT Image 1.5",
        "type": "edit",
    },
    "fal-ai/nano-banana/edit": {
        "label": "Nano Banana",
        "type": "edit",
    },
    "fal-ai/gemini-3-pro-image-preview/edit": {
        "label": "Gemini 3 Pro Preview",
        "type": "edit",
    },
    "fal-ai/fast-sdxl": {
        "label": "Fast SDXL (text-to-image)",
        "type": "text-to-image",
    },
}

# Default model for single-image pipeline runs
DEFAULT_GENERATION_MODEL = "fal-ai/fast-sdxl"


# ---------- Batch Defaults ----------
BATCH_COMPLEXITY_LEVELS = ("child", "adult")

BATCH_VARIANTS = PROMPT_VARIANTS

QUALITY_CRITERIA = (
    ("lineClarity", "Line Clarity"),
    ("recognizability", "Recognizability"),
    ("colorability", "Colorability"),
    ("complexityMatch", "Complexity Match"),
    ("overall", "Overall Quality"),
)

MIN_RATING = 1
MAX_RATING = 5


def get_results_dir() -> str:
    """Root directory for batch run artifacts."""
    return os.getenv("COLORING_RESULTS_DIR", "test-results")


# ---------- Vision Analysis Prompts ----------
ANALYST_SYSTEM_PROMPT = """You are an expert image analyst for a coloring book generation pipeline. Your job is to examine a photograph and extract structured information that will guide the conversion of this photo into a coloring page.

Be precise about spatial positions, distinctive features, and visual complexity. Your analysis directly determines what gets preserved and what gets simplified in the final coloring page.
"""

ANALYST_USER_PROMPT = """Analyze this photograph for coloring book conversion. Extract the following:

**Photo Type**: Classify as "portrait" (1-2 people, face-focused), "group" (3+ people), "pet" (animal-focused), "landscape" (scenery, no prominent subjects), "landmark" (recognizable building/monument), or "other".

**Subjects**: For each distinct subject (person, animal, prominent object):
- Write a concise description (e.g. "young woman with curly red hair and round glasses")
- Estimate a bounding box as normalized coordinates (0-1 range): x and y for the top-left corner, width and height as fractions of the full image
- List distinctive features that MUST be preserved for recognizability (e.g. "round glasses", "handlebar mustache", "striped scarf", "missing front tooth")

**Background**:
- Describe the background briefly
- Rate its visual complexity from 1 (plain solid color) to 10 (highly detailed scene)
- List the key structural elements (e.g. "brick wall", "oak tree", "park bench")

**Preservation Priorities**: Rank the most important elements to preserve, from most to least critical. Put the most important first.

**Simplification Targets**: List elements that CAN be simplified or removed at different complexity levels. For each, specify:
- What the element is
- Why it can be simplified (e.g. "background clutter", "repetitive pattern", "small secondary detail")
- Which complexity levels it applies to. Use: "toddler" (ages 2-4), "child" (ages 5-8), "tween" (ages 9-12), "adult" (detailed, minimal simplification).

Required Output JSON keys:
{
  "photoType": "portrait | group | pet | landscape | landmark | other",
  "subjects": [
    {
      "description": "...",
      "boundingBox": {"x": 0.0, "y": 0.0, "width": 0.0, "height": 0.0},
      "distinctiveFeatures": ["..."]
    }
  ],
  "background": {"description": "...", "complexity": 1, "keyElements": ["..."]},
  "preservationPriorities": ["..."],
  "simplificationTargets": [
    {"element": "...", "reason": "...", "applicableComplexity": ["toddler", "child"]}
  ]
}

Rules:
- Return ONLY valid JSON, no other text.
- complexity must be an integer from 1 to 10.
- Bounding box values must be within 0-1.
"""

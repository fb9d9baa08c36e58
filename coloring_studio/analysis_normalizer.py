"""
Analysis Normalizer - maps the vision model's RichAnalysis onto the
AnalysisResult shape used by prompt composition.

Pure and total: any schema-valid RichAnalysis yields a valid AnalysisResult,
degenerate inputs fall back to a single synthesized "scene" element.
"""

from __future__ import annotations

from typing import Protocol, Tuple

from .pipeline_types import AnalysisResult, DetectedElement, FaceRegion
from .schemas import BoundingBox, RichAnalysis, Subject

FACE_PHOTO_TYPES = ("portrait", "group")

SPATIAL_LAYOUTS = {
    "portrait": "portrait close-up",
    "group": "group scene",
    "landscape": "landscape",
}


class FaceHeuristic(Protocol):
    def describes_person(self, description: str) -> bool:
        ...


class PersonLexiconHeuristic:
    """
    Case-insensitive substring rules over the subject description.

    This is a heuristic, not language understanding. It misses people described
    without a lexicon word ("toddler", "grandpa") and matches substrings inside
    unrelated words ("human", "germany" both contain "man").
    """

    LEXICON = ("person", "man", "woman", "boy", "girl", "child")

    def __init__(self, lexicon: Tuple[str, ...] = LEXICON):
        self.rules = tuple(
            (word, (lambda text, w=word.lower(): w in text)) for word in lexicon
        )

    def describes_person(self, description: str) -> bool:
        text = (description or "").lower()
        return any(rule(text) for _, rule in self.rules)


DEFAULT_FACE_HEURISTIC = PersonLexiconHeuristic()


def bbox_to_position(bbox: BoundingBox) -> str:
    """Bucket the box origin into a coarse position label."""
    if bbox.x < 0.33:
        horizontal = "left"
    elif bbox.x > 0.66:
        horizontal = "right"
    else:
        horizontal = ""

    if bbox.y < 0.33:
        vertical = "top"
    elif bbox.y > 0.66:
        vertical = "bottom"
    else:
        vertical = ""

    if horizontal and vertical:
        return f"{vertical}-{horizontal}"
    return horizontal or vertical or "center"


def derive_background_strategy(photo_type: str, complexity: int) -> str:
    if photo_type == "landmark":
        return "preserve-detail"
    if photo_type == "landscape":
        return "preserve-structure"
    if complexity <= 2:
        return "remove"
    if complexity <= 5:
        return "simplify"
    if complexity <= 8:
        return "preserve-structure"
    return "preserve-detail"


def _is_face_subject(subject: Subject, photo_type: str, heuristic: FaceHeuristic) -> bool:
    if not subject.distinctive_features:
        return False
    return photo_type in FACE_PHOTO_TYPES or heuristic.describes_person(subject.description)


def _subject_label(description: str) -> str:
    return " ".join(description.split()[:3])


def normalize(
    rich: RichAnalysis,
    face_heuristic: FaceHeuristic = DEFAULT_FACE_HEURISTIC,
) -> AnalysisResult:
    """
    Build the normalized AnalysisResult for a vision analysis.

    Args:
        rich: Schema-validated analysis from the vision model
        face_heuristic: Strategy deciding whether a subject description names a person

    Returns:
        AnalysisResult with at least one element
    """
    subject_elements = [
        DetectedElement(
            label=_subject_label(subject.description),
            importance=i + 1,
            category="subject",
            description=subject.description,
        )
        for i, subject in enumerate(rich.subjects)
    ]
    background_elements = [
        DetectedElement(
            label=element,
            importance=len(rich.subjects) + i + 1,
            category="background",
            description=element,
        )
        for i, element in enumerate(rich.background.key_elements)
    ]

    elements = subject_elements + background_elements
    if not elements:
        elements.append(
            DetectedElement(
                label="scene",
                importance=1,
                category="subject",
                description=rich.background.description,
            )
        )

    face_regions = tuple(
        FaceRegion(
            description=subject.description,
            position=bbox_to_position(subject.bounding_box),
            distinguishing_features=tuple(subject.distinctive_features),
        )
        for subject in rich.subjects
        if _is_face_subject(subject, rich.photo_type, face_heuristic)
    )

    if rich.subjects:
        described = ", ".join(s.description for s in rich.subjects)
        scene_description = f"{rich.photo_type}: {described} with {rich.background.description}"
    else:
        scene_description = rich.background.description

    return AnalysisResult(
        elements=tuple(elements),
        face_regions=face_regions,
        scene_description=scene_description,
        spatial_layout=SPATIAL_LAYOUTS.get(rich.photo_type, rich.photo_type),
        background_strategy=derive_background_strategy(rich.photo_type, rich.background.complexity),
    )

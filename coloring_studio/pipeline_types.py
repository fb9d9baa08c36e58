"""
Normalized analysis and generation data models.

AnalysisResult is what prompt composition consumes. It is built once per
pipeline run and treated as read-only afterwards, so every model here is a
frozen dataclass holding tuples rather than lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .config import BACKGROUND_STRATEGIES, ELEMENT_CATEGORIES


@dataclass(frozen=True)
class DetectedElement:
    label: str
    importance: int
    category: str
    description: str

    def __post_init__(self):
        if self.importance < 1:
            raise ValueError(f"importance must be a positive rank, got {self.importance}")
        if self.category not in ELEMENT_CATEGORIES:
            raise ValueError(f"Unknown element category: {self.category}")

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "importance": self.importance,
            "category": self.category,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DetectedElement":
        return cls(
            label=data["label"],
            importance=int(data["importance"]),
            category=data["category"],
            description=data["description"],
        )


@dataclass(frozen=True)
class FaceRegion:
    description: str
    position: str
    distinguishing_features: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "position": self.position,
            "distinguishing_features": list(self.distinguishing_features),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FaceRegion":
        return cls(
            description=data["description"],
            position=data["position"],
            distinguishing_features=tuple(data.get("distinguishing_features") or ()),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Normalized scene analysis consumed by the prompt engineer."""

    elements: Tuple[DetectedElement, ...]
    face_regions: Tuple[FaceRegion, ...]
    scene_description: str
    spatial_layout: str
    background_strategy: str

    def __post_init__(self):
        if not self.elements:
            raise ValueError("AnalysisResult.elements must contain at least one element")
        if self.background_strategy not in BACKGROUND_STRATEGIES:
            raise ValueError(f"Unknown background strategy: {self.background_strategy}")

    def to_dict(self) -> dict:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "face_regions": [f.to_dict() for f in self.face_regions],
            "scene_description": self.scene_description,
            "spatial_layout": self.spatial_layout,
            "background_strategy": self.background_strategy,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        return cls(
            elements=tuple(DetectedElement.from_dict(e) for e in data.get("elements") or []),
            face_regions=tuple(FaceRegion.from_dict(f) for f in data.get("face_regions") or []),
            scene_description=data.get("scene_description", ""),
            spatial_layout=data.get("spatial_layout", ""),
            background_strategy=data["background_strategy"],
        )


@dataclass(frozen=True)
class PromptBundle:
    prompt: str
    negative_prompt: str


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one image-generation call."""

    image_url: str
    model: str
    prompt_used: str
    width: Optional[int] = None
    height: Optional[int] = None
    negative_prompt_used: Optional[str] = None
    seed: Optional[int] = None
    description: Optional[str] = None
    num_inference_steps: Optional[int] = None
    guidance_scale: Optional[float] = None

    @classmethod
    def empty(cls, model: str) -> "GenerationResult":
        """Placeholder recorded for iterations that failed before producing an image."""
        return cls(image_url="", model=model, prompt_used="")

    def to_dict(self) -> dict:
        return {
            "image_url": self.image_url,
            "width": self.width,
            "height": self.height,
            "model": self.model,
            "prompt_used": self.prompt_used,
            "negative_prompt_used": self.negative_prompt_used,
            "seed": self.seed,
            "description": self.description,
            "num_inference_steps": self.num_inference_steps,
            "guidance_scale": self.guidance_scale,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GenerationResult":
        return cls(
            image_url=data.get("image_url", ""),
            model=data.get("model", ""),
            prompt_used=data.get("prompt_used", ""),
            width=data.get("width"),
            height=data.get("height"),
            negative_prompt_used=data.get("negative_prompt_used"),
            seed=data.get("seed"),
            description=data.get("description"),
            num_inference_steps=data.get("num_inference_steps"),
            guidance_scale=data.get("guidance_scale"),
        )


@dataclass(frozen=True)
class PipelineOutput:
    final_image: bytes
    mime_type: str
    rich_analysis: Optional[object]
    analysis: Optional[AnalysisResult]
    generation: GenerationResult
    timing: dict = field(default_factory=dict)

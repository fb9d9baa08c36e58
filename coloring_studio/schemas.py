"""
Pydantic schemas for the vision and image-generation service boundaries.

Payloads from the vision model arrive with camelCase keys; every model accepts
either camelCase or snake_case and serializes back to camelCase.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ComplexityLevelName = Literal["toddler", "child", "tween", "adult"]
PhotoTypeName = Literal["portrait", "group", "pet", "landscape", "landmark", "other"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


# ---------- Vision (RichAnalysis) ----------
class BoundingBox(_CamelModel):
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    width: float = Field(..., ge=0, le=1)
    height: float = Field(..., ge=0, le=1)


class Subject(_CamelModel):
    description: str
    bounding_box: BoundingBox = Field(..., alias="boundingBox")
    distinctive_features: List[str] = Field(..., alias="distinctiveFeatures")


class BackgroundInfo(_CamelModel):
    description: str
    complexity: int = Field(..., ge=1, le=10)
    key_elements: List[str] = Field(..., alias="keyElements")


class SimplificationTarget(_CamelModel):
    element: str
    reason: str
    applicable_complexity: List[ComplexityLevelName] = Field(..., alias="applicableComplexity")


class RichAnalysis(_CamelModel):
    """Structured photo analysis as returned by the vision model."""

    photo_type: PhotoTypeName = Field(..., alias="photoType")
    subjects: List[Subject]
    background: BackgroundInfo
    preservation_priorities: List[str] = Field(..., alias="preservationPriorities")
    simplification_targets: List[SimplificationTarget] = Field(..., alias="simplificationTargets")


# ---------- Image Generation ----------
class GeneratedImage(_CamelModel):
    url: str = Field(..., min_length=1)
    content_type: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None


class TextToImageResponse(_CamelModel):
    images: List[GeneratedImage] = Field(..., min_length=1)
    seed: int
    timings: Optional[Any] = None
    has_nsfw_concepts: Optional[List[bool]] = None
    prompt: Optional[str] = None


class EditImageResponse(_CamelModel):
    images: List[GeneratedImage] = Field(..., min_length=1)
    description: Optional[str] = None

"""
Generation model registry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .config import GENERATION_MODELS

EDIT = "edit"
TEXT_TO_IMAGE = "text-to-image"


@dataclass(frozen=True)
class GenerationModelSpec:
    id: str
    label: str
    type: str  # "edit" or "text-to-image"

    @property
    def is_edit(self) -> bool:
        return self.type == EDIT


def get_generation_models() -> List[GenerationModelSpec]:
    """Return registered generation models in display order."""
    return [
        GenerationModelSpec(id=model_id, label=entry["label"], type=entry["type"])
        for model_id, entry in GENERATION_MODELS.items()
    ]


def get_generation_model(model_id: str) -> GenerationModelSpec:
    """Lookup a generation model by id."""
    for spec in get_generation_models():
        if spec.id == model_id:
            return spec
    raise KeyError(f"Unknown generation model: {model_id}")


def is_edit_model(model_id: str) -> bool:
    """Registered edit models, plus any unregistered id ending in /edit."""
    entry = GENERATION_MODELS.get(model_id)
    if entry is not None:
        return entry["type"] == EDIT
    return model_id.endswith("/edit")


def model_label(model_id: str) -> str:
    entry = GENERATION_MODELS.get(model_id)
    return entry["label"] if entry else model_id

"""Shared test fixtures."""

from __future__ import annotations

import copy
import io

import pytest
from PIL import Image, ImageDraw

from coloring_studio.schemas import RichAnalysis


PORTRAIT_ANALYSIS = {
    "photoType": "portrait",
    "subjects": [
        {
            "description": "young woman with curly red hair and round glasses",
            "boundingBox": {"x": 0.1, "y": 0.1, "width": 0.5, "height": 0.8},
            "distinctiveFeatures": ["round glasses", "curly red hair"],
        },
        {
            "description": "golden retriever sitting on the grass",
            "boundingBox": {"x": 0.7, "y": 0.7, "width": 0.2, "height": 0.2},
            "distinctiveFeatures": [],
        },
    ],
    "background": {
        "description": "a sunny park",
        "complexity": 4,
        "keyElements": ["oak tree", "park bench"],
    },
    "preservationPriorities": ["woman's face", "glasses"],
    "simplificationTargets": [
        {"element": "leaves", "reason": "repetitive pattern", "applicableComplexity": ["toddler", "child"]},
    ],
}

EMPTY_LANDSCAPE_ANALYSIS = {
    "photoType": "landscape",
    "subjects": [],
    "background": {"description": "misty mountains at dawn", "complexity": 7, "keyElements": []},
    "preservationPriorities": [],
    "simplificationTargets": [],
}


class FakeStatusWriter:
    def __init__(self):
        self.messages = []

    def write(self, msg):
        self.messages.append(msg)


@pytest.fixture
def portrait_analysis_dict() -> dict:
    return copy.deepcopy(PORTRAIT_ANALYSIS)


@pytest.fixture
def rich_analysis() -> RichAnalysis:
    return RichAnalysis.model_validate(PORTRAIT_ANALYSIS)


@pytest.fixture
def empty_landscape_analysis() -> RichAnalysis:
    return RichAnalysis.model_validate(EMPTY_LANDSCAPE_ANALYSIS)


@pytest.fixture
def status_writer() -> FakeStatusWriter:
    return FakeStatusWriter()


def make_image_bytes(width: int = 64, height: int = 48, fmt: str = "PNG", mode: str = "RGB") -> bytes:
    """A gray gradient with a dark rectangle outline and a few specks."""
    img = Image.new(mode, (width, height), "white")
    draw = ImageDraw.Draw(img)
    for x in range(width):
        shade = int(255 * x / max(1, width - 1))
        fill = shade if mode == "L" else (shade, shade, shade)
        draw.line([(x, 0), (x, height // 4)], fill=fill)
    outline = 0 if mode == "L" else (10, 10, 10)
    draw.rectangle([width // 4, height // 3, 3 * width // 4, height - 4], outline=outline, width=2)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_factory():
    return make_image_bytes

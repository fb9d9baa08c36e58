"""
Utility functions for Coloring Studio.
"""

from __future__ import annotations

import base64
import logging
import os

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_ROOT_LOGGER = "coloring_studio"


def get_logger(name: str) -> logging.Logger:
    """
    Return a module logger under the shared ``coloring_studio`` hierarchy.

    The root package logger gets a single stream handler the first time any
    module asks for a logger; level comes from ``COLORING_LOG_LEVEL``.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT))
        root.addHandler(handler)
        level_name = os.getenv("COLORING_LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, level_name, logging.INFO))
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def infer_mime_type(data: bytes) -> str:
    """Guess an image media type from its magic bytes (JPEG when unknown)."""
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[:4] == b"\x89PNG":
        return "image/png"
    if data[:3] == b"GIF":
        return "image/gif"
    if data[:4] == b"RIFF":
        return "image/webp"
    return "image/jpeg"


def extension_for_mime(mime: str) -> str:
    return {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/gif": "gif",
        "image/webp": "webp",
    }.get(mime, "png")


def to_data_uri(data: bytes, mime: str | None = None) -> str:
    """Encode raw image bytes as a base64 data URI usable in place of an image URL."""
    mime = mime or infer_mime_type(data)
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def strip_code_fences(blob: str) -> str:
    """
    Strip markdown code fences (and a leading ``json`` tag) around model output.

    Args:
        blob: Raw model text, possibly wrapped in ```json ... ```

    Returns:
        The inner text, stripped
    """
    if not blob:
        return ""
    text = blob.strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1].strip()
    if text.lower().startswith("json"):
        text = text[4:].strip()
    return text

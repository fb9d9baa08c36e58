"""
Gemini API client initialization and configuration.
"""

from __future__ import annotations

import os
from typing import Optional

from google import genai
from google.genai import types as genai_types

from .utils import get_logger

logger = get_logger("gemini_client")


def get_api_key() -> Optional[str]:
    # Prefer official GEMINI_API_KEY; fall back to GOOGLE_GENAI_API_KEY.
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_GENAI_API_KEY")


def get_genai_client() -> Optional[genai.Client]:
    """
    Initialize and return Gemini API client.

    Returns:
        genai.Client instance or None if no API key is configured
    """
    api_key = get_api_key()
    if not api_key:
        return None
    return genai.Client(api_key=api_key)


def get_thinking_config() -> Optional[genai_types.ThinkingConfig]:
    """
    Get thinking configuration from GEMINI_THINK_BUDGET.

    Returns:
        ThinkingConfig instance or None if unset or not an integer
    """
    budget = os.getenv("GEMINI_THINK_BUDGET")
    if budget is None:
        return None
    try:
        budget_val = int(budget)
    except ValueError:
        logger.warning(f"Ignoring non-integer GEMINI_THINK_BUDGET={budget!r}")
        return None
    return genai_types.ThinkingConfig(thinking_budget=budget_val)


def get_model_name() -> str:
    """Gemini model name from environment or the default."""
    return os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

"""
Stage-tagged pipeline errors.
"""

from __future__ import annotations

from typing import Optional


class PipelineStage:
    ANALYSIS = "analysis"
    GENERATION = "generation"
    POST_PROCESSING = "post-processing"

    ALL = (ANALYSIS, GENERATION, POST_PROCESSING)


class PipelineError(Exception):
    """Raised when a service-boundary step of the pipeline fails."""

    def __init__(self, message: str, stage: str, cause: Optional[BaseException] = None):
        if stage not in PipelineStage.ALL:
            raise ValueError(f"Unknown pipeline stage: {stage}")
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"PipelineError(stage={self.stage!r}, message={self.message!r})"

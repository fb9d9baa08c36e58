"""
Batch run records.

A BatchRun is built up by the orchestrator, one BatchResult per
(model, complexity, variant) iteration, and persisted as ``metadata.json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .pipeline_types import AnalysisResult, GenerationResult
from .schemas import RichAnalysis


@dataclass
class BatchResult:
    model: str
    model_label: str
    complexity: str
    variant: str
    output_file_name: str
    generation: GenerationResult
    timings: Dict[str, int] = field(default_factory=lambda: {"generation_ms": 0, "post_process_ms": 0})
    ratings: Dict[str, int] = field(default_factory=dict)
    metrics: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        data = {
            "model": self.model,
            "model_label": self.model_label,
            "complexity": self.complexity,
            "variant": self.variant,
            "output_file_name": self.output_file_name,
            "generation": self.generation.to_dict(),
            "timings": dict(self.timings),
            "ratings": dict(self.ratings),
            "metrics": dict(self.metrics),
        }
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BatchResult":
        return cls(
            model=data["model"],
            model_label=data.get("model_label", data["model"]),
            complexity=data["complexity"],
            variant=data["variant"],
            output_file_name=data["output_file_name"],
            generation=GenerationResult.from_dict(data.get("generation") or {}),
            timings=dict(data.get("timings") or {}),
            ratings=dict(data.get("ratings") or {}),
            metrics=dict(data.get("metrics") or {}),
            error=data.get("error"),
        )


@dataclass
class BatchRun:
    id: str
    timestamp: str
    input_file_name: str
    total_iterations: int
    completed_iterations: int = 0
    failed_iterations: int = 0
    results: List[BatchResult] = field(default_factory=list)

    def record(self, result: BatchResult) -> None:
        """Append one iteration outcome and update the counters."""
        self.results.append(result)
        if result.succeeded:
            self.completed_iterations += 1
        else:
            self.failed_iterations += 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "input_file_name": self.input_file_name,
            "total_iterations": self.total_iterations,
            "completed_iterations": self.completed_iterations,
            "failed_iterations": self.failed_iterations,
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BatchRun":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            input_file_name=data.get("input_file_name", ""),
            total_iterations=int(data["total_iterations"]),
            completed_iterations=int(data.get("completed_iterations", 0)),
            failed_iterations=int(data.get("failed_iterations", 0)),
            results=[BatchResult.from_dict(r) for r in data.get("results") or []],
        )


@dataclass(frozen=True)
class BatchAnalysis:
    """Contents of a run's ``analysis.json``."""

    rich_analysis: RichAnalysis
    analysis_result: AnalysisResult
    timing_ms: int

    def to_dict(self) -> dict:
        return {
            "rich_analysis": self.rich_analysis.to_dict(),
            "analysis_result": self.analysis_result.to_dict(),
            "timing_ms": self.timing_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BatchAnalysis":
        return cls(
            rich_analysis=RichAnalysis.model_validate(data["rich_analysis"]),
            analysis_result=AnalysisResult.from_dict(data["analysis_result"]),
            timing_ms=int(data.get("timing_ms", 0)),
        )


@dataclass(frozen=True)
class BatchRunSummary:
    id: str
    timestamp: str
    input_file_name: str
    total_iterations: int
    completed_iterations: int
    failed_iterations: int
    has_ratings: bool

    @classmethod
    def from_run(cls, run: BatchRun) -> "BatchRunSummary":
        return cls(
            id=run.id,
            timestamp=run.timestamp,
            input_file_name=run.input_file_name,
            total_iterations=run.total_iterations,
            completed_iterations=run.completed_iterations,
            failed_iterations=run.failed_iterations,
            has_ratings=any(r.ratings for r in run.results),
        )

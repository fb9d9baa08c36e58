"""
Batch artifact storage on the local filesystem.

Layout, per run::

    {root}/{run_id}/input.{ext}
    {root}/{run_id}/analysis.json
    {root}/{run_id}/metadata.json
    {root}/{run_id}/outputs/{output_file_name}

plus ``{root}/run-log.jsonl`` for single-configuration test runs.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from .batch_run import BatchAnalysis, BatchRun, BatchRunSummary
from .config import MAX_RATING, MIN_RATING, QUALITY_CRITERIA, get_results_dir
from .utils import extension_for_mime, get_logger

logger = get_logger("batch_storage")

ANALYSIS_FILE = "analysis.json"
METADATA_FILE = "metadata.json"
OUTPUTS_DIR = "outputs"
RUN_LOG_FILE = "run-log.jsonl"

_CRITERIA_KEYS = tuple(key for key, _ in QUALITY_CRITERIA)


def validate_ratings(ratings: Dict[str, int]) -> None:
    """Raise ValueError unless every criterion is known and every score is an int in range."""
    for criterion, score in ratings.items():
        if criterion not in _CRITERIA_KEYS:
            raise ValueError(f"Unknown rating criterion: {criterion}")
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValueError(f"Rating for {criterion} must be an integer, got {score!r}")
        if not MIN_RATING <= score <= MAX_RATING:
            raise ValueError(f"Rating for {criterion} must be within {MIN_RATING}-{MAX_RATING}, got {score}")


def _write_json(path: Path, payload: dict) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    os.replace(tmp, path)


def _read_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class BatchStorage:
    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root if root is not None else get_results_dir())

    def run_dir(self, run_id: str) -> Path:
        return self.root / run_id

    def outputs_dir(self, run_id: str) -> Path:
        return self.run_dir(run_id) / OUTPUTS_DIR

    # ---------- Writes ----------
    def init_batch_dir(self, run_id: str) -> Path:
        path = self.run_dir(run_id)
        (path / OUTPUTS_DIR).mkdir(parents=True, exist_ok=True)
        return path

    def save_input_image(self, run_id: str, data: bytes, mime: str) -> str:
        """Store the source photo; returns its file name."""
        file_name = f"input.{extension_for_mime(mime)}"
        (self.run_dir(run_id) / file_name).write_bytes(data)
        return file_name

    def save_output_image(self, run_id: str, file_name: str, data: bytes) -> Path:
        path = self.outputs_dir(run_id) / file_name
        path.write_bytes(data)
        return path

    def save_analysis(self, run_id: str, analysis: BatchAnalysis) -> None:
        _write_json(self.run_dir(run_id) / ANALYSIS_FILE, analysis.to_dict())

    def save_metadata(self, run: BatchRun) -> None:
        _write_json(self.run_dir(run.id) / METADATA_FILE, run.to_dict())

    def append_run_log(self, entry: dict) -> Path:
        """Append one single-run record as a JSON line."""
        self.root.mkdir(parents=True, exist_ok=True)
        record = dict(entry)
        record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        path = self.root / RUN_LOG_FILE
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")
        return path

    # ---------- Reads ----------
    def load_metadata(self, run_id: str) -> BatchRun:
        return BatchRun.from_dict(_read_json(self.run_dir(run_id) / METADATA_FILE))

    def load_analysis(self, run_id: str) -> BatchAnalysis:
        return BatchAnalysis.from_dict(_read_json(self.run_dir(run_id) / ANALYSIS_FILE))

    def list_batch_runs(self) -> List[BatchRunSummary]:
        """Summaries of every stored run, newest first."""
        if not self.root.is_dir():
            return []
        summaries = []
        for entry in self.root.iterdir():
            if not entry.is_dir():
                continue
            try:
                run = self.load_metadata(entry.name)
            except FileNotFoundError:
                continue
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning(f"Skipping {entry.name}: unreadable metadata ({exc})")
                continue
            summaries.append(BatchRunSummary.from_run(run))
        summaries.sort(key=lambda s: s.timestamp, reverse=True)
        return summaries

    # ---------- Ratings ----------
    def update_ratings(self, run_id: str, ratings: Dict[str, Dict[str, int]]) -> BatchRun:
        """
        Merge per-output ratings into a stored run and persist it.

        Args:
            run_id: Batch run id
            ratings: {output_file_name: {criterion: score}}; unknown file names are ignored

        Returns:
            The updated BatchRun
        """
        run = self.load_metadata(run_id)
        known = {r.output_file_name for r in run.results}
        ratings = {name: scores for name, scores in ratings.items() if name in known}
        for scores in ratings.values():
            validate_ratings(scores)

        matched = 0
        for result in run.results:
            scores = ratings.get(result.output_file_name)
            if scores:
                result.ratings.update(scores)
                matched += 1
        self.save_metadata(run)
        logger.info(f"Updated ratings for {matched} result(s) in run {run_id}")
        return run

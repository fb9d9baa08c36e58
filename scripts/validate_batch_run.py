#!/usr/bin/env python3
"""
Validate that a stored batch run directory is complete and consistent.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path


REQUIRED_FILES = ("metadata.json", "analysis.json")
ANALYSIS_KEYS = ("rich_analysis", "analysis_result", "timing_ms")


def _fail(msg: str) -> int:
    print(f"ERROR: {msg}", file=sys.stderr)
    return 1


def _load(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        return _fail("Usage: validate_batch_run.py <run_dir>")
    run_dir = Path(argv[1])
    if not run_dir.is_dir():
        return _fail(f"Run directory not found: {run_dir}")

    docs = {}
    for name in REQUIRED_FILES:
        path = run_dir / name
        if not path.exists():
            return _fail(f"Missing {name} in {run_dir}")
        try:
            docs[name] = _load(path)
        except (OSError, ValueError) as exc:
            return _fail(f"Failed to parse JSON: {path} ({exc})")

    analysis = docs["analysis.json"]
    missing_keys = [k for k in ANALYSIS_KEYS if not isinstance(analysis, dict) or k not in analysis]
    if missing_keys:
        return _fail(f"analysis.json missing keys: {', '.join(missing_keys)}")

    meta = docs["metadata.json"]
    if not isinstance(meta, dict):
        return _fail("metadata.json must be an object")
    results = meta.get("results") or []
    try:
        total = int(meta["total_iterations"])
        completed = int(meta["completed_iterations"])
        failed = int(meta["failed_iterations"])
    except (KeyError, TypeError, ValueError) as exc:
        return _fail(f"metadata.json has invalid iteration counts ({exc})")

    problems: list[str] = []
    if completed + failed != total:
        problems.append(f"completed ({completed}) + failed ({failed}) != total ({total})")
    if len(results) != total:
        problems.append(f"{len(results)} result(s) recorded, expected {total}")

    errored = sum(1 for r in results if r.get("error"))
    if errored != failed:
        problems.append(f"{errored} result(s) carry an error, metadata says {failed} failed")

    outputs_dir = run_dir / "outputs"
    for r in results:
        if r.get("error"):
            continue
        file_name = r.get("output_file_name")
        if not file_name or not (outputs_dir / file_name).is_file():
            problems.append(f"missing output for successful result: {file_name}")

    if problems:
        return _fail("Batch run inconsistent:\n- " + "\n- ".join(problems))

    print(f"OK: batch run {meta.get('id', run_dir.name)} is consistent ({completed}/{total} completed): {run_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))

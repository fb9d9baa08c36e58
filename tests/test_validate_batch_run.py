"""Tests for scripts/validate_batch_run.py."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "validate_batch_run.py"


@pytest.fixture(scope="module")
def validator():
    spec = importlib.util.spec_from_file_location("validate_batch_run", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def run_dir(tmp_path):
    path = tmp_path / "abcd1234-1700000000000"
    (path / "outputs").mkdir(parents=True)
    (path / "outputs" / "child--direct-transform--fast-sdxl.png").write_bytes(b"png")
    (path / "analysis.json").write_text(json.dumps({"rich_analysis": {}, "analysis_result": {}, "timing_ms": 12}))
    (path / "metadata.json").write_text(json.dumps({
        "id": path.name,
        "total_iterations": 2,
        "completed_iterations": 1,
        "failed_iterations": 1,
        "results": [
            {"output_file_name": "child--direct-transform--fast-sdxl.png"},
            {"output_file_name": "adult--direct-transform--fast-sdxl.png", "error": "generation: boom"},
        ],
    }))
    return path


def test_consistent_run(validator, run_dir, capsys):
    assert validator.main(["validate", str(run_dir)]) == 0
    assert capsys.readouterr().out.startswith("OK:")


def test_missing_output(validator, run_dir, capsys):
    (run_dir / "outputs" / "child--direct-transform--fast-sdxl.png").unlink()
    assert validator.main(["validate", str(run_dir)]) == 1
    assert "missing output" in capsys.readouterr().err


def test_bad_accounting(validator, run_dir):
    meta = json.loads((run_dir / "metadata.json").read_text())
    meta["completed_iterations"] = 2
    (run_dir / "metadata.json").write_text(json.dumps(meta))
    assert validator.main(["validate", str(run_dir)]) == 1


def test_missing_analysis(validator, run_dir, capsys):
    (run_dir / "analysis.json").unlink()
    assert validator.main(["validate", str(run_dir)]) == 1
    assert capsys.readouterr().err.startswith("ERROR:")

"""Tests for batch artifact storage, ratings and listing."""

from __future__ import annotations

import json

import pytest

from coloring_studio.batch_run import BatchResult, BatchRun
from coloring_studio.batch_storage import BatchStorage
from coloring_studio.pipeline_types import GenerationResult


def _result(file_name, error=None, ratings=None):
    return BatchResult(
        model="fal-ai/fast-sdxl",
        model_label="Fast SDXL (text-to-image)",
        complexity="child",
        variant="direct-transform",
        output_file_name=file_name,
        generation=GenerationResult.empty("fal-ai/fast-sdxl"),
        ratings=dict(ratings or {}),
        error=error,
    )


def _run(run_id, timestamp, results=()):
    run = BatchRun(id=run_id, timestamp=timestamp, input_file_name="in.jpg", total_iterations=len(results))
    for r in results:
        run.record(r)
    return run


@pytest.fixture
def storage(tmp_path):
    return BatchStorage(tmp_path)


@pytest.fixture
def stored_run(storage):
    run = _run("aaaa1111-1", "2026-01-01T00:00:00+00:00", [_result("a.png"), _result("b.png", error="generation: x")])
    storage.init_batch_dir(run.id)
    storage.save_metadata(run)
    return run


class TestRatings:
    def test_merge(self, storage, stored_run):
        storage.update_ratings(stored_run.id, {"a.png": {"overall": 4}})
        updated = storage.update_ratings(stored_run.id, {"a.png": {"lineClarity": 5, "overall": 3}})

        assert updated.results[0].ratings == {"overall": 3, "lineClarity": 5}
        assert storage.load_metadata(stored_run.id).results[0].ratings == {"overall": 3, "lineClarity": 5}

    def test_unknown_file_names_ignored(self, storage, stored_run):
        updated = storage.update_ratings(stored_run.id, {"missing.png": {"overall": 5}})
        assert all(r.ratings == {} for r in updated.results)

    @pytest.mark.parametrize("score", [0, 6, 3.5, "4", True])
    def test_invalid_scores(self, storage, stored_run, score):
        with pytest.raises(ValueError):
            storage.update_ratings(stored_run.id, {"a.png": {"overall": score}})
        assert storage.load_metadata(stored_run.id).results[0].ratings == {}

    def test_unknown_file_name_with_bad_score_is_ignored(self, storage, stored_run):
        updated = storage.update_ratings(stored_run.id, {"a.png": {"overall": 4}, "stale.png": {"overall": 0}})

        assert updated.results[0].ratings == {"overall": 4}
        assert storage.load_metadata(stored_run.id).results[0].ratings == {"overall": 4}

    def test_unknown_criterion(self, storage, stored_run):
        with pytest.raises(ValueError):
            storage.update_ratings(stored_run.id, {"a.png": {"vibes": 3}})


class TestListing:
    def test_newest_first_and_skips_invalid(self, storage, tmp_path):
        older = _run("old00000-1", "2026-01-01T00:00:00+00:00", [_result("a.png")])
        newer = _run("new00000-2", "2026-02-01T00:00:00+00:00", [_result("a.png", ratings={"overall": 2})])
        for run in (older, newer):
            storage.init_batch_dir(run.id)
            storage.save_metadata(run)
        (tmp_path / "broken").mkdir()
        (tmp_path / "broken" / "metadata.json").write_text("{not json")
        (tmp_path / "empty").mkdir()

        summaries = storage.list_batch_runs()

        assert [s.id for s in summaries] == ["new00000-2", "old00000-1"]
        assert summaries[0].has_ratings is True
        assert summaries[1].has_ratings is False

    def test_missing_root(self, tmp_path):
        assert BatchStorage(tmp_path / "nope").list_batch_runs() == []


class TestRunLog:
    def test_append_lines(self, storage, tmp_path):
        storage.append_run_log({"model": "fal-ai/fast-sdxl", "complexity": "child"})
        storage.append_run_log({"model": "fal-ai/nano-banana/edit", "complexity": "adult"})

        lines = (tmp_path / "run-log.jsonl").read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["model"] == "fal-ai/fast-sdxl"
        assert "timestamp" in first


class TestFiles:
    def test_input_extension_from_mime(self, storage):
        storage.init_batch_dir("r1")
        assert storage.save_input_image("r1", b"\xff\xd8data", "image/jpeg") == "input.jpg"
        assert (storage.run_dir("r1") / "input.jpg").read_bytes() == b"\xff\xd8data"

"""Tests for the fal.ai queue client (network replaced with fakes)."""

from __future__ import annotations

import pytest
import requests

from coloring_studio import fal_client
from coloring_studio.errors import PipelineError
from coloring_studio.fal_client import call_image_edit, call_image_generation

STATUS_URL = "https://queue.test/requests/abc/status"
RESPONSE_URL = "https://queue.test/requests/abc"


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        return self.payload


class FakeQueue:
    """Scripted queue: submit, a sequence of statuses, then the result."""

    def __init__(self, statuses, result, submit_status=200):
        self.statuses = list(statuses)
        self.result = result
        self.submit_status = submit_status
        self.posts = []
        self.gets = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers})
        return FakeResponse(
            {"request_id": "abcdef123456", "status_url": STATUS_URL, "response_url": RESPONSE_URL},
            status_code=self.submit_status,
        )

    def get(self, url, headers=None, timeout=None):
        self.gets.append(url)
        if url == STATUS_URL:
            return FakeResponse(self.statuses.pop(0))
        return FakeResponse(self.result)


@pytest.fixture(autouse=True)
def fal_env(monkeypatch):
    monkeypatch.setenv("FAL_KEY", "test-key")
    monkeypatch.setenv("FAL_QUEUE_URL", "https://queue.test/")
    monkeypatch.setenv("FAL_MAX_WAIT", "6")
    monkeypatch.setenv("FAL_POLL_INTERVAL", "2")
    monkeypatch.setattr(fal_client.time, "sleep", lambda seconds: None)


def _install(monkeypatch, queue):
    monkeypatch.setattr(fal_client.requests, "post", queue.post)
    monkeypatch.setattr(fal_client.requests, "get", queue.get)


TEXT_TO_IMAGE_RESULT = {
    "images": [{"url": "https://cdn.test/out.png", "width": 1024, "height": 1024, "content_type": "image/png"}],
    "seed": 42,
    "prompt": "p",
}


class TestTextToImage:
    def test_polls_until_completed(self, monkeypatch):
        queue = FakeQueue(
            [{"status": "IN_QUEUE"}, {"status": "IN_PROGRESS"}, {"status": "COMPLETED"}],
            TEXT_TO_IMAGE_RESULT,
        )
        _install(monkeypatch, queue)
        response = call_image_generation("a prompt", "color, shading", num_inference_steps=30, seed=7)

        assert response.seed == 42
        assert response.images[0].url == "https://cdn.test/out.png"
        submit = queue.posts[0]
        assert submit["url"] == "https://queue.test/fal-ai/fast-sdxl"
        assert submit["headers"]["Authorization"] == "Key test-key"
        assert submit["json"]["negative_prompt"] == "color, shading"
        assert submit["json"]["num_inference_steps"] == 30
        assert submit["json"]["seed"] == 7
        assert queue.gets.count(STATUS_URL) == 3
        assert queue.gets[-1] == RESPONSE_URL

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("FAL_KEY")
        with pytest.raises(PipelineError) as excinfo:
            call_image_generation("p", "n")
        assert excinfo.value.stage == "generation"

    def test_http_error_carries_status_code(self, monkeypatch):
        _install(monkeypatch, FakeQueue([], TEXT_TO_IMAGE_RESULT, submit_status=422))
        with pytest.raises(PipelineError) as excinfo:
            call_image_generation("p", "n")
        assert excinfo.value.stage == "generation"
        assert "422" in excinfo.value.message

    def test_failed_job(self, monkeypatch):
        _install(monkeypatch, FakeQueue([{"status": "FAILED", "error": "nsfw"}], TEXT_TO_IMAGE_RESULT))
        with pytest.raises(PipelineError) as excinfo:
            call_image_generation("p", "n")
        assert "nsfw" in excinfo.value.message

    def test_timeout(self, monkeypatch):
        _install(monkeypatch, FakeQueue([{"status": "IN_QUEUE"}] * 10, TEXT_TO_IMAGE_RESULT))
        with pytest.raises(PipelineError) as excinfo:
            call_image_generation("p", "n")
        assert "timed out" in excinfo.value.message

    def test_schema_mismatch(self, monkeypatch):
        _install(monkeypatch, FakeQueue([{"status": "COMPLETED"}], {"images": [], "seed": 1}))
        with pytest.raises(PipelineError) as excinfo:
            call_image_generation("p", "n")
        assert excinfo.value.stage == "generation"


class TestEdit:
    def test_edit_payload(self, monkeypatch):
        queue = FakeQueue(
            [{"status": "COMPLETED"}],
            {"images": [{"url": "https://cdn.test/edit.png"}], "description": "done"},
        )
        _install(monkeypatch, queue)
        response = call_image_edit("fal-ai/nano-banana/edit", "make it line art", ["data:image/png;base64,AAAA"])

        assert response.images[0].url == "https://cdn.test/edit.png"
        assert response.description == "done"
        submit = queue.posts[0]
        assert submit["url"] == "https://queue.test/fal-ai/nano-banana/edit"
        assert submit["json"]["image_urls"] == ["data:image/png;base64,AAAA"]
        assert "negative_prompt" not in submit["json"]

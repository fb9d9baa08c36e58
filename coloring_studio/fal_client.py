"""
fal.ai API Client - submit queue jobs for coloring page generation and
collect their results.

Uses the queue REST protocol directly:
    POST {FAL_QUEUE_URL}/{model}        -> request_id, status_url, response_url
    GET  status_url (poll)              -> IN_QUEUE | IN_PROGRESS | COMPLETED
    GET  response_url                   -> model output JSON
"""

from __future__ import annotations

import os
import time
from typing import List, Optional

import requests
from pydantic import ValidationError

from .errors import PipelineError, PipelineStage
from .schemas import EditImageResponse, TextToImageResponse
from .utils import get_logger

logger = get_logger("fal_client")

DEFAULT_QUEUE_URL = "https://queue.fal.run"
PENDING_STATUSES = ("IN_QUEUE", "IN_PROGRESS")
REQUEST_TIMEOUT = 30


def _generation_error(message: str, cause: Optional[BaseException] = None) -> PipelineError:
    return PipelineError(message, PipelineStage.GENERATION, cause)


def _queue_base_url() -> str:
    return os.getenv("FAL_QUEUE_URL", DEFAULT_QUEUE_URL).rstrip("/")


def _auth_headers() -> dict:
    api_key = os.getenv("FAL_KEY", "").strip()
    if not api_key:
        raise _generation_error("FAL_KEY not set in environment")
    return {"Authorization": f"Key {api_key}", "Content-Type": "application/json"}


def _describe_request_error(exc: requests.exceptions.RequestException) -> str:
    response = getattr(exc, "response", None)
    if response is not None:
        return f"HTTP {response.status_code}: {response.text[:300]}"
    return str(exc)


def _run_fal_job(model: str, arguments: dict, status_writer=None) -> dict:
    """
    Submit one job to the fal queue, wait for it, and return its output JSON.

    Raises:
        PipelineError: stage "generation" for HTTP errors, timeouts and failed jobs
    """
    def log(msg):
        if status_writer:
            status_writer.write(msg)
        logger.info(msg)

    headers = _auth_headers()
    max_wait = float(os.getenv("FAL_MAX_WAIT", "240"))
    poll_interval = float(os.getenv("FAL_POLL_INTERVAL", "2"))

    try:
        # Step 1: Submit job
        submit_resp = requests.post(
            f"{_queue_base_url()}/{model}",
            json=arguments,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
        submit_resp.raise_for_status()
        submit_data = submit_resp.json()
        request_id = submit_data.get("request_id")
        status_url = submit_data.get("status_url")
        response_url = submit_data.get("response_url")
        if not (request_id and status_url and response_url):
            raise _generation_error(f"fal submission for {model} returned no request handle")
        log(f"Submitted {model} job (ID: {request_id[:8]}...)")

        # Step 2: Poll until the job leaves the queue
        elapsed = 0.0
        while True:
            status_resp = requests.get(status_url, headers=headers, timeout=REQUEST_TIMEOUT)
            status_resp.raise_for_status()
            status_data = status_resp.json()
            status = status_data.get("status")
            if status == "COMPLETED":
                if status_data.get("error"):
                    raise _generation_error(f"fal job {request_id} failed: {status_data['error']}")
                break
            if status not in PENDING_STATUSES:
                detail = status_data.get("error") or status
                raise _generation_error(f"fal job {request_id} failed: {detail}")
            if elapsed >= max_wait:
                raise _generation_error(f"fal job {request_id} timed out after {int(max_wait)}s")
            time.sleep(poll_interval)
            elapsed += poll_interval
            if elapsed % 10 == 0:
                log(f"Still processing {model}... ({int(elapsed)}s/{int(max_wait)}s)")

        # Step 3: Fetch result
        result_resp = requests.get(response_url, headers=headers, timeout=REQUEST_TIMEOUT)
        result_resp.raise_for_status()
        return result_resp.json()

    except requests.exceptions.RequestException as exc:
        message = f"fal API error for {model}: {_describe_request_error(exc)}"
        logger.error(message)
        raise _generation_error(message, exc) from exc
    except ValueError as exc:
        # Body was not JSON
        raise _generation_error(f"fal returned an unreadable response for {model}: {exc}", exc) from exc


def call_image_generation(
    prompt: str,
    negative_prompt: str,
    image_size: str = "square_hd",
    num_inference_steps: int = 25,
    guidance_scale: float = 7.5,
    seed: Optional[int] = None,
    model: str = "fal-ai/fast-sdxl",
    status_writer=None,
) -> TextToImageResponse:
    """Text-to-image generation (prompt plus negative prompt)."""
    arguments = {
        "prompt": prompt,
        "negative_prompt": negative_prompt,
        "image_size": image_size,
        "num_inference_steps": num_inference_steps,
        "guidance_scale": guidance_scale,
        "num_images": 1,
        "enable_safety_checker": True,
        "format": "png",
    }
    if seed is not None:
        arguments["seed"] = seed

    data = _run_fal_job(model, arguments, status_writer)
    try:
        return TextToImageResponse.model_validate(data)
    except ValidationError as exc:
        raise _generation_error(f"Unexpected response from {model}: {exc}", exc) from exc


def call_image_edit(
    model: str,
    prompt: str,
    image_urls: List[str],
    output_format: str = "png",
    status_writer=None,
) -> EditImageResponse:
    """
    Image-to-image edit generation.

    Edit endpoints take no negative prompt; callers fold negatives into
    ``prompt`` (see prompt_engineer.compose_for_edit).
    """
    arguments = {
        "prompt": prompt,
        "image_urls": list(image_urls),
        "num_images": 1,
        "output_format": output_format,
    }
    data = _run_fal_job(model, arguments, status_writer)
    try:
        return EditImageResponse.model_validate(data)
    except ValidationError as exc:
        raise _generation_error(f"Unexpected response from {model}: {exc}", exc) from exc

"""
Batch Orchestrator - runs one analysis, then every (model, complexity,
variant) combination against it.

Phases: init -> analyzing -> generating -> done. ``error`` is reachable only
before generation starts: without an analysis no iteration is attempted.
Once generating, each iteration is isolated and a failure is recorded on its
BatchResult while the loop carries on.
"""

from __future__ import annotations

import re
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .analysis_normalizer import normalize
from .batch_run import BatchAnalysis, BatchResult, BatchRun
from .batch_storage import BatchStorage
from .config import BATCH_COMPLEXITY_LEVELS, BATCH_VARIANTS, COMPLEXITY_LEVELS, PROMPT_VARIANTS
from .errors import PipelineError, PipelineStage
from .generation_models import model_label
from .line_quality_analyzer import analyze_line_art
from .pipeline_types import AnalysisResult, GenerationResult
from .schemas import RichAnalysis
from .utils import get_logger, infer_mime_type, to_data_uri

logger = get_logger("batch_orchestrator")

AnalysisProvider = Callable[[bytes, str], RichAnalysis]
GenerationCaller = Callable[[str, str, str, str, Optional[AnalysisResult]], GenerationResult]
PostProcessorFn = Callable[[str], bytes]

SORT_MODES = ("model-complexity-variant", "variant-model-complexity")


class BatchPhase:
    INIT = "init"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


# ---------- Naming ----------
def model_slug(model: str) -> str:
    """'fal-ai/gpt-image-1.5/edit' -> 'gpt-image-1-5'."""
    slug = model[: -len("/edit")] if model.endswith("/edit") else model
    if "/" in slug:
        slug = slug.split("/", 1)[1]
    return re.sub(r"[^a-z0-9-]", "-", slug)


def build_output_file_name(complexity: str, variant: str, model: str) -> str:
    return f"{complexity}--{variant}--{model_slug(model)}.png"


def new_batch_id() -> str:
    return f"{uuid.uuid4().hex[:8]}-{int(time.time() * 1000)}"


def format_iteration_error(exc: BaseException) -> str:
    if isinstance(exc, PipelineError):
        return f"{exc.stage}: {exc.message}"
    return f"{type(exc).__name__}: {exc}"


def _rank(vocabulary: Sequence[str], value: str) -> int:
    return vocabulary.index(value) if value in vocabulary else len(vocabulary)


def sort_results(results: Sequence[BatchResult], mode: str = "model-complexity-variant") -> List[BatchResult]:
    """Return a sorted copy for presentation; run order is left untouched."""
    if mode == "model-complexity-variant":
        def key(r):
            return (r.model, _rank(COMPLEXITY_LEVELS, r.complexity), _rank(PROMPT_VARIANTS, r.variant))
    elif mode == "variant-model-complexity":
        def key(r):
            return (_rank(PROMPT_VARIANTS, r.variant), r.model, _rank(COMPLEXITY_LEVELS, r.complexity))
    else:
        raise ValueError(f"Unknown sort mode: {mode} (expected one of {', '.join(SORT_MODES)})")
    return sorted(results, key=key)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class BatchOrchestrator:
    """
    Drives a full batch.

    Args:
        analysis_provider: (image_bytes, mime) -> RichAnalysis
        generation_caller: (image_url, model, complexity, variant, analysis) -> GenerationResult
        post_processor: image URL -> encoded line-art bytes
        storage: Optional BatchStorage for artifacts
        status_writer: Optional object with ``.write(msg)`` for progress messages
    """

    def __init__(
        self,
        analysis_provider: AnalysisProvider,
        generation_caller: GenerationCaller,
        post_processor: PostProcessorFn,
        storage: Optional[BatchStorage] = None,
        status_writer=None,
    ):
        self.analysis_provider = analysis_provider
        self.generation_caller = generation_caller
        self.post_processor = post_processor
        self.storage = storage
        self.status_writer = status_writer
        self.phase = BatchPhase.INIT

    def log(self, msg: str) -> None:
        if self.status_writer:
            self.status_writer.write(msg)
        logger.info(msg)

    def run(
        self,
        input_image: bytes,
        models: Sequence[str],
        complexities: Sequence[str] = BATCH_COMPLEXITY_LEVELS,
        variants: Sequence[str] = BATCH_VARIANTS,
        input_file_name: str = "input.png",
    ) -> BatchRun:
        self.phase = BatchPhase.INIT
        run = BatchRun(
            id=new_batch_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            input_file_name=input_file_name,
            total_iterations=len(models) * len(complexities) * len(variants),
        )
        mime = infer_mime_type(input_image)
        self.log(f"Batch {run.id}: {run.total_iterations} iteration(s) planned")

        try:
            if self.storage:
                self.storage.init_batch_dir(run.id)
                self.storage.save_input_image(run.id, input_image, mime)
            analysis = self._analyze(run, input_image, mime)
        except Exception:
            self.phase = BatchPhase.ERROR
            raise

        self.phase = BatchPhase.GENERATING
        image_url = to_data_uri(input_image, mime)
        index = 0
        for model in models:
            for complexity in complexities:
                for variant in variants:
                    index += 1
                    self.log(f"[{index}/{run.total_iterations}] {model} | {complexity} | {variant}")
                    result = self._run_iteration(run.id, image_url, model, complexity, variant, analysis)
                    run.record(result)
                    self._checkpoint(run)

        self.phase = BatchPhase.DONE
        self.log(
            f"Batch {run.id} done: {run.completed_iterations} completed, "
            f"{run.failed_iterations} failed of {run.total_iterations}"
        )
        if self.storage:
            self.storage.save_metadata(run)
        return run

    def _checkpoint(self, run: BatchRun) -> None:
        """Incremental metadata save; the final save after the loop is authoritative."""
        if not self.storage:
            return
        try:
            self.storage.save_metadata(run)
        except OSError as exc:
            logger.warning(f"Batch {run.id}: metadata checkpoint failed ({exc})")

    def _analyze(self, run: BatchRun, input_image: bytes, mime: str) -> AnalysisResult:
        self.phase = BatchPhase.ANALYZING
        self.log("Analyzing input image...")
        start = time.perf_counter()
        try:
            rich = self.analysis_provider(input_image, mime)
            analysis = normalize(rich)
        except PipelineError as exc:
            logger.error(f"Batch {run.id} aborted: {exc.message}")
            raise
        except Exception as exc:
            logger.error(f"Batch {run.id} aborted: {exc}")
            raise PipelineError(f"Analysis failed: {exc}", PipelineStage.ANALYSIS, exc) from exc
        timing_ms = _elapsed_ms(start)
        self.log(f"Analysis complete ({timing_ms}ms, {len(analysis.elements)} elements)")

        if self.storage:
            self.storage.save_analysis(
                run.id,
                BatchAnalysis(rich_analysis=rich, analysis_result=analysis, timing_ms=timing_ms),
            )
        return analysis

    def _run_iteration(
        self,
        run_id: str,
        image_url: str,
        model: str,
        complexity: str,
        variant: str,
        analysis: AnalysisResult,
    ) -> BatchResult:
        file_name = build_output_file_name(complexity, variant, model)
        label = model_label(model)
        try:
            start = time.perf_counter()
            generation = self.generation_caller(image_url, model, complexity, variant, analysis)
            generation_ms = _elapsed_ms(start)

            start = time.perf_counter()
            line_art = self.post_processor(generation.image_url)
            try:
                metrics = analyze_line_art(line_art).to_dict()
            except (OSError, ValueError) as exc:
                raise PipelineError(
                    f"Line-art metrics failed: {exc}", PipelineStage.POST_PROCESSING, exc
                ) from exc
            post_process_ms = _elapsed_ms(start)

            if self.storage:
                self.storage.save_output_image(run_id, file_name, line_art)
        except Exception as exc:
            error = format_iteration_error(exc)
            logger.warning(f"Iteration failed ({model} | {complexity} | {variant}): {error}")
            return BatchResult(
                model=model,
                model_label=label,
                complexity=complexity,
                variant=variant,
                output_file_name=file_name,
                generation=GenerationResult.empty(model),
                error=error,
            )

        return BatchResult(
            model=model,
            model_label=label,
            complexity=complexity,
            variant=variant,
            output_file_name=file_name,
            generation=generation,
            timings={"generation_ms": generation_ms, "post_process_ms": post_process_ms},
            metrics=metrics,
        )

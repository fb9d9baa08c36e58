"""
Coloring Studio - photo to coloring page pipeline

This package contains the core modules for Coloring Studio:
- config: Complexity profiles, model registry entries, analysis prompts
- analysis_normalizer: RichAnalysis -> AnalysisResult mapping
- prompt_engineer: Variant- and complexity-specific prompts
- post_processor: Binarized line-art rendering
- visual_analyst: Gemini photo analysis
- fal_client / image_generator: fal.ai image generation
- batch_orchestrator / batch_storage: Batch test harness and artifacts
- pipeline: Single-image end-to-end run
"""

# Lazy imports keep `import coloring_studio` free of network client setup
__all__ = [
    # Config
    "COMPLEXITY_LEVELS",
    "PROMPT_VARIANTS",
    "COMPLEXITY_PROFILES",
    "get_complexity_profile",
    # Errors
    "PipelineError",
    "PipelineStage",
    # Core logic
    "normalize",
    "compose",
    "compose_for_edit",
    "get_inference_config",
    "PostProcessOptions",
    "process",
    "analyze_line_art",
    # Services
    "run_visual_analyst",
    "call_image_generation",
    "call_image_edit",
    "generate_coloring_page",
    "get_generation_models",
    # Batch
    "BatchOrchestrator",
    "BatchStorage",
    "BatchRun",
    "BatchResult",
    "sort_results",
    # Pipeline
    "PipelineOptions",
    "run_pipeline",
]

_EXPORTS = {
    "COMPLEXITY_LEVELS": ".config",
    "PROMPT_VARIANTS": ".config",
    "COMPLEXITY_PROFILES": ".config",
    "get_complexity_profile": ".config",
    "PipelineError": ".errors",
    "PipelineStage": ".errors",
    "normalize": ".analysis_normalizer",
    "compose": ".prompt_engineer",
    "compose_for_edit": ".prompt_engineer",
    "get_inference_config": ".prompt_engineer",
    "PostProcessOptions": ".post_processor",
    "process": ".post_processor",
    "analyze_line_art": ".line_quality_analyzer",
    "run_visual_analyst": ".visual_analyst",
    "call_image_generation": ".fal_client",
    "call_image_edit": ".fal_client",
    "generate_coloring_page": ".image_generator",
    "get_generation_models": ".generation_models",
    "BatchOrchestrator": ".batch_orchestrator",
    "sort_results": ".batch_orchestrator",
    "BatchStorage": ".batch_storage",
    "BatchRun": ".batch_run",
    "BatchResult": ".batch_run",
    "PipelineOptions": ".pipeline",
    "run_pipeline": ".pipeline",
}


def __getattr__(name):
    """Import exported names on demand."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    from importlib import import_module
    return getattr(import_module(module_name, __name__), name)

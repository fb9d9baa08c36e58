"""Tests for prompt composition."""

from __future__ import annotations

import pytest

from coloring_studio.analysis_normalizer import normalize
from coloring_studio.config import COMPLEXITY_LEVELS, PROMPT_VARIANTS
from coloring_studio.prompt_engineer import (
    BACKGROUND_INSTRUCTIONS,
    NEGATIVE_PROMPT,
    compose,
    compose_for_edit,
    get_inference_config,
)


@pytest.fixture
def analysis(rich_analysis):
    return normalize(rich_analysis)


class TestCompose:
    @pytest.mark.parametrize("variant", PROMPT_VARIANTS)
    @pytest.mark.parametrize("level", COMPLEXITY_LEVELS)
    def test_deterministic(self, variant, level, analysis):
        assert compose(variant, level, analysis) == compose(variant, level, analysis)

    def test_negative_prompt_shared(self, analysis):
        for variant in PROMPT_VARIANTS:
            assert compose(variant, "child", analysis).negative_prompt == NEGATIVE_PROMPT

    def test_negative_prompt_terms(self):
        terms = NEGATIVE_PROMPT.split(", ")
        assert len(terms) == 20
        assert terms[0] == "color"
        assert terms[-1] == "grain"

    def test_scene_and_face_blocks(self, analysis):
        prompt = compose("direct-transform", "child", analysis).prompt
        assert f"Scene: {analysis.scene_description}." in prompt
        assert "Main subjects: young woman with curly red hair and round glasses" in prompt
        assert "(top-left), features: round glasses, curly red hair" in prompt
        assert BACKGROUND_INSTRUCTIONS["simplify"] in prompt

    def test_complexity_profile_text(self, analysis):
        prompt = compose("direct-transform", "toddler", analysis).prompt
        assert "toddlers ages 2-4" in prompt
        assert "very thick, bold outlines" in prompt
        assert "Maximum 8-10 distinct regions" in prompt

    def test_preservation_heavy_clauses(self, analysis):
        prompt = compose("preservation-heavy", "adult", analysis).prompt
        assert "CRITICAL" in prompt
        assert "thinner lines for facial detail" in prompt
        assert "faces always retain full detail regardless of complexity level" in prompt

    def test_simplification_heavy_clauses(self, analysis):
        prompt = compose("simplification-heavy", "tween", analysis).prompt
        assert "single clean stroke" in prompt
        assert "no gaps" in prompt
        assert "fewer well-defined regions are better than many ambiguous ones" in prompt

    def test_no_analysis_fallbacks(self):
        assert "Simplify the background to minimal structural outlines." in compose(
            "direct-transform", "child").prompt
        assert "Simplify the background to keep focus on the people." in compose(
            "preservation-heavy", "child").prompt
        assert "Remove or heavily simplify the background." in compose(
            "simplification-heavy", "child").prompt

    def test_single_spaced_clauses(self, analysis):
        for variant in PROMPT_VARIANTS:
            prompt = compose(variant, "child", analysis).prompt
            assert "  " not in prompt
            assert prompt == prompt.strip()

    def test_analysis_not_mutated(self, analysis):
        before = analysis.to_dict()
        for variant in PROMPT_VARIANTS:
            compose(variant, "adult", analysis)
            compose_for_edit(variant, "adult", analysis)
        assert analysis.to_dict() == before

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            compose("freestyle", "child")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            compose("direct-transform", "infant")


class TestComposeForEdit:
    def test_folds_negative_prompt(self, analysis):
        prompt = compose("direct-transform", "child", analysis).prompt
        edit = compose_for_edit("direct-transform", "child", analysis)
        assert edit == f"{prompt} MUST NOT include: {NEGATIVE_PROMPT}."


class TestInferenceConfig:
    def test_values(self):
        assert get_inference_config("toddler").to_dict() == {"num_inference_steps": 20, "guidance_scale": 8.0}
        assert get_inference_config("adult").to_dict() == {"num_inference_steps": 35, "guidance_scale": 7.0}

    def test_steps_increase_guidance_never_increases(self):
        configs = [get_inference_config(level) for level in COMPLEXITY_LEVELS]
        for lower, higher in zip(configs, configs[1:]):
            assert higher.num_inference_steps > lower.num_inference_steps
            assert higher.guidance_scale <= lower.guidance_scale

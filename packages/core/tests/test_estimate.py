"""Tests for raw estimates and their normalization against the checklist score."""

import asyncio

import pytest

from ticketlens_core.codec import ContentCodec
from ticketlens_core.config import DEFAULT_CONFIG
from ticketlens_core.errors import InvalidInferenceResponse
from ticketlens_core.estimate import (
    Estimator,
    build_estimate_prompt,
    build_estimate_schema,
    nearest_point,
    normalize_estimate,
    parse_estimate,
    round_half_up,
)
from ticketlens_core.models import Estimate

SCALE = [1, 2, 3, 5, 8]
SETTINGS = DEFAULT_CONFIG["estimate"]


class TestNormalizeEstimate:
    def test_scenario(self):
        normalized = normalize_estimate(Estimate(model="m", confidence=80, story_points=5), 0.25, SCALE)
        assert normalized.confidence == 50
        assert normalized.story_points == 3

    def test_perfect_score_keeps_raw_values(self):
        normalized = normalize_estimate(Estimate(model="m", confidence=70, story_points=5), 1.0, SCALE)
        assert normalized.confidence == 70
        assert normalized.story_points == 5

    def test_zero_score_halves(self):
        normalized = normalize_estimate(Estimate(model="m", confidence=90, story_points=8), 0.0, SCALE)
        assert normalized.confidence == 45
        # 4 is equally far from 3 and 5
        assert normalized.story_points == 3

    def test_off_scale_raw_points_snap_to_scale(self):
        normalized = normalize_estimate(Estimate(model="m", confidence=50, story_points=13), 1.0, SCALE)
        assert normalized.story_points == 8


class TestRounding:
    @pytest.mark.parametrize("value, expected", [(50.0, 50), (50.5, 51), (2.5, 3), (49.49, 49), (0.5, 1)])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_tie_goes_to_earlier_scale_entry(self):
        assert nearest_point(2.5, SCALE) == 2
        assert nearest_point(4.0, SCALE) == 3

    def test_nearest_point(self):
        assert nearest_point(3.125, SCALE) == 3
        assert nearest_point(6.6, SCALE) == 8
        assert nearest_point(-4, SCALE) == 1


class TestBuilders:
    def test_schema_requires_numbers(self):
        schema = build_estimate_schema(SETTINGS)
        assert schema["required"] == ["confidence", "story_points"]
        assert schema["properties"]["confidence"]["type"] == "number"
        assert schema["properties"]["story_points"]["type"] == "number"

    def test_prompt_carries_scale_examples(self):
        prompt = build_estimate_prompt(SETTINGS, "DOCUMENT")
        assert "Configuration change" in prompt
        assert "points: 8" in prompt
        assert prompt.endswith("---\n\nDOCUMENT")


class TestParseEstimate:
    def test_parses_numbers(self):
        estimate = parse_estimate({"confidence": 80, "story_points": 5}, "m")
        assert estimate == Estimate(model="m", confidence=80, story_points=5)

    @pytest.mark.parametrize(
        "data",
        [
            {"confidence": 80},
            {"confidence": "high", "story_points": 5},
            {"confidence": True, "story_points": 5},
        ],
    )
    def test_invalid_answers_raise(self, data):
        with pytest.raises(InvalidInferenceResponse):
            parse_estimate(data, "m")


class TestEstimator:
    def test_estimate_requests_the_model(self, make_inference, ticket):
        inference = make_inference(answers={"estimate": '{"confidence": 60, "story_points": 3}'})
        estimator = Estimator(inference, ContentCodec("jira"), SETTINGS)

        estimate = asyncio.run(estimator.estimate(ticket, "mistral"))

        assert estimate == Estimate(model="mistral", confidence=60, story_points=3)
        assert estimator.scale == SCALE
        assert inference.calls[0][1] == "mistral"

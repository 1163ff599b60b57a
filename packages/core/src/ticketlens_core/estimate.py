from __future__ import annotations

import math
from typing import TYPE_CHECKING

import yaml

from ticketlens_core.errors import InvalidInferenceResponse
from ticketlens_core.models import Estimate, NormalizedEstimate, Ticket
from ticketlens_core.scoring import PROMPT_SEPARATOR

if TYPE_CHECKING:
    from ticketlens_core.codec import ContentCodec
    from ticketlens_core.providers.base import BaseInference


def build_estimate_schema(settings: dict) -> dict:
    return {
        "type": "object",
        "required": ["confidence", "story_points"],
        "properties": {
            "confidence": {"type": "number", "description": settings["confidence"]["description"]},
            "story_points": {"type": "number", "description": settings["story_points"]["description"]},
        },
    }


def build_estimate_prompt(settings: dict, document: str) -> str:
    story_points = settings["story_points"]
    instructions = yaml.safe_dump(
        {
            "comments": [story_points["comment"], settings["confidence"]["comment"]],
            "scale": story_points["scale"],
        },
        sort_keys=False,
        allow_unicode=True,
    )
    return "\n\n".join([instructions, PROMPT_SEPARATOR, document])


def parse_estimate(data: dict, model: str) -> Estimate:
    values = {}
    for name in ("confidence", "story_points"):
        value = data.get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInferenceResponse(f"estimate answer field {name!r} is not a number: {value!r}")
        values[name] = value
    return Estimate(model=model, confidence=values["confidence"], story_points=values["story_points"])


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def nearest_point(value: float, scale: list[float]) -> float:
    """Return the scale value closest to ``value``; ties go to the earlier scale entry."""
    best = scale[0]
    for point in scale[1:]:
        if abs(point - value) < abs(best - value):
            best = point
    return best


def normalize_estimate(estimate: Estimate, score: float, scale: list[float]) -> NormalizedEstimate:
    """Scale a raw estimate by the checklist score.

    Both figures are the average of the raw value and the score-weighted raw
    value; story points are then snapped onto the configured scale.
    """
    confidence = round_half_up((estimate.confidence * score + estimate.confidence) / 2)
    average_points = (estimate.story_points * score + estimate.story_points) / 2
    return NormalizedEstimate(confidence=confidence, story_points=nearest_point(average_points, scale))


class Estimator:
    def __init__(self, inference: BaseInference, codec: ContentCodec, settings: dict):
        self.inference = inference
        self.codec = codec
        self.settings = settings
        self.schema = build_estimate_schema(settings)
        self.scale = [step["points"] for step in settings["story_points"]["scale"]]

    def prompt(self, ticket: Ticket) -> str:
        return build_estimate_prompt(self.settings, self.codec.serialize(ticket))

    async def estimate(self, ticket: Ticket, model: str) -> Estimate:
        data = await self.inference.generate_structured(model, self.prompt(ticket), self.schema, operation="estimate")
        return parse_estimate(data, model)

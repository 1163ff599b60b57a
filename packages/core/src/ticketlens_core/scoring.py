"""Weighted checklist scoring.

The prompt and schema builders are pure functions of the configuration and
the serialized ticket, so prompts can be inspected without calling a model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import yaml

from ticketlens_core.errors import InvalidInferenceResponse
from ticketlens_core.models import ChecklistEntry, ChecklistResult, Ticket

if TYPE_CHECKING:
    from ticketlens_core.codec import ContentCodec
    from ticketlens_core.providers.base import BaseInference

PROMPT_SEPARATOR = "---"


def build_checklist_schema(entries: list[ChecklistEntry]) -> dict:
    """JSON schema requesting exactly one boolean per configured checklist key."""
    return {
        "type": "object",
        "required": [entry.key for entry in entries],
        "properties": {entry.key: {"type": "boolean", "description": entry.description} for entry in entries},
    }


def build_checklist_prompt(comment: str, entries: list[ChecklistEntry], document: str) -> str:
    instructions = yaml.safe_dump(
        {"comment": comment, "checklist": [entry.description for entry in entries]},
        sort_keys=False,
        allow_unicode=True,
    )
    return "\n\n".join([instructions, PROMPT_SEPARATOR, document])


def parse_checklist(data: dict, entries: list[ChecklistEntry]) -> list[ChecklistResult]:
    """Map a model answer onto the configured entries, in configuration order.

    A missing or non-boolean key is a broken answer, not a ``False``.
    """
    results = []
    for entry in entries:
        if entry.key not in data:
            raise InvalidInferenceResponse(f"checklist answer is missing key {entry.key!r}")
        value = data[entry.key]
        if not isinstance(value, bool):
            raise InvalidInferenceResponse(f"checklist answer for {entry.key!r} is not a boolean: {value!r}")
        results.append(ChecklistResult(entry=entry, value=value))
    return results


def calculate_score(results: list[ChecklistResult]) -> float:
    """Return the weight of true entries divided by the total configured weight."""
    total = sum(result.entry.weight for result in results)
    achieved = sum(result.entry.weight for result in results if result.value)
    return achieved / total


class ChecklistScorer:
    def __init__(self, inference: BaseInference, codec: ContentCodec, entries: list[ChecklistEntry], comment: str):
        self.inference = inference
        self.codec = codec
        self.entries = entries
        self.comment = comment
        self.schema = build_checklist_schema(entries)

    def prompt(self, ticket: Ticket) -> str:
        return build_checklist_prompt(self.comment, self.entries, self.codec.serialize(ticket))

    async def score(self, ticket: Ticket, model: str) -> list[ChecklistResult]:
        data = await self.inference.generate_structured(model, self.prompt(ticket), self.schema, operation="checklist")
        return parse_checklist(data, self.entries)

"""Restructure a ticket description into the configured template."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from ticketlens_core.errors import InvalidInferenceResponse
from ticketlens_core.models import Ticket

if TYPE_CHECKING:
    from ticketlens_core.codec import ContentCodec
    from ticketlens_core.providers.base import BaseInference

NITPICK_SCHEMA = {
    "type": "object",
    "required": ["markdown"],
    "properties": {
        "markdown": {
            "type": "string",
            "description": "prettified markdown version of the malformed or badly formatted text",
        },
    },
}


def build_nitpick_prompt(settings: dict, description: str) -> str:
    return json.dumps(
        {
            "task": settings["task"],
            "instructions": settings["instructions"],
            "template": settings["template"],
            "malformed_or_badly_formatted_text": description,
        },
        ensure_ascii=False,
    )


class Nitpicker:
    def __init__(self, inference: BaseInference, codec: ContentCodec, settings: dict):
        self.inference = inference
        self.codec = codec
        self.settings = settings

    def prompt(self, ticket: Ticket) -> str:
        return build_nitpick_prompt(self.settings, self.codec.converter.to_markdown(ticket.description))

    async def nitpick(self, ticket: Ticket, model: Optional[str] = None) -> Ticket:
        """Return a copy of ``ticket`` whose description follows the template."""
        data = await self.inference.generate_structured(
            model or self.settings["model"], self.prompt(ticket), NITPICK_SCHEMA, operation="nitpick"
        )
        markdown = data.get("markdown")
        if not isinstance(markdown, str):
            raise InvalidInferenceResponse(f"nitpick answer field 'markdown' is not a string: {markdown!r}")
        return replace(ticket, description=self.codec.converter.from_markdown(markdown))

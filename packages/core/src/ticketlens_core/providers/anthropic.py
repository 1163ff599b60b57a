from __future__ import annotations

from ticketlens_core.providers.base import BaseInference


class AnthropicInference(BaseInference):
    """Claude models; the schema travels in the system prompt."""

    def __init__(self, api_key: str):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'ticketlens[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, model: str, prompt: str, schema: dict) -> str:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=model,
            system=self._schema_instructions(schema),
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()

    def _ping(self) -> None:
        self.client.models.list(limit=1)

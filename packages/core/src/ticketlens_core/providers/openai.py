from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from ticketlens_core.providers.base import BaseInference


class OpenAIInference(BaseInference):
    def __init__(self, api_key: str):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. "
                "Install it with: pip install 'ticketlens[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, model: str, prompt: str, schema: dict) -> str:
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": schema},
            },
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content

    def _ping(self) -> None:
        self.client.models.list()

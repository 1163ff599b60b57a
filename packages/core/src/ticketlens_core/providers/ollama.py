from __future__ import annotations

from ticketlens_core.providers.base import BaseInference

_DEFAULT_HOST = "http://localhost:11434"


class OllamaInference(BaseInference):
    """Local models served by Ollama, using its native JSON-schema ``format``."""

    def __init__(self, host: str | None = None):
        try:
            from ollama import Client
        except ImportError:
            raise ImportError(
                "The 'ollama' package is required for this provider. "
                "Install it with: pip install ollama"
            )
        self.host = host or _DEFAULT_HOST
        self.client = Client(host=self.host)

    def _call_api(self, model: str, prompt: str, schema: dict) -> str:
        response = self.client.generate(
            model=model,
            prompt=prompt,
            format=schema,
            options={"temperature": self.TEMPERATURE},
        )
        return response["response"]

    def _ping(self) -> None:
        self.client.ps()

"""Inference backends.

``get_inference`` picks the backend named by ``inference.provider`` in the
settings; every backend shares the request algorithm in ``BaseInference``.
"""

from __future__ import annotations

from ticketlens_core.providers.base import BaseInference


def get_inference(config: dict) -> BaseInference:
    provider = config["inference"]["provider"]
    if provider == "ollama":
        from ticketlens_core.providers.ollama import OllamaInference

        return OllamaInference(host=config["inference"].get("host"))
    if provider == "openai":
        from ticketlens_core.providers.openai import OpenAIInference

        return OpenAIInference(api_key=config["openai_api_key"])
    if provider == "anthropic":
        from ticketlens_core.providers.anthropic import AnthropicInference

        return AnthropicInference(api_key=config["anthropic_api_key"])
    raise ValueError(f"Unknown inference provider: {provider!r}. Choose 'ollama', 'openai' or 'anthropic'.")

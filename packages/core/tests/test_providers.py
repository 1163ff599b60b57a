"""Tests for inference backends.

Shared behaviour (_parse, generate_structured, liveness) lives in
BaseInference and is tested once via a lightweight stub, not duplicated per
provider. Provider-specific tests cover only the SDK call each one makes.
"""

import asyncio
import json
import types
from unittest.mock import MagicMock, patch

import pytest

from ticketlens_core.errors import InferenceUnavailable, InvalidInferenceResponse
from ticketlens_core.providers import get_inference
from ticketlens_core.providers.base import BaseInference

SCHEMA = {"type": "object", "required": ["ok"], "properties": {"ok": {"type": "boolean"}}}
VALID_JSON = json.dumps({"ok": True})


class _StubInference(BaseInference):
    """Minimal concrete subclass used to test BaseInference shared methods."""

    def __init__(self, raw=VALID_JSON, error=None):
        self.raw = raw
        self.error = error

    def _call_api(self, model: str, prompt: str, schema: dict) -> str:
        if self.error:
            raise self.error
        return self.raw

    def _ping(self) -> None:
        if self.error:
            raise self.error


# ---------------------------------------------------------------------------
# Shared behaviour — tested once through the stub, not per provider
# ---------------------------------------------------------------------------


class TestBaseInferenceParse:
    def test_parses_valid_json(self):
        assert _StubInference()._parse(VALID_JSON) == {"ok": True}

    def test_strips_markdown_code_fences(self):
        assert _StubInference()._parse(f"```json\n{VALID_JSON}\n```") == {"ok": True}

    def test_preserves_code_blocks_inside_values(self):
        payload = json.dumps({"markdown": "Use this:\n```python\nfoo()\n```"})
        result = _StubInference()._parse(f"```json\n{payload}\n```")
        assert "```python" in result["markdown"]

    def test_invalid_json_raises(self):
        with pytest.raises(InvalidInferenceResponse):
            _StubInference()._parse("not json at all")

    def test_empty_response_raises(self):
        with pytest.raises(InvalidInferenceResponse):
            _StubInference()._parse("")

    def test_non_object_raises(self):
        with pytest.raises(InvalidInferenceResponse):
            _StubInference()._parse("[1, 2]")


class TestBaseInferenceCalls:
    def test_generate_structured_returns_parsed_object(self):
        result = asyncio.run(_StubInference().generate_structured("m", "prompt", SCHEMA))
        assert result == {"ok": True}

    def test_transport_error_becomes_inference_unavailable(self):
        inference = _StubInference(error=RuntimeError("network error"))
        with pytest.raises(InferenceUnavailable):
            asyncio.run(inference.generate_structured("m", "prompt", SCHEMA))

    def test_liveness_passes_when_backend_answers(self):
        asyncio.run(_StubInference().liveness())

    def test_liveness_failure_raises(self):
        with pytest.raises(InferenceUnavailable, match="not reachable"):
            asyncio.run(_StubInference(error=ConnectionError("refused")).liveness())

    def test_schema_instructions_embed_schema(self):
        text = BaseInference._schema_instructions(SCHEMA)
        assert '"required"' in text
        assert "only" in text


# ---------------------------------------------------------------------------
# Provider-specific — only the SDK call each backend makes
# ---------------------------------------------------------------------------


class TestOllamaInference:
    def test_generate_passes_schema_as_format(self):
        fake_ollama = MagicMock()
        fake_ollama.Client.return_value.generate.return_value = {"response": VALID_JSON}
        with patch.dict("sys.modules", {"ollama": fake_ollama}):
            from ticketlens_core.providers.ollama import OllamaInference

            inference = OllamaInference(host="http://gpu-box:11434")
            raw = inference._call_api("llama3.3", "prompt", SCHEMA)

        assert raw == VALID_JSON
        fake_ollama.Client.assert_called_once_with(host="http://gpu-box:11434")
        kwargs = fake_ollama.Client.return_value.generate.call_args.kwargs
        assert kwargs["format"] == SCHEMA
        assert kwargs["options"] == {"temperature": 0.0}

    def test_default_host(self):
        fake_ollama = MagicMock()
        with patch.dict("sys.modules", {"ollama": fake_ollama}):
            from ticketlens_core.providers.ollama import OllamaInference

            assert OllamaInference().host == "http://localhost:11434"


class TestOpenAIInference:
    def test_raises_import_error_without_sdk(self):
        import ticketlens_core.providers.openai as openai_mod

        with patch.object(openai_mod, "_OpenAI", None):
            with pytest.raises(ImportError):
                openai_mod.OpenAIInference(api_key="key")

    def test_requests_json_schema_response_format(self):
        import ticketlens_core.providers.openai as openai_mod

        client_cls = MagicMock()
        client = client_cls.return_value
        client.chat.completions.create.return_value.choices = [
            types.SimpleNamespace(message=types.SimpleNamespace(content=VALID_JSON))
        ]
        with patch.object(openai_mod, "_OpenAI", client_cls):
            raw = openai_mod.OpenAIInference(api_key="key")._call_api("gpt-4o", "prompt", SCHEMA)

        assert raw == VALID_JSON
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"]["json_schema"]["schema"] == SCHEMA
        assert kwargs["model"] == "gpt-4o"


class TestAnthropicInference:
    def test_raises_import_error_without_sdk(self):
        from ticketlens_core.providers.anthropic import AnthropicInference

        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError):
                AnthropicInference(api_key="key")

    def test_schema_goes_into_system_prompt(self):
        class TextBlock:
            def __init__(self, text):
                self.text = text

        fake_anthropic = MagicMock()
        fake_types = types.SimpleNamespace(TextBlock=TextBlock)
        client = fake_anthropic.Anthropic.return_value
        client.messages.create.return_value.content = [TextBlock(VALID_JSON)]

        with patch.dict("sys.modules", {"anthropic": fake_anthropic, "anthropic.types": fake_types}):
            from ticketlens_core.providers.anthropic import AnthropicInference

            raw = AnthropicInference(api_key="key")._call_api("claude", "prompt", SCHEMA)

        assert raw == VALID_JSON
        kwargs = client.messages.create.call_args.kwargs
        assert '"required"' in kwargs["system"]
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


class TestGetInference:
    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown inference provider"):
            get_inference({"inference": {"provider": "bard"}})

    def test_ollama_is_built_with_configured_host(self):
        fake_ollama = MagicMock()
        with patch.dict("sys.modules", {"ollama": fake_ollama}):
            inference = get_inference({"inference": {"provider": "ollama", "host": "http://h:1"}})
        assert inference.host == "http://h:1"

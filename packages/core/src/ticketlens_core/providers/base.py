"""Base inference backend implementing the Template Method pattern.

All providers share the same request algorithm:
    generate_structured() → asyncio.to_thread(_call_api) → _parse()
    liveness()            → asyncio.to_thread(_ping)

Subclasses implement three things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw structured-output call and return the text response
  - _ping: a cheap request that fails when the backend is unreachable

There is no retry loop. A failed call raises InferenceUnavailable straight
away; callers decide whether that aborts a single ticket or a whole batch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from abc import ABC, abstractmethod

from ticketlens_core.errors import InferenceUnavailable, InvalidInferenceResponse

logger = logging.getLogger(__name__)

_MAX_TOKENS = 4096


class BaseInference(ABC):
    MAX_TOKENS: int = _MAX_TOKENS
    # Reviews are cached by checksum, so answers should be as repeatable as
    # the backend allows.
    TEMPERATURE: float = 0.0

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def liveness(self) -> None:
        """Raise InferenceUnavailable unless the backend answers."""
        try:
            await asyncio.to_thread(self._ping)
        except Exception as e:
            raise InferenceUnavailable(f"{self.__class__.__name__} is not reachable: {e}") from e

    async def generate_structured(self, model: str, prompt: str, schema: dict, operation: str = "unspecified") -> dict:
        """Ask ``model`` for a JSON object conforming to ``schema`` and return it parsed.

        Transport failures raise InferenceUnavailable; an answer that is not a
        JSON object raises InvalidInferenceResponse. Field-level checks are
        left to the caller, which knows what it asked for.
        """
        started = time.perf_counter()
        try:
            raw = await asyncio.to_thread(self._call_api, model, prompt, schema)
        except Exception as e:
            logger.error("%s call failed op=%s model=%s: %s", self.__class__.__name__, operation, model, e)
            raise InferenceUnavailable(f"{self.__class__.__name__} request failed: {e}") from e
        logger.info(
            "inference_call op=%s model=%s latency_ms=%.1f",
            operation,
            model,
            (time.perf_counter() - started) * 1000.0,
        )
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, model: str, prompt: str, schema: dict) -> str:
        """Make a single blocking API call and return the raw text response."""

    @abstractmethod
    def _ping(self) -> None:
        """Make a cheap blocking request; raise on failure."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _parse(self, raw: str | None) -> dict:
        if not raw:
            raise InvalidInferenceResponse(f"{self.__class__.__name__} returned an empty response")
        # Strip only an outer ```json ... ``` fence, never backticks inside values.
        cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            raise InvalidInferenceResponse(
                f"{self.__class__.__name__}: response is not valid JSON: {raw[:200]}"
            )
        if not isinstance(data, dict):
            raise InvalidInferenceResponse(f"{self.__class__.__name__}: expected a JSON object, got {raw[:200]}")
        return data

    @staticmethod
    def _schema_instructions(schema: dict) -> str:
        """Prompt suffix for backends without native structured output."""
        return (
            "Respond with **only** a JSON object that validates against this JSON schema:\n"
            f"{json.dumps(schema, indent=2)}\n"
            "Do not return any text outside the JSON object."
        )

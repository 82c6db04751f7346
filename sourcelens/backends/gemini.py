"""Gemini backend using the Generative Language API over httpx."""

from __future__ import annotations

import logging

from sourcelens.backends.base import HttpBackend, ProviderRequest
from sourcelens.errors import ProviderError
from sourcelens.models.descriptor import Provider

logger = logging.getLogger(__name__)


class GeminiBackend(HttpBackend):
    """Provider backend using Google's Gemini models."""

    provider = Provider.GOOGLE

    async def generate(self, request: ProviderRequest) -> str:
        """Execute one generateContent call and return the joined text parts."""
        generation_config: dict = {"maxOutputTokens": request.params.max_output_tokens}
        if request.params.temperature is not None:
            generation_config["temperature"] = request.params.temperature
        if request.params.top_p is not None:
            generation_config["topP"] = request.params.top_p
        if request.params.json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: dict = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }
        if request.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": request.system_prompt}]}

        data = await self._post_json(
            f"{self.base_url}/models/{request.model}:generateContent",
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
            payload=payload,
        )

        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise ProviderError(self.name, f"prompt blocked: {block_reason}", retryable=False)

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderError(self.name, "response has no candidates", retryable=False)

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought"))
        if not text:
            finish = candidate.get("finishReason", "unknown")
            raise ProviderError(self.name, f"empty candidate (finishReason={finish})", retryable=False)

        logger.debug("Gemini %s returned %d chars", request.model, len(text))
        return text

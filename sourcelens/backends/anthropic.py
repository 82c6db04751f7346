"""Anthropic backend using the Messages API over httpx."""

from __future__ import annotations

import logging

from sourcelens.backends.base import HttpBackend, ProviderRequest
from sourcelens.errors import ProviderError
from sourcelens.models.descriptor import Provider

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicBackend(HttpBackend):
    """Provider backend using Anthropic's Claude models."""

    provider = Provider.ANTHROPIC

    async def generate(self, request: ProviderRequest) -> str:
        """Execute one Messages API call and return the first text block."""
        payload: dict = {
            "model": request.model,
            "max_tokens": request.params.max_output_tokens,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt
        if request.params.temperature is not None:
            payload["temperature"] = request.params.temperature
        if request.params.top_p is not None:
            payload["top_p"] = request.params.top_p

        data = await self._post_json(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            payload=payload,
        )

        if data.get("type") == "error":
            raise ProviderError(self.name, f"API error: {data.get('error')}")

        # With extended thinking, content has thinking + text blocks
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                logger.debug("Anthropic %s returned %d chars", request.model, len(block["text"]))
                return block["text"]

        stop_reason = data.get("stop_reason", "unknown")
        raise ProviderError(
            self.name, f"response has no text block (stop_reason={stop_reason})", retryable=False
        )

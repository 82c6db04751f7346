"""OpenAI backend using the Chat Completions API over httpx."""

from __future__ import annotations

import logging

from sourcelens.backends.base import HttpBackend, ProviderRequest
from sourcelens.errors import ProviderError
from sourcelens.models.descriptor import Provider

logger = logging.getLogger(__name__)

# o-series reasoning models reject temperature and use max_completion_tokens
REASONING_MODEL_PREFIXES = ("o1", "o3", "o4")


class OpenAIBackend(HttpBackend):
    """Provider backend using OpenAI's chat models."""

    provider = Provider.OPENAI

    async def generate(self, request: ProviderRequest) -> str:
        """Execute one chat completion and return the message content."""
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        payload: dict = {"model": request.model, "messages": messages}
        if request.model.startswith(REASONING_MODEL_PREFIXES):
            payload["max_completion_tokens"] = request.params.max_output_tokens
        else:
            payload["max_tokens"] = request.params.max_output_tokens
            if request.params.temperature is not None:
                payload["temperature"] = request.params.temperature
            if request.params.top_p is not None:
                payload["top_p"] = request.params.top_p
        if request.params.json_mode:
            payload["response_format"] = {"type": "json_object"}

        data = await self._post_json(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            payload=payload,
        )

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, f"malformed response envelope: {exc!r}") from exc

        if content is None:
            refusal = choice["message"].get("refusal") or choice.get("finish_reason")
            raise ProviderError(self.name, f"no content returned ({refusal})", retryable=False)
        return content

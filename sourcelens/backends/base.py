"""Base protocol for all provider backends."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Protocol, runtime_checkable

import httpx

from sourcelens.errors import ProviderError
from sourcelens.models.descriptor import Provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    """Provider-neutral sampling controls."""

    temperature: float | None = None
    max_output_tokens: int = 4096
    top_p: float | None = None
    json_mode: bool = False


@dataclass(frozen=True)
class ProviderRequest:
    """Everything a backend needs for one completion call."""

    model: str
    prompt: str
    params: GenerationParams
    system_prompt: str = ""


@runtime_checkable
class ProviderBackend(Protocol):
    """Interface that all LLM provider backends must implement."""

    provider: Provider

    @property
    def configured(self) -> bool:
        """Whether credentials for this provider are present."""
        ...

    async def generate(self, request: ProviderRequest) -> str:
        """Run one completion and return the response text unmodified.

        Raises:
            ProviderError: On transport failure, non-2xx status, or an
                unusable response envelope.
        """
        ...


class HttpBackend:
    """Shared httpx plumbing for JSON-over-HTTPS provider APIs."""

    provider: Provider

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def name(self) -> str:
        return self.provider.value

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            yield client

    async def _post_json(self, url: str, headers: dict, payload: dict) -> dict:
        """POST *payload* and return the decoded JSON body, mapping failures to ProviderError."""
        if not self.configured:
            raise ProviderError(self.name, "no API key configured", retryable=False)
        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise ProviderError(
                self.name,
                f"HTTP {status}: {_error_detail(exc.response)}",
                status_code=status,
            ) from exc
        except httpx.TimeoutException as exc:
            raise ProviderError(self.name, f"request timed out: {exc}", retryable=True) from exc
        except httpx.TransportError as exc:
            raise ProviderError(self.name, f"transport error: {exc}", retryable=True) from exc

        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise ProviderError(self.name, "response body is not JSON", retryable=False) from exc


def _error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable error message from a provider error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", error))[:200]
    if error:
        return str(error)[:200]
    return str(body)[:200]

"""Generation orchestrator with a single fallback hop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from sourcelens.backends.base import GenerationParams, ProviderBackend, ProviderRequest
from sourcelens.errors import (
    FailedAttempt,
    MalformedStructuredResponse,
    ProviderError,
    ProviderUnavailable,
)
from sourcelens.models.descriptor import ModelDescriptor, Provider
from sourcelens.models.result import GenerationResult
from sourcelens.models.task import GenerationTask, TaskKind
from sourcelens.orchestrator.cache import GenerationCache, NullCache, cache_key
from sourcelens.orchestrator.registry import ModelRegistry
from sourcelens.prompts.compiler import CompiledPrompt
from sourcelens.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskProfile:
    """Sampling profile per task kind; ``temperature=None`` means the model default."""

    temperature: float | None
    max_output_tokens: int
    json_mode: bool = False


TASK_PROFILES: dict[TaskKind, TaskProfile] = {
    TaskKind.SECTIONED_ANALYSIS: TaskProfile(temperature=None, max_output_tokens=4000),
    TaskKind.SPAN_HIGHLIGHT: TaskProfile(temperature=0.2, max_output_tokens=6000, json_mode=True),
    TaskKind.TOPIC_DISTRIBUTION: TaskProfile(
        temperature=0.1, max_output_tokens=10000, json_mode=True
    ),
}


def params_for(kind: TaskKind, descriptor: ModelDescriptor) -> GenerationParams:
    """Translate a task kind's profile into concrete parameters for *descriptor*."""
    profile = TASK_PROFILES[kind]
    temperature = (
        descriptor.default_temperature if profile.temperature is None else profile.temperature
    )
    return GenerationParams(
        temperature=temperature,
        max_output_tokens=min(descriptor.default_max_output_tokens, profile.max_output_tokens),
        json_mode=profile.json_mode,
    )


class GenerationOrchestrator:
    """Runs a compiled prompt against the task's model, with one fallback hop.

    The primary and fallback calls are strictly sequential: the fallback only
    runs after the primary has failed with a ``ProviderError``, or after the
    caller's ``validate`` hook rejected its response as malformed.
    Cancellation and caller timeouts propagate untouched and never trigger
    the fallback.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        backends: Mapping[Provider, ProviderBackend],
        cache: GenerationCache | None = None,
        retry_policy: RetryPolicy = RetryPolicy(),
    ) -> None:
        self.registry = registry
        self.backends = backends
        self.cache = cache if cache is not None else NullCache()
        self.retry_policy = retry_policy

    def resolve(self, task: GenerationTask) -> ModelDescriptor:
        return self.registry.resolve_for(task.kind, task.model_id)

    async def generate(
        self,
        task: GenerationTask,
        prompt: CompiledPrompt,
        *,
        timeout: float | None = None,
        validate: Callable[[str], object] | None = None,
    ) -> GenerationResult:
        """Generate a response for *task*.

        *validate* is called on the primary's response text. If it raises
        ``MalformedStructuredResponse`` the response is discarded and the
        fallback is tried. The fallback's response is returned unchecked.

        Raises:
            ProviderUnavailable: If the primary and the fallback both fail.
            MalformedStructuredResponse: If the primary's response was
                rejected and no fallback is available.
            asyncio.TimeoutError: If *timeout* elapses first.
        """
        if timeout is None:
            return await self._generate(task, prompt, validate)
        return await asyncio.wait_for(self._generate(task, prompt, validate), timeout)

    async def _generate(
        self,
        task: GenerationTask,
        prompt: CompiledPrompt,
        validate: Callable[[str], object] | None,
    ) -> GenerationResult:
        primary = self.resolve(task)
        key = cache_key(primary.id, task.kind.value, prompt.system_prompt, prompt.prompt)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Cache hit for %s (%s)", task.kind.value, primary.id)
            return cached

        attempts: list[FailedAttempt] = []
        rejected: MalformedStructuredResponse | None = None
        logger.info(
            "Dispatching %s to %s (%s)", task.kind.value, primary.id, primary.provider.value
        )
        try:
            text = await self._call(primary, task.kind, prompt)
            if validate is not None:
                validate(text)
        except ProviderError as exc:
            logger.warning("Primary model %s failed: %s", primary.id, exc)
            attempts.append(FailedAttempt(primary.id, primary.provider.value, str(exc)))
        except MalformedStructuredResponse as exc:
            logger.warning("Primary model %s returned a malformed response: %s", primary.id, exc)
            attempts.append(FailedAttempt(primary.id, primary.provider.value, str(exc)))
            exc.raw_prompt = prompt.prompt
            exc.raw_response = text
            rejected = exc
        else:
            result = GenerationResult(
                raw_prompt=prompt.prompt,
                raw_response_text=text,
                provider_used=primary.provider.value,
                model_used=primary.id,
            )
            self.cache.put(key, result)
            return result

        fallback = self._pick_fallback(task.kind, primary)
        if fallback is None:
            logger.error("No fallback available for %s", task.kind.value)
            if rejected is not None:
                raise rejected
            raise ProviderUnavailable(prompt.prompt, attempts)

        logger.warning("Falling back from %s to %s", primary.id, fallback.id)
        try:
            text = await self._call(fallback, task.kind, prompt)
        except ProviderError as exc:
            logger.error("Fallback model %s failed: %s", fallback.id, exc)
            attempts.append(FailedAttempt(fallback.id, fallback.provider.value, str(exc)))
            raise ProviderUnavailable(prompt.prompt, attempts) from exc

        # Fallback results are not cached under the primary's key
        return GenerationResult(
            raw_prompt=prompt.prompt,
            raw_response_text=text,
            provider_used=fallback.provider.value,
            model_used=fallback.id,
            fell_back=True,
            attempts=tuple(attempts),
        )

    def _pick_fallback(self, kind: TaskKind, primary: ModelDescriptor) -> ModelDescriptor | None:
        for candidate in self.registry.fallback_candidates(kind, primary):
            backend = self.backends.get(candidate.provider)
            if backend is not None and backend.configured:
                return candidate
        return None

    async def _call(
        self, descriptor: ModelDescriptor, kind: TaskKind, prompt: CompiledPrompt
    ) -> str:
        backend = self.backends.get(descriptor.provider)
        if backend is None:
            raise ProviderError(descriptor.provider.value, "no backend registered", retryable=False)
        request = ProviderRequest(
            model=descriptor.api_model,
            prompt=prompt.prompt,
            params=params_for(kind, descriptor),
            system_prompt=prompt.system_prompt,
        )
        return await with_retry(lambda: backend.generate(request), self.retry_policy)

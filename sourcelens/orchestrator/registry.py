"""Model registry: static table of selectable models and per-task defaults."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from sourcelens.models.descriptor import ContextSizeClass, ModelDescriptor, Provider
from sourcelens.models.task import TaskKind

logger = logging.getLogger(__name__)

MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="claude-haiku",
        name="Claude 3.5 Haiku",
        provider=Provider.ANTHROPIC,
        api_model="claude-3-5-haiku-latest",
        default_temperature=0.2,
        default_max_output_tokens=8192,
        context_size_class=ContextSizeClass.STANDARD,
        description="Fast and efficient for quick analyses",
    ),
    ModelDescriptor(
        id="claude-sonnet",
        name="Claude 3.7 Sonnet",
        provider=Provider.ANTHROPIC,
        api_model="claude-3-7-sonnet-latest",
        default_temperature=0.5,
        default_max_output_tokens=16000,
        context_size_class=ContextSizeClass.STANDARD,
        description="Advanced with deeper context understanding",
    ),
    ModelDescriptor(
        id="gpt-4o-mini",
        name="GPT-4o Mini",
        provider=Provider.OPENAI,
        api_model="gpt-4o-mini",
        default_temperature=0.5,
        default_max_output_tokens=16000,
        context_size_class=ContextSizeClass.COMPACT,
        description="Small, inexpensive general model",
    ),
    ModelDescriptor(
        id="gpt-4.1-nano",
        name="GPT-4.1 Nano",
        provider=Provider.OPENAI,
        api_model="gpt-4.1-nano",
        default_temperature=0.3,
        default_max_output_tokens=32000,
        context_size_class=ContextSizeClass.STANDARD,
        description="A low-latency model",
    ),
    ModelDescriptor(
        id="gpt-4.1",
        name="GPT-4.1",
        provider=Provider.OPENAI,
        api_model="gpt-4.1-2025-04-14",
        default_temperature=0.3,
        default_max_output_tokens=32000,
        context_size_class=ContextSizeClass.STANDARD,
        description="Flagship OpenAI model",
    ),
    ModelDescriptor(
        id="o3-mini",
        name="O3 Mini",
        provider=Provider.OPENAI,
        api_model="o3-mini-2025-01-31",
        default_temperature=0.3,
        default_max_output_tokens=16000,
        context_size_class=ContextSizeClass.STANDARD,
        description="Fast reasoning model for complex analysis",
    ),
    ModelDescriptor(
        id="gemini-flash",
        name="Gemini 2.0 Flash",
        provider=Provider.GOOGLE,
        api_model="gemini-2.0-flash",
        default_temperature=0.2,
        default_max_output_tokens=8192,
        context_size_class=ContextSizeClass.EXTENDED,
        description="Process long texts with a 1M token context window",
    ),
    ModelDescriptor(
        id="gemini-flash-lite",
        name="Gemini 2.0 Flash Lite",
        provider=Provider.GOOGLE,
        api_model="gemini-2.0-flash-lite",
        default_temperature=0.2,
        default_max_output_tokens=8192,
        context_size_class=ContextSizeClass.EXTENDED,
        description="The smaller version of Flash. Good all-rounder.",
    ),
    ModelDescriptor(
        id="gemini-2.0-pro-exp-02-05",
        name="Gemini 2.0 Pro Experimental",
        provider=Provider.GOOGLE,
        api_model="gemini-2.0-pro-exp-02-05",
        default_temperature=0.2,
        default_max_output_tokens=8192,
        context_size_class=ContextSizeClass.EXTENDED,
        description="Experimental Gemini Pro with enhanced document processing",
    ),
)

# Older client builds send provider nicknames or raw API model names
LEGACY_ALIASES: dict[str, str] = {
    "claude": "claude-haiku",
    "gpt": "gpt-4o-mini",
    "o3-mini-2025-01-31": "o3-mini",
}

TASK_DEFAULT_MODELS: dict[TaskKind, str] = {
    TaskKind.SPAN_HIGHLIGHT: "gemini-flash",
    TaskKind.TOPIC_DISTRIBUTION: "gemini-flash-lite",
}


class ModelRegistry:
    """Read-only lookup from logical model id to descriptor.

    ``resolve`` is total: anything it cannot place resolves to the default
    descriptor. The tables are frozen after construction.
    """

    def __init__(
        self,
        descriptors: Iterable[ModelDescriptor] = MODELS,
        default_id: str = "gemini-flash-lite",
        aliases: Mapping[str, str] | None = None,
        task_defaults: Mapping[TaskKind, str] | None = None,
        fallbacks: Mapping[str, list[str]] | None = None,
    ) -> None:
        by_id = {d.id: d for d in descriptors}
        if default_id not in by_id:
            raise ValueError(f"Default model {default_id!r} is not in the registry")

        self._by_id = MappingProxyType(by_id)
        self._by_api_model = MappingProxyType({d.api_model: d for d in by_id.values()})
        self._aliases = MappingProxyType(dict(LEGACY_ALIASES if aliases is None else aliases))
        self._default = by_id[default_id]

        defaults = dict(TASK_DEFAULT_MODELS if task_defaults is None else task_defaults)
        self._task_defaults = MappingProxyType(
            {kind: model_id for kind, model_id in defaults.items() if model_id in by_id}
        )

        chains: dict[TaskKind, tuple[str, ...]] = {}
        for kind_value, ids in (fallbacks or {}).items():
            kind = TaskKind(kind_value)
            unknown = [i for i in ids if i not in by_id]
            if unknown:
                logger.warning("Ignoring unknown fallback models for %s: %s", kind.value, unknown)
            chains[kind] = tuple(i for i in ids if i in by_id)
        self._fallbacks = MappingProxyType(chains)

    @property
    def default(self) -> ModelDescriptor:
        return self._default

    @property
    def descriptors(self) -> Mapping[str, ModelDescriptor]:
        return self._by_id

    def resolve(self, model_id: str | None) -> ModelDescriptor:
        """Return the descriptor for *model_id*, or the default one."""
        if not model_id:
            return self._default
        mapped = self._aliases.get(model_id, model_id)
        descriptor = self._by_id.get(mapped) or self._by_api_model.get(mapped)
        if descriptor is None:
            logger.warning(
                "Model %r not found, using default %r", model_id, self._default.id
            )
            return self._default
        return descriptor

    def default_for(self, kind: TaskKind) -> ModelDescriptor:
        """Default model for a task kind when the caller names none."""
        return self._by_id.get(self._task_defaults.get(kind, ""), self._default)

    def resolve_for(self, kind: TaskKind, model_id: str | None) -> ModelDescriptor:
        if not model_id:
            return self.default_for(kind)
        return self.resolve(model_id)

    def fallback_candidates(self, kind: TaskKind, primary: ModelDescriptor) -> list[ModelDescriptor]:
        """Ordered fallback descriptors for *kind*, excluding the primary model."""
        return [self._by_id[i] for i in self._fallbacks.get(kind, ()) if i != primary.id]

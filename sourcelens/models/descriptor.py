"""Model descriptor data model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Provider(Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class ContextSizeClass(Enum):
    """Coarse context-window class; the value is the source-text budget in characters."""

    COMPACT = 60_000
    STANDARD = 400_000
    EXTENDED = 2_000_000

    @property
    def char_budget(self) -> int:
        return self.value


@dataclass(frozen=True)
class ModelDescriptor:
    """Static configuration for one selectable model."""

    id: str
    name: str
    provider: Provider
    api_model: str
    default_temperature: float = 0.3
    default_max_output_tokens: int = 4096
    context_size_class: ContextSizeClass = ContextSizeClass.STANDARD
    description: str = ""

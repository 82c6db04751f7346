"""Injectable caches for generation results."""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import Protocol

from sourcelens.models.result import GenerationResult

logger = logging.getLogger(__name__)


def cache_key(model_id: str, kind: str, system_prompt: str, prompt: str) -> str:
    """``{model}:{kind}:{sha256 of prompt text}``."""
    digest = hashlib.sha256(f"{system_prompt}\x00{prompt}".encode()).hexdigest()
    return f"{model_id}:{kind}:{digest}"


class GenerationCache(Protocol):
    def get(self, key: str) -> GenerationResult | None: ...

    def put(self, key: str, result: GenerationResult) -> None: ...


class NullCache:
    """Never stores anything."""

    def get(self, key: str) -> GenerationResult | None:
        return None

    def put(self, key: str, result: GenerationResult) -> None:
        return None


class LRUCache:
    """Bounded in-memory cache with least-recently-used eviction."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, GenerationResult] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> GenerationResult | None:
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def put(self, key: str, result: GenerationResult) -> None:
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %s", evicted)


def build_cache(capacity: int) -> GenerationCache:
    return LRUCache(capacity) if capacity > 0 else NullCache()

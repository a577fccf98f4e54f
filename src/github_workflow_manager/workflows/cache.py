"""In-memory TTL cache for scanned definition lists.

Entries are replaced whole, never mutated, so readers can only ever observe a
complete list. Expiry is an explicit comparison against the clock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from github_workflow_manager.workflows.models import WorkflowDefinition
from github_workflow_manager.workflows.sources import RepositoryKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class CacheEntry:
    definitions: tuple[WorkflowDefinition, ...]
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


class DefinitionCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[RepositoryKey, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: RepositoryKey) -> list[WorkflowDefinition] | None:
        """Return the cached list, or None on a miss or an expired entry."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_live(self._clock()):
                del self._entries[key]
                logger.debug("Cache entry expired", extra={"repo": key.full_name})
                return None
            return list(entry.definitions)

    def put(self, key: RepositoryKey, definitions: Sequence[WorkflowDefinition]) -> CacheEntry:
        entry = CacheEntry(definitions=tuple(definitions), expires_at=self._clock() + self._ttl)
        with self._lock:
            self._entries[key] = entry
        return entry

    def invalidate(self, key: RepositoryKey) -> bool:
        """Drop the entry regardless of expiry. Returns whether one existed."""

        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, RepositoryKey):
            return False
        return self.get(key) is not None

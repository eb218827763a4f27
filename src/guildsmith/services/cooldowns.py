from __future__ import annotations

import time
from typing import Callable, Hashable

from .cache import KeyValueStore, TTLCache


class CooldownTracker:
    """Per-key cooldown on top of an injected key-value store."""

    def __init__(
        self,
        seconds: int,
        store: KeyValueStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.seconds = max(0, int(seconds))
        self._store = store if store is not None else TTLCache(default_ttl_seconds=max(1, self.seconds))
        self._clock = clock

    def remaining(self, key: Hashable) -> float:
        """Seconds left before ``key`` may act again (0 when free)."""
        last = self._store.get(key)
        if last is None:
            return 0.0
        return max(0.0, self.seconds - (self._clock() - float(last)))

    def touch(self, key: Hashable) -> None:
        self._store.set(key, self._clock(), ttl_seconds=max(1, self.seconds))

    def reset(self, key: Hashable) -> None:
        self._store.delete(key)

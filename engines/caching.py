"""Time-bounded cache for AI responses and data-store reads."""

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_MAX_AGE_SECONDS = 5 * 60


class TTLCache(Generic[T]):
    """Key/value store whose entries expire ``max_age`` seconds after insertion.

    Expiry is checked lazily when an entry is read; there is no background
    sweep. Instances are not thread-safe and are meant to live on a single
    event loop.
    """

    def __init__(
        self,
        max_age: float = DEFAULT_MAX_AGE_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: Dict[Hashable, Tuple[T, float]] = {}
        self._max_age = max_age
        self._clock = clock

    @property
    def max_age(self) -> float:
        return self._max_age

    def set(self, key: Hashable, value: T) -> None:
        """Store ``value``, replacing any existing entry and restarting its age."""
        self._cache[key] = (value, self._clock())

    def get(self, key: Hashable) -> Optional[T]:
        """Return the cached value, or None when it is missing or expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, inserted_at = entry
        if self._clock() - inserted_at > self._max_age:
            del self._cache[key]
            return None
        return value

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: Hashable) -> bool:
        # Does not evict; an expired entry stays until the next get().
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

"""
Bounded TTL cache used for catalog snapshots, n-gram indexes and match results.

Expiry is checked lazily on read; there is no eviction thread.
"""
import time
from collections import OrderedDict
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """
    Size-bounded key/value cache with a per-cache time to live.

    When full, the least recently written entry is evicted. ``clear`` swaps
    in a fresh store instead of mutating the old one, so a reader holding a
    value from the previous generation keeps a consistent snapshot.
    """

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        :param max_size: Maximum number of entries kept
        :param ttl_seconds: Lifetime of an entry after it is written
        :param clock: Monotonic time source (injectable for tests)
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: "OrderedDict[K, Tuple[float, V]]" = OrderedDict()

    def get(self, key: K) -> Optional[V]:
        item = self._store.get(key)
        if item is None:
            return None

        expires_at, value = item
        if self._clock() >= expires_at:
            self._store.pop(key, None)
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._store.pop(key, None)
        self._store[key] = (self._clock() + self.ttl_seconds, value)
        while len(self._store) > self.max_size:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store = OrderedDict()

    def __contains__(self, key: K) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._store)

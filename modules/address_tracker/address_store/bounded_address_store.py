"""
Bounded Address Store

Fixed-capacity least-recently-used (LRU) cache of standardized addresses.
The tracking coordinator keeps the latest address under a fixed key
("current"); the caching extractor keys addresses by response content.

Recency is held by an OrderedDict: the first entry is the least recently
used, the last the most recently used. Every operation is O(1) except
``clean_expired``, which scans the store.

Entries can optionally expire: with ``expiration_ms`` set, an entry older
than that many milliseconds since it was last set is treated as absent and
removed when it is next looked up or when ``clean_expired`` runs.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Hashable, List, NamedTuple, Optional

from src.exceptions import TrackerConfigurationError
from ..models.standardized_address import StandardizedAddress
from ..models.tracking_config import DEFAULT_CACHE_CAPACITY

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock."""
    return time.monotonic() * 1000


@dataclass
class StoreStats:
    """Hit/miss/eviction/expiration counters for a store."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    def get_hit_ratio(self) -> float:
        """Fraction of lookups that found an entry (0.0 when there were none)."""
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups


class StoreEntry(NamedTuple):
    address: StandardizedAddress
    stored_at: float


class BoundedAddressStore:
    """LRU store with size-based eviction and optional expiry.

    ``get`` refreshes an entry's recency and ``peek`` does not. ``set`` on a
    new key evicts the least recently used entry first when the store is
    full; ``set`` on an existing key replaces the value and refreshes
    recency. ``size() <= capacity`` holds after every operation.
    """

    def __init__(self,
                 capacity: int = DEFAULT_CACHE_CAPACITY,
                 name: str = "BoundedAddressStore",
                 expiration_ms: Optional[int] = None,
                 clock: Callable[[], float] = monotonic_ms):
        """Initialize an empty store.

        Args:
            capacity: Maximum number of entries (must be a positive integer)
            name: Name used in log messages
            expiration_ms: Age in milliseconds after which an entry expires;
                None keeps entries until they are evicted or deleted
            clock: Source of the current time in milliseconds

        Raises:
            TrackerConfigurationError: If capacity is not a positive integer or
                expiration_ms is neither None nor a positive integer
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise TrackerConfigurationError(
                "Address store capacity must be a positive integer",
                {"capacity": capacity, "store": name}
            )
        if expiration_ms is not None and (
                isinstance(expiration_ms, bool) or not isinstance(expiration_ms, int)
                or expiration_ms <= 0):
            raise TrackerConfigurationError(
                "Address store expiration must be a positive integer of milliseconds",
                {"expiration_ms": expiration_ms, "store": name}
            )

        self._capacity = capacity
        self._expiration_ms = expiration_ms
        self._clock = clock
        self.name = name
        self._entries: "OrderedDict[Hashable, StoreEntry]" = OrderedDict()
        self.stats = StoreStats()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def expiration_ms(self) -> Optional[int]:
        return self._expiration_ms

    def get(self, key: Hashable) -> Optional[StandardizedAddress]:
        """Return the entry for ``key`` and mark it most recently used.

        An expired entry is removed and counted as a miss.
        """
        entry = self._live_entry(key)
        if entry is None:
            self.stats.misses += 1
            return None

        self._entries.move_to_end(key)
        self.stats.hits += 1
        return entry.address

    def peek(self, key: Hashable) -> Optional[StandardizedAddress]:
        """Return the entry for ``key`` without touching recency or hit/miss stats."""
        entry = self._live_entry(key)
        return entry.address if entry is not None else None

    def set(self, key: Hashable, address: StandardizedAddress) -> None:
        """Insert or replace ``key`` as the most recently used entry."""
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._capacity:
            evicted_key, _ = self._entries.popitem(last=False)
            self.stats.evictions += 1
            logger.debug(f"({self.name}) Evicted least recently used entry {evicted_key!r}")

        self._entries[key] = StoreEntry(address, self._clock())

    def delete(self, key: Hashable) -> bool:
        """Remove ``key``; returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def contains(self, key: Hashable) -> bool:
        """Membership test that does not touch recency."""
        return self._live_entry(key) is not None

    def clean_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        if self._expiration_ms is None:
            return 0

        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]

        if expired:
            self.stats.expirations += len(expired)
            logger.debug(f"({self.name}) Removed {len(expired)} expired entries")
        return len(expired)

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet removed."""
        return len(self._entries)

    def keys(self) -> List[Hashable]:
        """Keys from least to most recently used."""
        return list(self._entries.keys())

    def clear(self) -> None:
        """Remove every entry; counters are kept."""
        self._entries.clear()

    def _is_expired(self, entry: StoreEntry, now: float) -> bool:
        return self._expiration_ms is not None and now - entry.stored_at > self._expiration_ms

    def _live_entry(self, key: Hashable) -> Optional[StoreEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            self.stats.expirations += 1
            logger.debug(f"({self.name}) Entry {key!r} expired")
            return None

        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.contains(key)

    def __str__(self) -> str:
        return f"{self.name}: size={self.size()}/{self._capacity}"

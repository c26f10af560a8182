"""Keyed TTL store for market intelligence, behind an interface so an external KV store can replace it"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from pulse_gateway.domain.models import MarketIntelligenceData


@dataclass(frozen=True)
class CacheEntry:
    """Cached payload with its creation and expiry instants"""

    data: MarketIntelligenceData
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class CacheStore(ABC):
    """
    Storage contract for the intelligence cache.

    Expired entries may still be returned by get(); callers decide freshness.
    Implementations must serialise their own mutations.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        ...

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry, returning how many were removed"""

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Remove entries expired at `now`, returning how many were removed"""

    @abstractmethod
    async def evict_oldest(self, count: int) -> int:
        """Remove up to `count` entries with the oldest created_at"""

    @abstractmethod
    async def count_expired(self, now: datetime) -> int:
        ...

    @abstractmethod
    async def size(self) -> int:
        ...


class InMemoryCacheStore(CacheStore):
    """Single-process store: a dict guarded by an asyncio lock"""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        async with self._lock:
            self._entries[key] = entry

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        async with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    async def purge_expired(self, now: datetime) -> int:
        async with self._lock:
            expired_keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._entries[key]
            return len(expired_keys)

    async def evict_oldest(self, count: int) -> int:
        if count <= 0:
            return 0
        async with self._lock:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].created_at)[:count]
            for key in oldest:
                del self._entries[key]
            return len(oldest)

    async def count_expired(self, now: datetime) -> int:
        return sum(1 for entry in self._entries.values() if entry.is_expired(now))

    async def size(self) -> int:
        return len(self._entries)

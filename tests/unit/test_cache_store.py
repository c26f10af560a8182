"""Unit tests for the in-memory intelligence cache store"""

from datetime import datetime, timedelta, timezone
from pulse_gateway.domain.models import MarketIntelligenceData, MarketSentiment, SentimentLabel
from pulse_gateway.infrastructure.cache.store import CacheEntry, InMemoryCacheStore

T0 = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)
TTL = timedelta(minutes=10)


def _entry(company: str, created_at: datetime) -> CacheEntry:
    data = MarketIntelligenceData(
        sentiment=MarketSentiment(score=0.0, label=SentimentLabel.NEUTRAL, confidence=0.5),
        headlines=(),
        article_count=1,
        last_updated=created_at,
        company=company,
    )
    return CacheEntry(data=data, created_at=created_at, expires_at=created_at + TTL)


def test_entry_expiry_is_inclusive():
    entry = _entry("A", T0)

    assert entry.is_expired(T0 + timedelta(minutes=9, seconds=59)) is False
    assert entry.is_expired(T0 + TTL) is True


async def test_set_get_delete():
    store = InMemoryCacheStore()
    await store.set("a", _entry("A", T0))

    assert (await store.get("a")).data.company == "A"
    assert await store.size() == 1
    assert await store.delete("a") is True
    assert await store.delete("a") is False
    assert await store.get("a") is None


async def test_purge_expired_keeps_fresh_entries():
    store = InMemoryCacheStore()
    await store.set("old", _entry("Old", T0))
    await store.set("new", _entry("New", T0 + timedelta(minutes=8)))
    now = T0 + timedelta(minutes=11)

    assert await store.count_expired(now) == 1
    assert await store.purge_expired(now) == 1
    assert await store.get("old") is None
    assert await store.get("new") is not None


async def test_evict_oldest():
    store = InMemoryCacheStore()
    for i, key in enumerate(["c", "a", "b"]):
        await store.set(key, _entry(key.upper(), T0 + timedelta(seconds=i)))

    assert await store.evict_oldest(2) == 2
    assert await store.get("b") is not None
    assert await store.size() == 1
    assert await store.evict_oldest(0) == 0


async def test_clear_returns_count():
    store = InMemoryCacheStore()
    await store.set("a", _entry("A", T0))
    await store.set("b", _entry("B", T0))

    assert await store.clear() == 2
    assert await store.size() == 0

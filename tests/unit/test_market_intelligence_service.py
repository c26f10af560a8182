"""Unit tests for the market intelligence service and its TTL cache"""

import asyncio
import pytest
from pulse_gateway.domain.exceptions import IntelligenceSourceError, MarketIntelligenceError
from pulse_gateway.domain.intelligence import generate_market_data
from pulse_gateway.infrastructure.cache.store import InMemoryCacheStore
from pulse_gateway.infrastructure.clients.news import NewsClient
from pulse_gateway.services.market_intelligence import (
    MarketIntelligenceService,
    cache_key,
    validate_company_name,
)


class GatedClient:
    """News client stub that holds one company until released"""

    def __init__(self, gated_company: str):
        self.gated_company = gated_company
        self.release = asyncio.Event()
        self.calls = []

    async def fetch(self, company: str):
        self.calls.append(company)
        if company == self.gated_company:
            await self.release.wait()
        return generate_market_data(company)


class SlowRecheckStore(InMemoryCacheStore):
    """Store whose second read of one key stalls, like a slow network round-trip"""

    def __init__(self, slow_key: str):
        super().__init__()
        self.slow_key = slow_key
        self.reads = 0
        self.stalled = asyncio.Event()
        self.release = asyncio.Event()

    async def get(self, key: str):
        if key == self.slow_key:
            self.reads += 1
            if self.reads == 2:
                self.stalled.set()
                await self.release.wait()
        return await super().get(key)


def _codes(error: MarketIntelligenceError) -> list:
    return [issue.code for issue in error.details]


# Company name validation


@pytest.mark.parametrize("name", ["TechCorp", "Tech Corp Inc", "ABC-123 Corp.", "AT&T", "Johnson & Johnson", "3M Company", "Coca-Cola Co."])
def test_validate_company_name_accepts(name):
    assert validate_company_name(name) == name


def test_validate_company_name_trims():
    assert validate_company_name("  TechCorp  ") == "TechCorp"


@pytest.mark.parametrize(
    "name, code",
    [
        ("", "REQUIRED_FIELD"),
        (None, "REQUIRED_FIELD"),
        ("A", "MIN_LENGTH"),
        ("   A   ", "MIN_LENGTH"),
        ("x" * 101, "MAX_LENGTH"),
        ("Company'; DROP TABLE users;", "INVALID_CHARACTERS"),
        ("<script>", "SECURITY_VIOLATION"),
    ],
)
def test_validate_company_name_rejects(name, code):
    """Test each rejection is a 400-equivalent error carrying its issue codes"""
    with pytest.raises(MarketIntelligenceError) as exc_info:
        validate_company_name(name)

    error = exc_info.value
    assert error.code == "VALIDATION_FAILED"
    assert error.status_code == 400
    assert code in _codes(error)
    assert error.message.startswith("Company name validation failed: ")


def test_validate_company_name_reports_all_issues():
    with pytest.raises(MarketIntelligenceError) as exc_info:
        validate_company_name("<script>")

    assert _codes(exc_info.value) == ["INVALID_CHARACTERS", "SECURITY_VIOLATION"]


def test_cache_key_normalises():
    assert cache_key("  TechCorp ") == cache_key("techcorp") == "techcorp"


# Cache behaviour


async def test_get_market_intelligence_shape(service):
    data = await service.get_market_intelligence("TechCorp")

    assert data.company == "TechCorp"
    assert len(data.headlines) == 3
    assert data.article_count > 0
    assert -1 <= data.sentiment.score <= 1
    assert 0 <= data.sentiment.confidence <= 1


async def test_cache_hit_within_ttl(service, generator, clock):
    """Test a second call within 10 minutes is served from cache"""
    first = await service.get_market_intelligence("TechCorp")
    clock.advance(minutes=5)
    second = await service.get_market_intelligence("TechCorp")

    assert second is first
    assert second.last_updated == first.last_updated
    assert generator.call_count == 1


async def test_regenerates_after_ttl(service, generator, clock):
    """Test a call 11 minutes later regenerates with a new timestamp"""
    first = await service.get_market_intelligence("TechCorp")
    clock.advance(minutes=11)
    second = await service.get_market_intelligence("TechCorp")

    assert second.last_updated > first.last_updated
    assert generator.call_count == 2
    # Same company, same derived content
    assert second.headlines == first.headlines


async def test_entry_expires_exactly_at_ttl(service, generator, clock):
    await service.get_market_intelligence("TechCorp")
    clock.advance(minutes=10)
    await service.get_market_intelligence("TechCorp")

    assert generator.call_count == 2


async def test_concurrent_requests_single_flight(generator, clock):
    """Test 5 concurrent cold-cache calls trigger one generation"""
    client = NewsClient(latency_min_ms=20, latency_max_ms=20, generator=generator)
    service = MarketIntelligenceService(client=client, clock=clock)

    results = await asyncio.gather(*(service.get_market_intelligence("TechCorp") for _ in range(5)))

    assert generator.call_count == 1
    assert all(result == results[0] for result in results)
    assert await service.get_cache_size() == 1


async def test_concurrent_requests_share_key_across_spellings(generator, clock):
    client = NewsClient(latency_min_ms=20, latency_max_ms=20, generator=generator)
    service = MarketIntelligenceService(client=client, clock=clock)

    await asyncio.gather(
        service.get_market_intelligence("TechCorp"),
        service.get_market_intelligence("techcorp"),
        service.get_market_intelligence("  TECHCORP "),
    )

    assert generator.call_count == 1


async def test_different_keys_do_not_block(clock):
    """Test a slow generation for one company does not delay another"""
    client = GatedClient("Slow Corp")
    service = MarketIntelligenceService(client=client, clock=clock)

    slow = asyncio.create_task(service.get_market_intelligence("Slow Corp"))
    await asyncio.sleep(0)

    fast = await asyncio.wait_for(service.get_market_intelligence("Fast Corp"), timeout=1)

    assert fast.company == "Fast Corp"
    assert not slow.done()

    client.release.set()
    assert (await slow).company == "Slow Corp"
    assert client.calls == ["Slow Corp", "Fast Corp"]


async def test_slow_store_read_does_not_block_other_keys(news_client, clock):
    """Test a stalled store read for one company does not hold up another"""
    store = SlowRecheckStore("slow corp")
    service = MarketIntelligenceService(store=store, client=news_client, clock=clock)

    slow = asyncio.create_task(service.get_market_intelligence("Slow Corp"))
    await asyncio.wait_for(store.stalled.wait(), timeout=1)

    fast = await asyncio.wait_for(service.get_market_intelligence("Fast Corp"), timeout=1)

    assert fast.company == "Fast Corp"
    assert not slow.done()

    store.release.set()
    assert (await slow).company == "Slow Corp"


async def test_companies_cached_separately(service, generator):
    first = await service.get_market_intelligence("TechCorp")
    second = await service.get_market_intelligence("AcmeCorp")

    assert first.company == "TechCorp"
    assert second.company == "AcmeCorp"
    assert generator.call_count == 2
    assert await service.get_cache_size() == 2


async def test_invalid_company_does_not_generate(service, generator):
    for name in ("", "<script>"):
        with pytest.raises(MarketIntelligenceError) as exc_info:
            await service.get_market_intelligence(name)
        assert exc_info.value.status_code == 400

    assert generator.call_count == 0


async def test_generation_failure_is_wrapped_and_not_cached(service, generator):
    """Test source failures surface as 500-equivalent errors and can be retried"""
    generator.side_effect = [RuntimeError("provider down"), generate_market_data("TechCorp")]

    with pytest.raises(MarketIntelligenceError) as exc_info:
        await service.get_market_intelligence("TechCorp")

    error = exc_info.value
    assert error.code == "GET_MARKET_INTELLIGENCE_FAILED"
    assert error.status_code == 500
    assert isinstance(error.details, IntelligenceSourceError)
    assert isinstance(error.details.__cause__, RuntimeError)
    assert await service.get_cache_size() == 0

    data = await service.get_market_intelligence("TechCorp")
    assert data.company == "TechCorp"
    assert generator.call_count == 2


async def test_concurrent_callers_share_failure(clock):
    calls = []

    def failing(company):
        calls.append(company)
        raise RuntimeError("provider down")

    client = NewsClient(latency_min_ms=10, latency_max_ms=10, generator=failing)
    service = MarketIntelligenceService(client=client, clock=clock)

    results = await asyncio.gather(
        *(service.get_market_intelligence("TechCorp") for _ in range(3)), return_exceptions=True
    )

    assert len(calls) == 1
    assert all(isinstance(r, MarketIntelligenceError) for r in results)


# Expiry, sweeping and invalidation


async def test_stale_entry_remains_until_swept(service, clock):
    """Test expired entries read as misses but stay stored until a sweep"""
    await service.get_market_intelligence("Expired Co")
    clock.advance(minutes=6)
    await service.get_market_intelligence("Valid Co")
    clock.advance(minutes=5)

    stats = await service.get_cache_stats()
    assert stats["total_entries"] == 2
    assert stats["expired_entries"] == 1

    assert await service.clear_expired_cache() == 1
    assert await service.get_cache_size() == 1
    assert await service.store.get(cache_key("Valid Co")) is not None


async def test_clear_cache_single_company(service):
    await service.get_market_intelligence("TechCorp")
    await service.get_market_intelligence("AcmeCorp")

    assert await service.clear_cache(" techcorp ") == 1
    assert await service.clear_cache("TechCorp") == 0
    assert await service.get_cache_size() == 1


async def test_clear_cache_all_resets_stats(service):
    await service.get_market_intelligence("TechCorp")
    await service.get_market_intelligence("TechCorp")

    assert (await service.get_cache_stats())["cache_hit_rate"] == 0.5

    assert await service.clear_cache() == 1
    stats = await service.get_cache_stats()
    assert stats == {"total_entries": 0, "expired_entries": 0, "cache_hit_rate": 0.0}


async def test_capacity_bound_evicts_oldest(generator, news_client, clock):
    service = MarketIntelligenceService(client=news_client, clock=clock, max_entries=2)

    for company in ("First Co", "Second Co", "Third Co"):
        await service.get_market_intelligence(company)
        clock.advance(seconds=1)

    assert await service.get_cache_size() == 2
    assert await service.store.get(cache_key("First Co")) is None

    await service.get_market_intelligence("First Co")
    assert generator.call_count == 4


async def test_capacity_bound_prefers_expired_entries(generator, news_client, clock):
    service = MarketIntelligenceService(client=news_client, clock=clock, max_entries=2)

    await service.get_market_intelligence("Old Co")
    clock.advance(minutes=11)
    await service.get_market_intelligence("Second Co")
    await service.get_market_intelligence("Third Co")

    assert await service.get_cache_size() == 2
    assert await service.store.get(cache_key("Old Co")) is None


async def test_background_cleanup_sweeps_expired(service, clock):
    """Test the periodic sweep removes expired entries on its own schedule"""
    await service.get_market_intelligence("TechCorp")
    clock.advance(minutes=11)

    service.start_cache_cleanup()
    assert service.is_cleanup_active is True

    for _ in range(50):
        await asyncio.sleep(0.01)
        if await service.get_cache_size() == 0:
            break

    assert await service.get_cache_size() == 0

    await service.stop_cache_cleanup()
    assert service.is_cleanup_active is False


async def test_service_info(service):
    await service.get_market_intelligence("TechCorp")
    await service.get_market_intelligence("TechCorp")

    info = await service.get_service_info()

    assert info == {
        "cache_size": 1,
        "request_count": 2,
        "cache_hit_rate": 0.5,
        "ttl_minutes": 10.0,
        "is_cleanup_active": False,
    }

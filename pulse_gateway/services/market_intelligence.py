"""Market intelligence service - TTL cache with single-flight generation per company"""

import asyncio
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from pulse_gateway.config import settings
from pulse_gateway.domain.exceptions import MarketIntelligenceError
from pulse_gateway.domain.intelligence import HEADLINE_COUNT, calculate_sentiment
from pulse_gateway.domain.models import CompanyValidationIssue, MarketIntelligenceData, NewsHeadline
from pulse_gateway.infrastructure.cache.store import CacheEntry, CacheStore, InMemoryCacheStore
from pulse_gateway.infrastructure.clients.news import NewsClient
from pulse_gateway.infrastructure.observability.metrics import (
    intelligence_cache_counter,
    intelligence_cache_size_gauge,
    intelligence_generation_failures_counter,
)
from pulse_gateway.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

COMPANY_MIN_LENGTH = 2
COMPANY_MAX_LENGTH = 100
COMPANY_NAME_PATTERN = re.compile(r"[a-zA-Z0-9 \-'&.,()]+")
SUSPICIOUS_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+=", re.IGNORECASE),
    re.compile(r"</?\w+>", re.IGNORECASE),
)


def cache_key(company: str) -> str:
    """Normalised cache key: trimmed and case-folded"""
    return company.strip().casefold()


def collect_company_name_issues(company: Any) -> List[CompanyValidationIssue]:
    """Every problem with a company name; empty when valid"""
    if not company or not isinstance(company, str):
        return [CompanyValidationIssue("company", "Company name is required and must be a string", "REQUIRED_FIELD")]

    issues = []
    trimmed = company.strip()

    if len(trimmed) < COMPANY_MIN_LENGTH:
        issues.append(
            CompanyValidationIssue("company", "Company name must be at least 2 characters long", "MIN_LENGTH")
        )
    elif len(trimmed) > COMPANY_MAX_LENGTH:
        issues.append(
            CompanyValidationIssue("company", "Company name must not exceed 100 characters", "MAX_LENGTH")
        )

    if not COMPANY_NAME_PATTERN.fullmatch(trimmed):
        issues.append(
            CompanyValidationIssue("company", "Company name contains invalid characters", "INVALID_CHARACTERS")
        )

    if any(pattern.search(trimmed) for pattern in SUSPICIOUS_PATTERNS):
        issues.append(
            CompanyValidationIssue("company", "Company name contains potentially unsafe content", "SECURITY_VIOLATION")
        )

    return issues


def validate_company_name(company: Any) -> str:
    """
    Return the trimmed company name.

    Raises:
        MarketIntelligenceError: VALIDATION_FAILED (400) listing every issue
    """
    issues = collect_company_name_issues(company)
    if issues:
        raise MarketIntelligenceError(
            f"Company name validation failed: {', '.join(issue.message for issue in issues)}",
            "VALIDATION_FAILED",
            400,
            issues,
        )
    return company.strip()


class MarketIntelligenceService:
    """
    Serves market intelligence through a keyed TTL cache.

    Per key: absent -> fresh (after generation) -> stale (TTL elapsed, read as
    a miss) -> absent (swept or invalidated). Concurrent misses for the same
    key share one in-flight generation; different keys never wait on each other.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        client: NewsClient | None = None,
        ttl_seconds: float | None = None,
        cleanup_interval_seconds: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store or InMemoryCacheStore()
        self.client = client or NewsClient()
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.intelligence_cache_ttl_seconds)
        self.cleanup_interval = (
            cleanup_interval_seconds
            if cleanup_interval_seconds is not None
            else settings.intelligence_cleanup_interval_seconds
        )
        self.max_entries = max_entries if max_entries is not None else settings.intelligence_cache_max_entries
        self.clock = clock

        self._in_flight: Dict[str, asyncio.Task] = {}
        self._in_flight_lock = asyncio.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None
        self._request_count = 0
        self._cache_hits = 0

    validate_company_name = staticmethod(validate_company_name)

    async def get_market_intelligence(self, company: Any) -> MarketIntelligenceData:
        """
        Return cached data for a company, generating it once on a miss.

        Raises:
            MarketIntelligenceError: VALIDATION_FAILED (400) for a bad name,
                GET_MARKET_INTELLIGENCE_FAILED (500) when generation fails
        """
        self._request_count += 1
        name = validate_company_name(company)
        key = cache_key(name)

        cached = await self._fresh_entry(key)
        if cached is not None:
            return cached

        # Only the in-flight map is touched under the lock; store I/O happens outside it
        async with self._in_flight_lock:
            task = self._in_flight.get(key)
            if task is None:
                task = asyncio.create_task(self._load_or_generate(key, name))
                self._in_flight[key] = task
            else:
                intelligence_cache_counter.labels(result="coalesced").inc()
                logger.debug("Joining in-flight generation", extra={"company": name})

        # Shield so one cancelled caller does not cancel the shared generation
        return await asyncio.shield(task)

    async def _fresh_entry(self, key: str) -> Optional[MarketIntelligenceData]:
        entry = await self.store.get(key)
        if entry is None or entry.is_expired(self.clock()):
            return None
        self._cache_hits += 1
        intelligence_cache_counter.labels(result="hit").inc()
        logger.debug("Cache hit", extra={"cache_key": key})
        return entry.data

    async def _load_or_generate(self, key: str, company: str) -> MarketIntelligenceData:
        try:
            # A generation may have finished between the first read and the lock
            cached = await self._fresh_entry(key)
            if cached is not None:
                return cached
            intelligence_cache_counter.labels(result="miss").inc()
            return await self._generate_and_store(key, company)
        finally:
            self._in_flight.pop(key, None)

    async def _generate_and_store(self, key: str, company: str) -> MarketIntelligenceData:
        try:
            raw = await self.client.fetch(company)
            sentiment = calculate_sentiment(raw.headlines)
            now = self.clock()
            data = MarketIntelligenceData(
                sentiment=sentiment,
                headlines=tuple(
                    NewsHeadline(title=h.title, source=h.source, published_at=h.published_at, url=h.url)
                    for h in raw.headlines[:HEADLINE_COUNT]
                ),
                article_count=raw.article_count,
                last_updated=now,
                company=company,
            )
            await self.store.set(key, CacheEntry(data=data, created_at=now, expires_at=now + self.ttl))
            await self._enforce_capacity()
            logger.info("Generated and cached market intelligence", extra={"company": company})
            return data

        except Exception as e:
            intelligence_generation_failures_counter.inc()
            logger.error(f"Market intelligence generation failed: {e}", extra={"company": company})
            raise MarketIntelligenceError(
                f'Failed to get market intelligence for company "{company}": {e}',
                "GET_MARKET_INTELLIGENCE_FAILED",
                500,
                e,
            ) from e

    async def _enforce_capacity(self) -> None:
        """Sweep, then evict oldest entries, once the store grows past max_entries"""
        size = await self.store.size()
        if size > self.max_entries:
            await self.store.purge_expired(self.clock())
            size = await self.store.size()
            if size > self.max_entries:
                evicted = await self.store.evict_oldest(size - self.max_entries)
                logger.info("Evicted oldest cache entries", extra={"evicted": evicted})
        intelligence_cache_size_gauge.set(await self.store.size())

    async def clear_expired_cache(self) -> int:
        """Remove expired entries now; returns how many were removed"""
        removed = await self.store.purge_expired(self.clock())
        if removed:
            logger.debug("Cleaned up expired cache entries", extra={"removed": removed})
        intelligence_cache_size_gauge.set(await self.store.size())
        return removed

    async def clear_cache(self, company: Optional[str] = None) -> int:
        """
        Invalidate one company's entry, or everything when no company is given.

        Clearing everything also resets hit statistics.
        """
        try:
            if company:
                removed = 1 if await self.store.delete(cache_key(company)) else 0
            else:
                removed = await self.store.clear()
                self._request_count = 0
                self._cache_hits = 0
        except Exception as e:
            target = f' for company "{company}"' if company else ""
            raise MarketIntelligenceError(f"Failed to clear cache{target}: {e}", "CACHE_CLEAR_FAILED", 500, e) from e

        logger.info("Cleared cache entries", extra={"company": company, "removed": removed})
        intelligence_cache_size_gauge.set(await self.store.size())
        return removed

    async def get_cache_size(self) -> int:
        return await self.store.size()

    def _hit_rate(self) -> float:
        if self._request_count == 0:
            return 0.0
        return round(self._cache_hits / self._request_count, 2)

    async def get_cache_stats(self) -> Dict[str, Any]:
        return {
            "total_entries": await self.store.size(),
            "expired_entries": await self.store.count_expired(self.clock()),
            "cache_hit_rate": self._hit_rate(),
        }

    async def get_service_info(self) -> Dict[str, Any]:
        return {
            "cache_size": await self.store.size(),
            "request_count": self._request_count,
            "cache_hit_rate": self._hit_rate(),
            "ttl_minutes": self.ttl.total_seconds() / 60,
            "is_cleanup_active": self.is_cleanup_active,
        }

    # Periodic sweep

    @property
    def is_cleanup_active(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cache_cleanup(self) -> None:
        """Start the background sweep on the running event loop"""
        if self.is_cleanup_active:
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cache_cleanup(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                await self.clear_expired_cache()
            except Exception as e:
                logger.error(f"Cache sweep failed: {e}")

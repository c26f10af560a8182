"""Simulated news source client - wraps the deterministic generator with provider-like latency"""

import asyncio
import random
from typing import Callable
from pulse_gateway.domain.intelligence import HEADLINE_COUNT, GeneratedMarketData, generate_market_data
from pulse_gateway.domain.exceptions import IntelligenceSourceError
from pulse_gateway.config import settings
from pulse_gateway.infrastructure.observability.metrics import intelligence_generation_latency_histogram


class NewsClient:
    """Client for the (simulated) news and sentiment source"""

    def __init__(
        self,
        latency_min_ms: int | None = None,
        latency_max_ms: int | None = None,
        generator: Callable[[str], GeneratedMarketData] = generate_market_data,
    ):
        self.latency_min_ms = settings.intelligence_latency_min_ms if latency_min_ms is None else latency_min_ms
        self.latency_max_ms = settings.intelligence_latency_max_ms if latency_max_ms is None else latency_max_ms
        self.generator = generator

    async def fetch(self, company: str) -> GeneratedMarketData:
        """
        Produce raw headlines and article count for a company.

        Latency is uniform in [latency_min_ms, latency_max_ms]; zero skips the sleep.

        Raises:
            IntelligenceSourceError: Generator failed or returned malformed data
        """
        with intelligence_generation_latency_histogram.time():
            delay_ms = random.randint(self.latency_min_ms, max(self.latency_min_ms, self.latency_max_ms))
            if delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)

            try:
                data = self.generator(company)
            except Exception as e:
                raise IntelligenceSourceError(f"News source failed for {company!r}: {e}") from e

        if len(data.headlines) < HEADLINE_COUNT or data.article_count <= 0:
            raise IntelligenceSourceError(f"News source returned incomplete data for {company!r}")
        return data

"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from pulse_gateway.api.main import create_app
from pulse_gateway.domain.intelligence import generate_market_data
from pulse_gateway.domain.models import (
    ContractMetrics,
    EngagementMetrics,
    HealthScoreInput,
    PaymentMetrics,
    SupportMetrics,
)
from pulse_gateway.infrastructure.clients.news import NewsClient
from pulse_gateway.services.market_intelligence import MarketIntelligenceService


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def generator() -> MagicMock:
    """Counting wrapper around the real deterministic generator"""
    return MagicMock(wraps=generate_market_data)


@pytest.fixture
def news_client(generator: MagicMock) -> NewsClient:
    """News client with no simulated latency"""
    return NewsClient(latency_min_ms=0, latency_max_ms=0, generator=generator)


@pytest.fixture
def service(news_client: NewsClient, clock: FakeClock) -> MarketIntelligenceService:
    return MarketIntelligenceService(client=news_client, clock=clock, cleanup_interval_seconds=0.01)


@pytest.fixture
def client(service: MarketIntelligenceService) -> TestClient:
    """Create FastAPI test client with an isolated cache"""
    app = create_app(market_intelligence_service=service)
    return TestClient(app)


@pytest.fixture
def default_payment() -> PaymentMetrics:
    """Payment section equal to the scorer defaults (scores 81)"""
    return PaymentMetrics(
        days_since_last_payment=30,
        average_payment_delay=5,
        overdue_amount=0,
        payment_method_reliability=0.8,
        billing_cycle_adherence=0.9,
    )


@pytest.fixture
def healthy_input() -> HealthScoreInput:
    """Established customer with strong metrics across all four factors"""
    return HealthScoreInput(
        customer_age=420,
        payment_history=PaymentMetrics(
            days_since_last_payment=4,
            average_payment_delay=0,
            overdue_amount=0,
            payment_method_reliability=1.0,
            billing_cycle_adherence=1.0,
        ),
        engagement_data=EngagementMetrics(
            login_frequency=10,
            feature_usage_count=12,
            session_duration_average=45,
            page_views=280,
            support_ticket_volume=0,
        ),
        contract_info=ContractMetrics(
            days_until_renewal=180,
            contract_value=24000,
            subscription_tier="enterprise",
            recent_upgrades=2,
            recent_downgrades=0,
            auto_renewal_status=True,
        ),
        support_data=SupportMetrics(
            average_resolution_time=2,
            satisfaction_score=5,
            escalation_count=0,
            self_service_ratio=0.8,
        ),
    )


@pytest.fixture
def at_risk_input() -> HealthScoreInput:
    """Customer with overdue payments, low engagement and an overdue renewal"""
    return HealthScoreInput(
        customer_age=200,
        payment_history=PaymentMetrics(
            days_since_last_payment=120,
            average_payment_delay=30,
            overdue_amount=8000,
            payment_method_reliability=0.4,
            billing_cycle_adherence=0.3,
        ),
        engagement_data=EngagementMetrics(
            login_frequency=0,
            feature_usage_count=1,
            session_duration_average=3,
            page_views=2,
            support_ticket_volume=12,
        ),
        contract_info=ContractMetrics(
            days_until_renewal=-10,
            contract_value=500,
            subscription_tier="basic",
            recent_upgrades=0,
            recent_downgrades=2,
            auto_renewal_status=False,
        ),
        support_data=SupportMetrics(
            average_resolution_time=96,
            satisfaction_score=1.5,
            escalation_count=6,
            self_service_ratio=0.1,
        ),
    )

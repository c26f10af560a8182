"""Pydantic schemas for API request/response validation"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from pulse_gateway.domain.models import (
    Customer,
    FactorScore,
    HealthScoreResult,
    MarketIntelligenceData,
    SubscriptionTier,
)


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase, emits camelCase"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


WEIGHT_SUM_TOLERANCE = 1e-6


class WeightsSchema(CamelModel):
    payment: float = Field(0.4, ge=0, le=1)
    engagement: float = Field(0.3, ge=0, le=1)
    contract: float = Field(0.2, ge=0, le=1)
    support: float = Field(0.1, ge=0, le=1)

    @model_validator(mode="after")
    def check_sum(self) -> "WeightsSchema":
        total = self.payment + self.engagement + self.contract + self.support
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Weights must sum to 1.0, got {total:g}")
        return self


class HealthScoreRequest(CamelModel):
    """
    Request body for POST /v1/health-score.

    Metric sections stay loosely typed; the domain validator reports every
    bad field in one response.
    """

    customer_age: Any = None
    payment_history: Any = None
    engagement_data: Any = None
    contract_info: Any = None
    support_data: Any = None
    weights: Optional[WeightsSchema] = None
    previous_score: Optional[float] = Field(None, ge=0, le=100)


class FactorScoreSchema(CamelModel):
    score: int
    confidence: float
    weight: float

    @classmethod
    def from_domain(cls, factor: FactorScore) -> "FactorScoreSchema":
        return cls(score=factor.score, confidence=factor.confidence, weight=factor.weight)


class FactorBreakdownSchema(CamelModel):
    payment: FactorScoreSchema
    engagement: FactorScoreSchema
    contract: FactorScoreSchema
    support: FactorScoreSchema


class DataQualitySchema(CamelModel):
    missing_fields: List[str]
    completeness_score: float


class HealthScoreResponse(CamelModel):
    """Response for health score endpoints"""

    overall_score: int
    risk_level: str
    confidence: float
    factor_scores: FactorBreakdownSchema
    trend: str
    last_calculated: datetime
    data_quality: DataQualitySchema
    warnings: List[str] = []
    customer_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: HealthScoreResult, customer_id: Optional[str] = None) -> "HealthScoreResponse":
        breakdown = result.factor_scores
        return cls(
            overall_score=result.overall_score,
            risk_level=result.risk_level.value,
            confidence=result.confidence,
            factor_scores=FactorBreakdownSchema(
                payment=FactorScoreSchema.from_domain(breakdown.payment),
                engagement=FactorScoreSchema.from_domain(breakdown.engagement),
                contract=FactorScoreSchema.from_domain(breakdown.contract),
                support=FactorScoreSchema.from_domain(breakdown.support),
            ),
            trend=result.trend.value,
            last_calculated=result.last_calculated,
            # Section names in camelCase to match the request body
            data_quality=DataQualitySchema(
                missing_fields=[to_camel(name) for name in result.data_quality.missing_fields],
                completeness_score=result.data_quality.completeness_score,
            ),
            warnings=result.warnings,
            customer_id=customer_id,
        )


class SentimentSchema(CamelModel):
    score: float
    label: str
    confidence: float


class HeadlineSchema(CamelModel):
    title: str
    source: str
    published_at: datetime
    url: Optional[str] = None


class MarketIntelligenceResponse(CamelModel):
    """Response for GET /v1/market-intelligence/{company}"""

    sentiment: SentimentSchema
    headlines: List[HeadlineSchema]
    article_count: int
    last_updated: datetime
    company: str

    @classmethod
    def from_domain(cls, data: MarketIntelligenceData) -> "MarketIntelligenceResponse":
        return cls(
            sentiment=SentimentSchema(
                score=data.sentiment.score,
                label=data.sentiment.label.value,
                confidence=data.sentiment.confidence,
            ),
            headlines=[HeadlineSchema(**asdict(h)) for h in data.headlines],
            article_count=data.article_count,
            last_updated=data.last_updated,
            company=data.company,
        )


class CacheStatsResponse(CamelModel):
    total_entries: int
    expired_entries: int
    cache_hit_rate: float


class CacheClearResponse(CamelModel):
    company: Optional[str] = None
    removed: int


class CustomerSchema(CamelModel):
    id: str
    name: str
    company: str
    health_score: Optional[int] = None
    subscription_tier: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerSchema":
        return cls(
            id=customer.id,
            name=customer.name,
            company=customer.company,
            health_score=customer.health_score,
            subscription_tier=SubscriptionTier(customer.subscription_tier).value,
            created_at=customer.created_at,
        )

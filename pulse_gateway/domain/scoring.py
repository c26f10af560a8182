"""Health score engine - core business logic for customer health assessment"""

import random
from datetime import datetime
from typing import Optional

from pulse_gateway.domain.exceptions import HealthScoreValidationError
from pulse_gateway.domain.factors import (
    round_half_up,
    score_contract,
    score_engagement,
    score_payment,
    score_support,
)
from pulse_gateway.domain.models import (
    DEFAULT_WEIGHTS,
    ContractMetrics,
    Customer,
    DataQuality,
    EngagementMetrics,
    FactorBreakdown,
    FactorResult,
    FactorScore,
    HealthScoreInput,
    HealthScoreResult,
    PaymentMetrics,
    RiskLevel,
    ScoreWeights,
    SubscriptionTier,
    SupportMetrics,
    TrendDirection,
    SECTIONS,
)
from pulse_gateway.domain.validation import NEW_CUSTOMER_AGE_DAYS, validate_health_score_input
from pulse_gateway.utils.date_utils import days_between, utc_now

NEW_CUSTOMER_CONFIDENCE_DISCOUNT = 0.7
TREND_THRESHOLD = 5


def determine_risk_level(score: float) -> RiskLevel:
    """
    Map overall score to a risk bucket.

    Score bands:
    - 71+:    healthy
    - 31-70:  warning
    - 0-30:   critical
    """
    if score >= 71:
        return RiskLevel.HEALTHY
    elif score >= 31:
        return RiskLevel.WARNING
    else:
        return RiskLevel.CRITICAL


def calculate_trend(current_score: float, previous_score: Optional[float] = None) -> TrendDirection:
    """Compare against a previous score; a change of exactly +/-5 is still stable"""
    if previous_score is None:
        return TrendDirection.STABLE

    difference = current_score - previous_score
    if difference > TREND_THRESHOLD:
        return TrendDirection.IMPROVING
    if difference < -TREND_THRESHOLD:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def build_factor_breakdown(
    payment: FactorResult,
    engagement: FactorResult,
    contract: FactorResult,
    support: FactorResult,
    weights: ScoreWeights,
) -> FactorBreakdown:
    return FactorBreakdown(
        payment=FactorScore(payment.score, payment.confidence, weights.payment),
        engagement=FactorScore(engagement.score, engagement.confidence, weights.engagement),
        contract=FactorScore(contract.score, contract.confidence, weights.contract),
        support=FactorScore(support.score, support.confidence, weights.support),
    )


def calculate_overall_score(breakdown: FactorBreakdown) -> int:
    """Weighted sum of factor scores, rounded to the nearest integer"""
    factors = (breakdown.payment, breakdown.engagement, breakdown.contract, breakdown.support)
    return round_half_up(sum(f.score * f.weight for f in factors))


def calculate_overall_confidence(breakdown: FactorBreakdown, customer_age: float) -> float:
    """Weighted factor confidence, discounted for customers younger than 90 days, clamped to [0, 1]"""
    factors = (breakdown.payment, breakdown.engagement, breakdown.contract, breakdown.support)
    confidence = sum(f.confidence * f.weight for f in factors)

    if customer_age < NEW_CUSTOMER_AGE_DAYS:
        confidence *= NEW_CUSTOMER_CONFIDENCE_DISCOUNT

    return max(0.0, min(1.0, confidence))


def calculate_health_score(
    data: Optional[HealthScoreInput],
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    previous_score: Optional[float] = None,
) -> HealthScoreResult:
    """
    Main entry point: validate input, score the four factors, and aggregate.

    Weights are not re-validated here; callers must supply weights summing to 1.0.

    Raises:
        HealthScoreValidationError: Input failed validation (lists every violation)
    """
    validation = validate_health_score_input(data)
    if not validation.is_valid:
        raise HealthScoreValidationError(validation.errors, validation.warnings)

    # Factors are independent; order does not matter
    breakdown = build_factor_breakdown(
        score_payment(data.payment_history),
        score_engagement(data.engagement_data),
        score_contract(data.contract_info),
        score_support(data.support_data),
        weights,
    )

    overall_score = calculate_overall_score(breakdown)
    missing_fields = data.missing_sections()

    return HealthScoreResult(
        overall_score=overall_score,
        risk_level=determine_risk_level(overall_score),
        confidence=calculate_overall_confidence(breakdown, data.customer_age),
        factor_scores=breakdown,
        trend=calculate_trend(overall_score, previous_score),
        last_calculated=utc_now(),
        data_quality=DataQuality(
            missing_fields=missing_fields,
            completeness_score=1 - len(missing_fields) / len(SECTIONS),
        ),
        warnings=validation.warnings,
    )


def generate_mock_health_data(customer: Customer, now: Optional[datetime] = None) -> HealthScoreInput:
    """
    Derive realistic metrics for a customer that has no real health data.

    Values scale with the customer's stored health score and subscription tier.
    Deterministic per customer id, and always within validation bounds.
    """
    now = now or utc_now()
    customer_age = days_between(customer.created_at, now) if customer.created_at else 180  # default 6 months

    health = (customer.health_score if customer.health_score is not None else 50) / 100
    tier = SubscriptionTier(customer.subscription_tier or SubscriptionTier.BASIC)
    tier_multiplier = {SubscriptionTier.ENTERPRISE: 1.2, SubscriptionTier.PREMIUM: 1.0}.get(tier, 0.8)
    contract_value = {SubscriptionTier.ENTERPRISE: 15000, SubscriptionTier.PREMIUM: 5000}.get(tier, 1000)

    rng = random.Random(customer.id)

    return HealthScoreInput(
        customer_age=customer_age,
        payment_history=PaymentMetrics(
            days_since_last_payment=max(1, int(30 * (1.2 - health))),
            average_payment_delay=max(0, int(10 * (1.1 - health))),
            overdue_amount=int(2000 * (0.6 - health)) if health < 0.4 else 0,
            payment_method_reliability=min(1.0, 0.6 + health * 0.4),
            billing_cycle_adherence=min(1.0, 0.7 + health * 0.3),
        ),
        engagement_data=EngagementMetrics(
            login_frequency=int(2 + health * 10 * tier_multiplier),
            feature_usage_count=int(3 + health * 15 * tier_multiplier),
            session_duration_average=int(10 + health * 50),
            page_views=int(20 + health * 100 * tier_multiplier),
            support_ticket_volume=max(0, int(5 * (1.2 - health))),
        ),
        contract_info=ContractMetrics(
            days_until_renewal=int(30 + health * 300),
            contract_value=contract_value,
            subscription_tier=tier.value,
            recent_upgrades=rng.randint(0, 1) if health > 0.7 else 0,
            recent_downgrades=rng.randint(0, 1) if health < 0.4 else 0,
            auto_renewal_status=health > 0.6,
        ),
        support_data=SupportMetrics(
            average_resolution_time=max(0, int(48 * (1.2 - health))),
            satisfaction_score=max(1.0, min(5.0, 2 + health * 3)),
            escalation_count=max(0, int(3 * (1.1 - health))),
            self_service_ratio=min(1.0, 0.4 + health * 0.5),
        ),
    )

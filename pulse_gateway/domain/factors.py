"""
Factor scorers - four independent pure functions, each mapping a partial
metrics section to a 0-100 score plus a confidence level.

Missing fields are filled from documented defaults before scoring, but
confidence is computed from the partial section as supplied: every field not
supplied costs 0.2, with a floor of 0.3.
"""

import math
from typing import Any, Dict, Optional

from pulse_gateway.domain.models import (
    ContractMetrics,
    EngagementMetrics,
    FactorResult,
    PaymentMetrics,
    SubscriptionTier,
    SupportMetrics,
)

PAYMENT_DEFAULTS: Dict[str, Any] = {
    "days_since_last_payment": 30,
    "average_payment_delay": 5,
    "overdue_amount": 0,
    "payment_method_reliability": 0.8,
    "billing_cycle_adherence": 0.9,
}

ENGAGEMENT_DEFAULTS: Dict[str, Any] = {
    "login_frequency": 2,  # per week
    "feature_usage_count": 5,
    "session_duration_average": 15,  # minutes
    "page_views": 20,
    "support_ticket_volume": 1,
}

CONTRACT_DEFAULTS: Dict[str, Any] = {
    "days_until_renewal": 180,
    "contract_value": 1000,
    "subscription_tier": SubscriptionTier.BASIC.value,
    "recent_upgrades": 0,
    "recent_downgrades": 0,
    "auto_renewal_status": True,
}

SUPPORT_DEFAULTS: Dict[str, Any] = {
    "average_resolution_time": 24,  # hours
    "satisfaction_score": 4,
    "escalation_count": 0,
    "self_service_ratio": 0.7,
}

TIER_SCORES = {
    SubscriptionTier.BASIC.value: 40,
    SubscriptionTier.PREMIUM.value: 70,
    SubscriptionTier.ENTERPRISE.value: 100,
}

CONFIDENCE_PENALTY_PER_MISSING_FIELD = 0.2
CONFIDENCE_FLOOR = 0.3


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a numeric value to [lo, hi]."""
    return max(lo, min(hi, float(x)))


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative scores"""
    return int(math.floor(x + 0.5))


def field_confidence(missing_fields: int) -> float:
    """Confidence from the number of fields the caller did not supply"""
    return max(CONFIDENCE_FLOOR, 1.0 - missing_fields * CONFIDENCE_PENALTY_PER_MISSING_FIELD)


def _resolve(section, section_cls, defaults: Dict[str, Any]):
    """Return (defaulted values, confidence) without losing which fields were supplied"""
    partial = section if section is not None else section_cls()
    data = {**defaults, **partial.supplied()}
    return data, field_confidence(partial.missing_count())


def score_payment(payment: Optional[PaymentMetrics]) -> FactorResult:
    """
    Payment factor: timeliness 40%, method reliability 30%, billing adherence 30%,
    minus 10 points per $1000 overdue (capped at 50).
    """
    data, confidence = _resolve(payment, PaymentMetrics, PAYMENT_DEFAULTS)

    timeliness = clamp(100 - data["days_since_last_payment"] * 0.5 - data["average_payment_delay"] * 2)
    reliability = data["payment_method_reliability"] * 100
    adherence = data["billing_cycle_adherence"] * 100
    overdue_penalty = min(50.0, data["overdue_amount"] / 1000 * 10)

    score = clamp(timeliness * 0.4 + reliability * 0.3 + adherence * 0.3 - overdue_penalty)
    return FactorResult(score=round_half_up(score), confidence=confidence)


def score_engagement(engagement: Optional[EngagementMetrics]) -> FactorResult:
    """
    Engagement factor: login 30%, feature usage 25%, session duration 25%,
    page views 20%, minus a support ticket penalty (capped at 30).

    Login frequency peaks at 10/week and sessions at ~60 minutes; both
    decline beyond that.
    """
    data, confidence = _resolve(engagement, EngagementMetrics, ENGAGEMENT_DEFAULTS)

    logins = data["login_frequency"]
    login_score = clamp(logins * 10 if logins <= 10 else 100 - (logins - 10) * 5)

    feature_score = min(100.0, data["feature_usage_count"] * 10)

    session = data["session_duration_average"]
    session_score = clamp(session * 1.67 if session <= 60 else 100 - (session - 60) * 0.5)

    page_view_score = min(100.0, data["page_views"] * 2)
    support_penalty = min(30.0, data["support_ticket_volume"] * 3)

    score = clamp(
        login_score * 0.3
        + feature_score * 0.25
        + session_score * 0.25
        + page_view_score * 0.2
        - support_penalty
    )
    return FactorResult(score=round_half_up(score), confidence=confidence)


def renewal_score(days_until_renewal: float) -> int:
    """Step function over days to renewal; the discontinuities are intentional"""
    if days_until_renewal < 0:
        return 10  # overdue renewal
    if days_until_renewal < 30:
        return 30
    if days_until_renewal < 90:
        return 70
    return 90


def score_contract(contract: Optional[ContractMetrics]) -> FactorResult:
    """
    Contract factor: renewal timeline 40%, tier 25%, log-scaled value 20%,
    plus upgrade and auto-renewal bonuses, minus a downgrade penalty.
    """
    data, confidence = _resolve(contract, ContractMetrics, CONTRACT_DEFAULTS)

    tier = data["subscription_tier"]
    if isinstance(tier, SubscriptionTier):
        tier = tier.value
    tier_score = TIER_SCORES.get(tier, TIER_SCORES[SubscriptionTier.BASIC.value])

    value_score = min(100.0, math.log10(max(1.0, data["contract_value"] / 100)) * 25)
    upgrade_bonus = min(20.0, data["recent_upgrades"] * 10)
    downgrade_penalty = min(30.0, data["recent_downgrades"] * 15)
    auto_renewal_bonus = 15 if data["auto_renewal_status"] else 0

    score = clamp(
        renewal_score(data["days_until_renewal"]) * 0.4
        + tier_score * 0.25
        + value_score * 0.2
        + upgrade_bonus
        + auto_renewal_bonus
        - downgrade_penalty
    )
    return FactorResult(score=round_half_up(score), confidence=confidence)


def score_support(support: Optional[SupportMetrics]) -> FactorResult:
    """
    Support factor: resolution time 30%, satisfaction 40%, self-service bonus
    (up to 30), minus 8 points per escalation (capped at 40).
    """
    data, confidence = _resolve(support, SupportMetrics, SUPPORT_DEFAULTS)

    resolution_score = clamp(100 - (data["average_resolution_time"] - 2) * 2)  # penalty starts after 2h
    satisfaction_score = (data["satisfaction_score"] - 1) * 25  # 1..5 -> 0..100
    self_service_bonus = data["self_service_ratio"] * 30
    escalation_penalty = min(40.0, data["escalation_count"] * 8)

    score = clamp(resolution_score * 0.3 + satisfaction_score * 0.4 + self_service_bonus - escalation_penalty)
    return FactorResult(score=round_half_up(score), confidence=confidence)

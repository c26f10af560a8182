"""Input validation for health score calculation - the only gate between raw and trusted input"""

import math
from typing import Any, Dict, List, Optional, Tuple

from pulse_gateway.domain.models import HealthScoreInput, SubscriptionTier, ValidationResult, SECTIONS

NEW_CUSTOMER_AGE_DAYS = 90

# (min, max) per numeric field; max None = unbounded
FieldBounds = Tuple[float, Optional[float]]

VALIDATION_CONSTRAINTS: Dict[str, Dict[str, FieldBounds]] = {
    "payment_history": {
        "days_since_last_payment": (0, 365),
        "average_payment_delay": (0, 180),
        "overdue_amount": (0, None),
        "payment_method_reliability": (0, 1),
        "billing_cycle_adherence": (0, 1),
    },
    "engagement_data": {
        "login_frequency": (0, 100),
        "feature_usage_count": (0, 1000),
        "session_duration_average": (0, 480),
        "page_views": (0, 10000),
        "support_ticket_volume": (0, 100),
    },
    "contract_info": {
        "days_until_renewal": (-365, 1095),  # negative allowed for overdue renewals
        "contract_value": (0, None),
        "recent_upgrades": (0, 10),
        "recent_downgrades": (0, 10),
    },
    "support_data": {
        "average_resolution_time": (0, 720),  # 30 days
        "satisfaction_score": (1, 5),
        "escalation_count": (0, 50),
        "self_service_ratio": (0, 1),
    },
}

MISSING_SECTION_WARNINGS = {
    "payment_history": "Payment history data is missing - using defaults",
    "engagement_data": "Engagement data is missing - using defaults",
    "contract_info": "Contract information is missing - using defaults",
    "support_data": "Support data is missing - using defaults",
}

VALID_TIERS = frozenset(tier.value for tier in SubscriptionTier)


def is_valid_number(value: Any) -> bool:
    """True for finite int/float values (bool excluded)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_numeric_field(section: str, field_name: str, value: Any, bounds: FieldBounds, errors: List[str]) -> None:
    """Append one error per violated bound, or a single type error"""
    if not is_valid_number(value):
        errors.append(f"{section}.{field_name} must be a valid number")
        return

    minimum, maximum = bounds
    if value < minimum:
        errors.append(f"{section}.{field_name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        errors.append(f"{section}.{field_name} must be <= {maximum}")


def validate_health_score_input(data: Optional[HealthScoreInput]) -> ValidationResult:
    """
    Validate shape and ranges of a health score input.

    Errors are collected for every violated field (not just the first).
    Missing sections and new customers produce warnings, never errors.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if data is None:
        errors.append("Input data is required")
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    age = data.customer_age
    if not is_valid_number(age) or age < 0:
        errors.append("Customer age must be a non-negative number")
    elif age < NEW_CUSTOMER_AGE_DAYS:
        warnings.append(f"Customer is less than {NEW_CUSTOMER_AGE_DAYS} days old - reduced confidence in score")

    for section, section_cls in SECTIONS:
        metrics = getattr(data, section)
        if metrics is None:
            warnings.append(MISSING_SECTION_WARNINGS[section])
            continue
        if not isinstance(metrics, section_cls):
            errors.append(f"{section} must be an object")
            continue

        for field_name, bounds in VALIDATION_CONSTRAINTS[section].items():
            validate_numeric_field(section, field_name, getattr(metrics, field_name), bounds, errors)

        if section == "contract_info":
            tier = metrics.subscription_tier
            if isinstance(tier, SubscriptionTier):
                tier = tier.value
            if not isinstance(tier, str) or tier not in VALID_TIERS:
                errors.append("Contract subscription tier must be basic, premium, or enterprise")
            if not isinstance(metrics.auto_renewal_status, bool):
                errors.append("Contract auto renewal status must be a boolean")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

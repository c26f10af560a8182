"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class SubscriptionTier(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class RiskLevel(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


def _camel_to_snake(name: str) -> str:
    return "".join("_" + ch.lower() if ch.isupper() else ch for ch in name).lstrip("_")


class _MetricsSection:
    """
    Mixin for partial metric sections.

    Every field is optional: None means "not supplied". Values are kept as
    received so the validation layer can reject malformed ones.
    """

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]):
        """Build a section from a mapping with snake_case or camelCase keys"""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = key if key in known else _camel_to_snake(key)
            if name in known:
                values[name] = value
        return cls(**values)

    def supplied(self) -> Dict[str, Any]:
        """Fields explicitly supplied (not None)"""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def missing_count(self) -> int:
        return sum(1 for f in fields(self) if getattr(self, f.name) is None)


@dataclass
class PaymentMetrics(_MetricsSection):
    days_since_last_payment: Optional[float] = None
    average_payment_delay: Optional[float] = None
    overdue_amount: Optional[float] = None  # currency units
    payment_method_reliability: Optional[float] = None  # 0-1
    billing_cycle_adherence: Optional[float] = None  # 0-1


@dataclass
class EngagementMetrics(_MetricsSection):
    login_frequency: Optional[float] = None  # logins per week
    feature_usage_count: Optional[float] = None
    session_duration_average: Optional[float] = None  # minutes
    page_views: Optional[float] = None
    support_ticket_volume: Optional[float] = None


@dataclass
class ContractMetrics(_MetricsSection):
    days_until_renewal: Optional[float] = None  # negative = overdue renewal
    contract_value: Optional[float] = None
    subscription_tier: Optional[Any] = None
    recent_upgrades: Optional[float] = None
    recent_downgrades: Optional[float] = None
    auto_renewal_status: Optional[Any] = None


@dataclass
class SupportMetrics(_MetricsSection):
    average_resolution_time: Optional[float] = None  # hours
    satisfaction_score: Optional[float] = None  # 1-5
    escalation_count: Optional[float] = None
    self_service_ratio: Optional[float] = None  # 0-1


# Section attribute name -> section class, in scoring order
SECTIONS: Tuple[Tuple[str, type], ...] = (
    ("payment_history", PaymentMetrics),
    ("engagement_data", EngagementMetrics),
    ("contract_info", ContractMetrics),
    ("support_data", SupportMetrics),
)


@dataclass
class HealthScoreInput:
    """Raw scoring input - every section optional, values untrusted until validated"""

    customer_age: Any = None  # days since customer creation
    payment_history: Optional[PaymentMetrics] = None
    engagement_data: Optional[EngagementMetrics] = None
    contract_info: Optional[ContractMetrics] = None
    support_data: Optional[SupportMetrics] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HealthScoreInput":
        """Parse a loosely-typed mapping (e.g. decoded JSON) into a HealthScoreInput"""
        values: Dict[str, Any] = {}
        age = data.get("customer_age", data.get("customerAge"))
        values["customer_age"] = age
        for name, section_cls in SECTIONS:
            raw = data.get(name)
            if raw is None:
                raw = data.get(_snake_to_camel(name))
            if isinstance(raw, section_cls):
                values[name] = raw
            elif isinstance(raw, Mapping):
                values[name] = section_cls.from_dict(raw)
            elif raw is not None:
                values[name] = raw  # malformed section, rejected by validation
        return cls(**values)

    def missing_sections(self) -> List[str]:
        return [name for name, _ in SECTIONS if getattr(self, name) is None]


def _snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class ScoreWeights:
    """Factor weights - must sum to 1.0 (caller responsibility)"""

    payment: float = 0.4
    engagement: float = 0.3
    contract: float = 0.2
    support: float = 0.1


DEFAULT_WEIGHTS = ScoreWeights()


@dataclass(frozen=True)
class FactorResult:
    """Output of a single factor scorer"""

    score: int  # 0-100
    confidence: float  # 0-1


@dataclass(frozen=True)
class FactorScore:
    score: int
    confidence: float
    weight: float


@dataclass(frozen=True)
class FactorBreakdown:
    payment: FactorScore
    engagement: FactorScore
    contract: FactorScore
    support: FactorScore


@dataclass(frozen=True)
class DataQuality:
    missing_fields: List[str]
    completeness_score: float  # 0-1


@dataclass(frozen=True)
class HealthScoreResult:
    """Output of a health score calculation"""

    overall_score: int  # 0-100
    risk_level: RiskLevel
    confidence: float  # 0-1
    factor_scores: FactorBreakdown
    trend: TrendDirection
    last_calculated: datetime
    data_quality: DataQuality
    warnings: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str]
    warnings: List[str]


@dataclass(frozen=True)
class NewsHeadline:
    title: str
    source: str
    published_at: datetime
    url: Optional[str] = None


@dataclass(frozen=True)
class MarketSentiment:
    score: float  # -1 to 1
    label: SentimentLabel
    confidence: float  # 0-1


@dataclass(frozen=True)
class MarketIntelligenceData:
    """Derived market intelligence for a company - immutable so cache hits can share it"""

    sentiment: MarketSentiment
    headlines: Tuple[NewsHeadline, ...]  # exactly 3, newest first
    article_count: int
    last_updated: datetime
    company: str


@dataclass(frozen=True)
class CompanyValidationIssue:
    field: str
    message: str
    code: str


@dataclass
class Customer:
    """Customer record served by the customer repository"""

    id: str
    name: str
    company: str
    health_score: Optional[int] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC
    created_at: Optional[datetime] = None

"""Prometheus metrics for monitoring health score distribution and intelligence cache behaviour"""

from prometheus_client import Counter, Histogram, Gauge

# Health score metrics
health_score_counter = Counter(
    "pulse_health_score_total",
    "Health scores calculated",
    ["risk_level"],  # healthy | warning | critical
)

health_score_validation_failures_counter = Counter(
    "pulse_health_score_validation_failures_total",
    "Health score requests rejected by input validation",
)

health_score_confidence_histogram = Histogram(
    "pulse_health_score_confidence",
    "Confidence of calculated health scores",
    buckets=[0.3, 0.5, 0.7, 0.8, 0.9, 1.0],
)

# Market intelligence cache metrics
intelligence_cache_counter = Counter(
    "pulse_intelligence_cache_requests_total",
    "Market intelligence lookups by cache outcome",
    ["result"],  # hit | miss | coalesced
)

intelligence_generation_latency_histogram = Histogram(
    "pulse_intelligence_generation_seconds",
    "Simulated news source response time",
    buckets=[0.05, 0.1, 0.25, 0.5, 0.8, 1.0, 2.5],
)

intelligence_generation_failures_counter = Counter(
    "pulse_intelligence_generation_failures_total",
    "Failed market intelligence generations",
)

intelligence_cache_size_gauge = Gauge(
    "pulse_intelligence_cache_entries",
    "Entries currently held by the intelligence cache",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_health_score(risk_level: str, confidence: float) -> None:
    """Record score distribution for monitoring portfolio health"""
    health_score_counter.labels(risk_level=risk_level).inc()
    health_score_confidence_histogram.observe(confidence)

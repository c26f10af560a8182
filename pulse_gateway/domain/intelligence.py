"""
Deterministic market intelligence generator.

No live market-data provider is used: headlines, article counts and
sentiment are derived from a hash of the normalised company name, so the
same company always yields the same data for the lifetime of the process.
"""

import hashlib
import random
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from pulse_gateway.domain.models import MarketSentiment, SentimentLabel
from pulse_gateway.utils.date_utils import utc_now

HEADLINE_COUNT = 3

POSITIVE_TEMPLATES = (
    "{company} reports record quarterly revenue",
    "{company} expands into new international markets",
    "{company} announces strategic partnership with industry leader",
    "Analysts upgrade outlook for {company}",
    "{company} launches flagship product to strong reviews",
)

NEUTRAL_TEMPLATES = (
    "{company} schedules annual investor meeting",
    "{company} appoints new board member",
    "{company} publishes yearly sustainability report",
    "{company} updates its product roadmap",
)

NEGATIVE_TEMPLATES = (
    "{company} faces increased regulatory scrutiny",
    "{company} misses earnings expectations",
    "{company} announces workforce reduction",
    "Customers report service disruptions at {company}",
)

SOURCES = (
    "Reuters",
    "Bloomberg",
    "TechCrunch",
    "Financial Times",
    "The Wall Street Journal",
    "Business Insider",
)

POSITIVE_THRESHOLD = 0.2
NEGATIVE_THRESHOLD = -0.2

# Publication times hang off a per-process anchor so repeated calls agree
_PUBLISH_ANCHOR = utc_now().replace(minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class GeneratedHeadline:
    title: str
    source: str
    published_at: datetime
    url: Optional[str]
    sentiment: float  # -1 to 1


@dataclass(frozen=True)
class GeneratedMarketData:
    headlines: List[GeneratedHeadline]
    article_count: int


def company_seed(company: str) -> int:
    """Stable seed from the normalised company name (independent of PYTHONHASHSEED)"""
    digest = hashlib.sha256(company.strip().lower().encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def generate_market_data(company: str) -> GeneratedMarketData:
    """Produce headlines and an article count for a company"""
    rng = random.Random(company_seed(company))
    display_name = company.strip()

    # Company-level bias tilts the mix towards good or bad news
    bias = rng.uniform(-1.0, 1.0)
    positive_weight = max(0.05, 0.35 + bias * 0.3)
    negative_weight = max(0.05, 0.35 - bias * 0.3)
    neutral_weight = 0.3

    used_titles = set()
    headlines = []
    hours_ago = 0
    for _ in range(HEADLINE_COUNT):
        bucket = rng.choices(
            ("positive", "neutral", "negative"),
            weights=(positive_weight, neutral_weight, negative_weight),
        )[0]
        if bucket == "positive":
            templates, sentiment = POSITIVE_TEMPLATES, rng.uniform(0.4, 0.9)
        elif bucket == "negative":
            templates, sentiment = NEGATIVE_TEMPLATES, rng.uniform(-0.9, -0.4)
        else:
            templates, sentiment = NEUTRAL_TEMPLATES, rng.uniform(-0.15, 0.15)

        candidates = [t for t in templates if t not in used_titles] or list(templates)
        template = rng.choice(candidates)
        used_titles.add(template)
        title = template.format(company=display_name)

        hours_ago += rng.randint(1, 36)
        url = f"https://news.example.com/{_slugify(title)}" if rng.random() < 0.7 else None

        headlines.append(
            GeneratedHeadline(
                title=title,
                source=rng.choice(SOURCES),
                published_at=_PUBLISH_ANCHOR - timedelta(hours=hours_ago),
                url=url,
                sentiment=round(sentiment, 3),
            )
        )

    return GeneratedMarketData(headlines=headlines, article_count=rng.randint(5, 60))


def calculate_sentiment(headlines: Sequence[GeneratedHeadline]) -> MarketSentiment:
    """
    Aggregate headline sentiment.

    score = mean headline sentiment; label positive above 0.2, negative
    below -0.2, otherwise neutral; confidence grows with the share of
    headlines agreeing with the label.
    """
    if not headlines:
        return MarketSentiment(score=0.0, label=SentimentLabel.NEUTRAL, confidence=0.0)

    score = round(sum(h.sentiment for h in headlines) / len(headlines), 3)

    if score > POSITIVE_THRESHOLD:
        label = SentimentLabel.POSITIVE
        agreeing = sum(1 for h in headlines if h.sentiment > POSITIVE_THRESHOLD)
    elif score < NEGATIVE_THRESHOLD:
        label = SentimentLabel.NEGATIVE
        agreeing = sum(1 for h in headlines if h.sentiment < NEGATIVE_THRESHOLD)
    else:
        label = SentimentLabel.NEUTRAL
        agreeing = sum(1 for h in headlines if NEGATIVE_THRESHOLD <= h.sentiment <= POSITIVE_THRESHOLD)

    confidence = 0.4 + 0.6 * agreeing / len(headlines)
    return MarketSentiment(score=score, label=label, confidence=round(confidence, 3))

"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from pulse_gateway.config import settings
from pulse_gateway.utils.date_utils import to_iso, utc_now


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = to_iso(utc_now())
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_health_score(
    request_id: str,
    customer_id: Optional[str],
    overall_score: int,
    risk_level: str,
    confidence: float,
    duration_ms: float,
) -> None:
    """Log structured health score outcome for analysis"""
    logging.info(
        "Health score calculated",
        extra={
            "request_id": request_id,
            "customer_id": customer_id,
            "step": "health_score_complete",
            "overall_score": overall_score,
            "risk_level": risk_level,
            "confidence": round(confidence, 3),
            "duration_ms": duration_ms,
        },
    )

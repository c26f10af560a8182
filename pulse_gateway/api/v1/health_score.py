"""Health score endpoints - ad-hoc input and stored customers"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from pulse_gateway.api.v1.schemas import HealthScoreRequest, HealthScoreResponse
from pulse_gateway.api.dependencies import get_customer_repository, get_request_id
from pulse_gateway.infrastructure.repositories.customers import CustomerRepository
from pulse_gateway.domain.models import DEFAULT_WEIGHTS, HealthScoreInput, HealthScoreResult, ScoreWeights
from pulse_gateway.domain.scoring import calculate_health_score, generate_mock_health_data
from pulse_gateway.domain.exceptions import CustomerNotFoundError, HealthScoreValidationError
from pulse_gateway.infrastructure.observability.metrics import (
    record_health_score,
    health_score_validation_failures_counter,
)
from pulse_gateway.infrastructure.observability.logging import log_health_score

router = APIRouter()


def _record(result: HealthScoreResult, request_id: str, customer_id: str | None, start_time: float) -> None:
    duration_ms = (time.time() - start_time) * 1000
    record_health_score(result.risk_level.value, result.confidence)
    log_health_score(
        request_id, customer_id, result.overall_score, result.risk_level.value, result.confidence, duration_ms
    )


@router.post("/health-score", response_model=HealthScoreResponse)
def create_health_score(request_body: HealthScoreRequest, request: Request):
    """
    Calculate a health score from supplied metrics.

    Missing sections are defaulted (and reported in dataQuality/warnings);
    out-of-range or malformed values are rejected with every violation listed.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    data = HealthScoreInput.from_dict(request_body.model_dump(exclude={"weights", "previous_score"}))
    weights = ScoreWeights(**request_body.weights.model_dump()) if request_body.weights else DEFAULT_WEIGHTS

    try:
        result = calculate_health_score(data, weights, request_body.previous_score)
    except HealthScoreValidationError as e:
        health_score_validation_failures_counter.inc()
        logging.warning(f"Health score validation failed: {e}", extra={"request_id": request_id})
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "errors": e.errors, "warnings": e.warnings},
        )

    _record(result, request_id, None, start_time)
    return HealthScoreResponse.from_result(result)


@router.get("/customers/{customer_id}/health-score", response_model=HealthScoreResponse)
def get_customer_health_score(
    customer_id: str,
    request: Request,
    customers: CustomerRepository = Depends(get_customer_repository),
):
    """Score a stored customer from metrics derived from its profile"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        customer = customers.get_by_id(customer_id)
    except CustomerNotFoundError:
        raise HTTPException(status_code=404, detail="Customer not found")

    try:
        result = calculate_health_score(generate_mock_health_data(customer))
    except HealthScoreValidationError as e:
        logging.error(f"Derived metrics failed validation: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    _record(result, request_id, customer_id, start_time)
    return HealthScoreResponse.from_result(result, customer_id=customer_id)

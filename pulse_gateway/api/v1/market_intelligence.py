"""Market intelligence endpoints - cached sentiment and headlines per company"""

import logging
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from pulse_gateway.api.v1.schemas import CacheClearResponse, CacheStatsResponse, MarketIntelligenceResponse
from pulse_gateway.api.dependencies import get_market_intelligence_service, get_request_id
from pulse_gateway.services.market_intelligence import MarketIntelligenceService
from pulse_gateway.domain.exceptions import MarketIntelligenceError

router = APIRouter()


def _to_http_error(error: MarketIntelligenceError, request_id: str) -> HTTPException:
    """Map service errors to HTTP; only validation issues are echoed back"""
    detail = {"message": error.message, "code": error.code}
    if error.status_code < 500:
        logging.warning(f"Market intelligence request rejected: {error}", extra={"request_id": request_id})
        if isinstance(error.details, list):
            detail["details"] = [asdict(issue) for issue in error.details]
    else:
        logging.error(f"Market intelligence request failed: {error}", extra={"request_id": request_id})
        detail["message"] = "Failed to retrieve market intelligence"
    return HTTPException(status_code=error.status_code, detail=detail)


@router.get("/market-intelligence/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(service: MarketIntelligenceService = Depends(get_market_intelligence_service)):
    """Cache size, expired entries awaiting sweep, and hit rate"""
    return CacheStatsResponse(**await service.get_cache_stats())


@router.delete("/market-intelligence/cache", response_model=CacheClearResponse)
async def clear_cache(
    request: Request,
    company: Optional[str] = Query(None, description="Invalidate a single company; omit to clear everything"),
    service: MarketIntelligenceService = Depends(get_market_intelligence_service),
):
    try:
        removed = await service.clear_cache(company)
    except MarketIntelligenceError as e:
        raise _to_http_error(e, get_request_id(request))
    return CacheClearResponse(company=company, removed=removed)


@router.get("/market-intelligence/{company}", response_model=MarketIntelligenceResponse)
async def get_market_intelligence(
    company: str,
    request: Request,
    service: MarketIntelligenceService = Depends(get_market_intelligence_service),
):
    """
    Retrieve sentiment and the three latest headlines for a company.

    Served from cache for 10 minutes after first generation.
    """
    try:
        data = await service.get_market_intelligence(company)
    except MarketIntelligenceError as e:
        raise _to_http_error(e, get_request_id(request))
    return MarketIntelligenceResponse.from_domain(data)

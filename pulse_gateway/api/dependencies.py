"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from pulse_gateway.infrastructure.repositories.customers import CustomerRepository
from pulse_gateway.services.market_intelligence import MarketIntelligenceService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_customer_repository(request: Request) -> CustomerRepository:
    """Provide the application's customer repository"""
    return request.app.state.customers


def get_market_intelligence_service(request: Request) -> MarketIntelligenceService:
    """Provide the shared market intelligence service (one cache per app)"""
    return request.app.state.market_intelligence

"""Domain-specific exceptions"""

from typing import Any, List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class HealthScoreValidationError(DomainException):
    """Health score input failed range/type/enum checks"""

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(f"Invalid input data: {', '.join(self.errors)}")


class IntelligenceSourceError(DomainException):
    """Simulated news source failed to produce data"""

    pass


class MarketIntelligenceError(DomainException):
    """Market intelligence lookup failed, with a machine-readable code and HTTP-equivalent status"""

    def __init__(self, message: str, code: str, status_code: int = 500, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


class CustomerNotFoundError(DomainException):
    """No customer record for the requested id"""

    pass

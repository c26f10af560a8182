"""Data access layer for customer records (in-memory stand-in for a database)"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from pulse_gateway.domain.exceptions import CustomerNotFoundError
from pulse_gateway.domain.models import Customer, SubscriptionTier
from pulse_gateway.utils.date_utils import utc_now

# id, name, company, stored health score, tier, account age in days (None = unknown)
_DEMO_PROFILES = (
    ("1", "Sarah Chen", "TechCorp", 85, SubscriptionTier.ENTERPRISE, 540),
    ("2", "Marcus Webb", "Acme Logistics", 62, SubscriptionTier.PREMIUM, 210),
    ("3", "Priya Patel", "Johnson & Johnson", 74, SubscriptionTier.ENTERPRISE, 900),
    ("4", "Tom Okafor", "Bright Start Co.", 28, SubscriptionTier.BASIC, 45),
    ("5", "Elena Rossi", "Northwind Traders", 45, SubscriptionTier.BASIC, None),
)


def demo_customers(now: Optional[datetime] = None) -> List[Customer]:
    """Demo customers with signup dates relative to `now`, so account ages stay fixed"""
    now = now or utc_now()
    return [
        Customer(customer_id, name, company, score, tier, now - timedelta(days=age) if age is not None else None)
        for customer_id, name, company, score, tier, age in _DEMO_PROFILES
    ]


DEMO_CUSTOMERS = tuple(demo_customers())


class CustomerRepository:
    """Repository for customer records"""

    def __init__(self, customers: Optional[Iterable[Customer]] = None):
        self._customers: List[Customer] = demo_customers() if customers is None else list(customers)

    def get_by_id(self, customer_id: str) -> Customer:
        """
        Fetch a customer by id.

        Raises:
            CustomerNotFoundError: No customer with this id
        """
        customer = next((c for c in self._customers if c.id == customer_id), None)
        if customer is None:
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        return customer

    def list_all(self, search: Optional[str] = None) -> List[Customer]:
        """All customers, optionally filtered by a case-insensitive name or company match"""
        if not search:
            return list(self._customers)
        needle = search.strip().casefold()
        return [c for c in self._customers if needle in c.name.casefold() or needle in c.company.casefold()]

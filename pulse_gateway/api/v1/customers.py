"""Customer listing endpoint"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from pulse_gateway.api.v1.schemas import CustomerSchema
from pulse_gateway.api.dependencies import get_customer_repository
from pulse_gateway.infrastructure.repositories.customers import CustomerRepository

router = APIRouter()


@router.get("/customers", response_model=List[CustomerSchema])
def list_customers(
    search: Optional[str] = Query(None, description="Case-insensitive match on customer or company name"),
    customers: CustomerRepository = Depends(get_customer_repository),
):
    return [CustomerSchema.from_domain(c) for c in customers.list_all(search)]

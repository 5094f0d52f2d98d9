"""Customer endpoints with computed profile metrics."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from apps.api.api.segments import get_record_source
from apps.api.services.record_source import RecordSource
from packages.shared.profiles import enrich_customer

logger = structlog.get_logger()
router = APIRouter()


class CustomersResponse(BaseModel):
    """List of customers with realized value, order count and location."""

    customers: list[dict]
    total_customers: int


@router.get("/customers", response_model=CustomersResponse)
async def list_customers(
    limit: Optional[int] = Query(None, ge=0, description="Maximum number of customers to return"),
    offset: int = Query(0, ge=0, description="Number of customers to skip"),
    source: RecordSource = Depends(get_record_source),
):
    """
    List customers with their computed profiles.

    lifetime_value is the realized value (sum of paid orders), not the
    stored column.

    Returns:
        Customers and the total population size
    """
    records = source.list_customers_with_orders()
    window = records[offset:] if limit is None else records[offset : offset + limit]
    customers = [enrich_customer(record).to_dict() for record in window]

    logger.info("Listed customers", count=len(customers), total=len(records))

    return CustomersResponse(customers=customers, total_customers=len(records))

"""Record sources - where segment resolution reads the customer population from."""

from abc import ABC, abstractmethod
from typing import Iterable, List

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from apps.api.models import Customer
from packages.shared.exceptions import SourceUnavailable
from packages.shared.profiles import CustomerRecord, OrderRecord

logger = structlog.get_logger(__name__)


class RecordSource(ABC):
    """Read-only provider of customers with their orders."""

    @abstractmethod
    def list_customers_with_orders(self) -> List[CustomerRecord]:
        """
        Return the full customer population, each with its orders.

        Raises:
            SourceUnavailable: If the population cannot be read
        """
        pass


class StaticRecordSource(RecordSource):
    """Record source over an in-memory population."""

    def __init__(self, records: Iterable[CustomerRecord]):
        self._records = list(records)

    def list_customers_with_orders(self) -> List[CustomerRecord]:
        return list(self._records)


def customer_to_record(customer: Customer) -> CustomerRecord:
    """Convert an ORM customer (orders loaded) into a CustomerRecord."""
    return CustomerRecord(
        id=customer.id,
        full_name=customer.full_name,
        email=customer.email,
        role=customer.role,
        created_at=customer.created_at,
        last_active_at=customer.last_active_at,
        default_shipping_address=customer.default_shipping_address,
        lifetime_value=customer.lifetime_value,
        orders=[
            OrderRecord(id=order.id, total_amount=order.total_amount, payment_status=order.payment_status)
            for order in customer.orders
        ],
    )


class SQLRecordSource(RecordSource):
    """Record source backed by the customers/orders tables."""

    def __init__(self, db: Session):
        """
        Initialize SQL record source.

        Args:
            db: Database session used for reads
        """
        self.db = db

    def list_customers_with_orders(self) -> List[CustomerRecord]:
        try:
            customers = (
                self.db.query(Customer)
                .options(selectinload(Customer.orders))
                .order_by(Customer.created_at, Customer.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Failed to read customer population", error=str(e))
            raise SourceUnavailable("Customer records could not be read", {"error": str(e)}) from e

        records = [customer_to_record(customer) for customer in customers]
        logger.debug("Loaded customer population", count=len(records))
        return records

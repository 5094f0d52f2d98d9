"""
Customer records and the computed profiles segments are evaluated against.

A ComputedProfile is recomputed from the customer's orders on every
resolution: realized value only counts paid orders, and the stored
lifetime_value column is never trusted because it goes stale.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

PAID_STATUS = "paid"


@dataclass
class OrderRecord:
    """Order as delivered by a record source."""

    id: Any
    total_amount: Any = None
    payment_status: Optional[str] = None


@dataclass
class CustomerRecord:
    """Customer as delivered by a record source, with its orders."""

    id: Any
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    default_shipping_address: Any = None
    lifetime_value: Optional[float] = None  # Stored column, ignored by the engine
    orders: List[OrderRecord] = field(default_factory=list)


@dataclass
class ComputedProfile:
    """Customer record enriched with derived business metrics."""

    record: CustomerRecord
    realized_value: float
    order_count: int
    city: str
    country: str

    # Pass-through record fields
    @property
    def id(self) -> Any:
        return self.record.id

    @property
    def full_name(self) -> Optional[str]:
        return self.record.full_name

    @property
    def email(self) -> Optional[str]:
        return self.record.email

    @property
    def role(self) -> Optional[str]:
        return self.record.role

    @property
    def created_at(self) -> Optional[datetime]:
        return self.record.created_at

    @property
    def last_active_at(self) -> Optional[datetime]:
        return self.record.last_active_at

    def to_dict(self) -> Dict[str, Any]:
        """Record fields merged with computed ones; lifetime_value carries the realized value."""
        return {
            "id": str(self.record.id),
            "full_name": self.record.full_name,
            "email": self.record.email,
            "role": self.record.role,
            "created_at": self.record.created_at.isoformat() if self.record.created_at else None,
            "last_active_at": (
                self.record.last_active_at.isoformat() if self.record.last_active_at else None
            ),
            "default_shipping_address": self.record.default_shipping_address,
            "lifetime_value": self.realized_value,
            "realized_value": self.realized_value,
            "orders_count": self.order_count,
            "city": self.city,
            "country": self.country,
        }


def to_amount(value: Any) -> float:
    """Coerce an order amount to float; anything unparseable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount:  # NaN
        return 0.0
    return amount


def is_paid(order: OrderRecord) -> bool:
    """Check whether an order's payment status is paid (case-insensitive)."""
    status = order.payment_status
    return isinstance(status, str) and status.lower() == PAID_STATUS


def calculate_realized_value(orders: Optional[List[OrderRecord]]) -> float:
    """Sum of total_amount over paid orders."""
    if not orders:
        return 0.0
    return sum(to_amount(order.total_amount) for order in orders if is_paid(order))


def extract_location(address: Any) -> tuple[str, str]:
    """
    Extract (city, country) from a structured shipping address.

    Anything that is not a mapping yields empty strings.
    """
    if not isinstance(address, Mapping):
        return "", ""
    city = address.get("city") or ""
    country = address.get("country") or ""
    return str(city).strip(), str(country).strip()


def enrich_customer(record: CustomerRecord) -> ComputedProfile:
    """Build the computed profile for one customer."""
    orders = record.orders or []
    city, country = extract_location(record.default_shipping_address)
    return ComputedProfile(
        record=record,
        realized_value=calculate_realized_value(orders),
        order_count=len(orders),
        city=city,
        country=country,
    )

"""Customer and order models - the retail records segments are evaluated against."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from apps.api.database import Base


class Customer(Base):
    """Storefront customer account."""

    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    full_name = Column(String(255), nullable=True)
    email = Column(String(320), nullable=True, index=True)
    role = Column(String(50), nullable=True)  # customer, wholesale, vip, ...
    default_shipping_address = Column(JSON, nullable=True)  # {"city": ..., "country": ...}
    lifetime_value = Column(Float, nullable=False, default=0.0)  # Stored snapshot, not used by segments

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_active_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    orders = relationship(
        "Order", back_populates="customer", cascade="all, delete-orphan", order_by="Order.created_at"
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email}, role={self.role})>"


class Order(Base):
    """Order placed by a customer."""

    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(
        UUID(as_uuid=True), ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    total_amount = Column(Numeric(12, 2), nullable=True)
    payment_status = Column(String(50), nullable=True)  # paid, pending, failed, refunded

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="orders")

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, total_amount={self.total_amount}, payment_status={self.payment_status})>"

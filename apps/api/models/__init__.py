"""Database models."""

from apps.api.models.customer import Customer, Order
from apps.api.models.segment import Segment, SegmentSnapshot

__all__ = [
    "Customer",
    "Order",
    "Segment",
    "SegmentSnapshot",
]

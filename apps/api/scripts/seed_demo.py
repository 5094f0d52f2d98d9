"""Seed database with demo customers, orders and segments."""

import logging
import random
from datetime import datetime, timedelta

from apps.api.database import get_db_context
from apps.api.models import Customer, Order, Segment
from apps.api.services.record_source import SQLRecordSource
from apps.api.services.segment_resolver import SegmentResolver
from apps.api.services.segments import SegmentService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CITIES = [
    ("Lagos", "Nigeria"),
    ("Abuja", "Nigeria"),
    ("Accra", "Ghana"),
    ("Nairobi", "Kenya"),
    ("London", "United Kingdom"),
    ("", "Nigeria"),
    ("", ""),
]
FIRST_NAMES = ["Ada", "Chidi", "Kofi", "Amara", "Tunde", "Zainab", "Femi", "Wanjiru", "Emeka", "Grace"]
LAST_NAMES = ["Okafor", "Mensah", "Adeyemi", "Kamau", "Bello", "Owusu", "Smith", "Eze"]
PAYMENT_STATUSES = ["paid", "paid", "paid", "Paid", "pending", "failed", "refunded"]

DEMO_SEGMENTS = [
    ("High Value", [{"field": "lifetime_value", "operator": ">", "value": "500"}]),
    ("Lagos Shoppers", [{"field": "city", "operator": "contains", "value": "lagos"}]),
    (
        "Repeat Wholesale",
        [
            {"field": "role", "operator": "=", "value": "wholesale"},
            {"field": "orders_count", "operator": ">", "value": "2"},
        ],
    ),
    ("Never Ordered", [{"field": "orders_count", "operator": "=", "value": "0"}]),
]


def seed_demo_customers(count: int = 60, seed: int = 7):
    """Seed demo customers with orders."""
    rng = random.Random(seed)
    now = datetime.utcnow()

    with get_db_context() as db:
        existing = db.query(Customer).count()
        if existing > 0:
            logger.info(f"Customers already seeded ({existing} found)")
            return

        for i in range(count):
            first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
            city, country = rng.choice(CITIES)
            address = {"line1": f"{rng.randint(1, 200)} Market Road", "city": city, "country": country}
            customer = Customer(
                full_name=f"{first} {last}",
                email=f"{first.lower()}.{last.lower()}{i}@example.com",
                role=rng.choice(["customer", "customer", "customer", "wholesale", "vip"]),
                default_shipping_address=address if city or country else None,
                created_at=now - timedelta(days=rng.randint(30, 720)),
                last_active_at=now - timedelta(days=rng.randint(0, 120)) if rng.random() > 0.1 else None,
            )
            for _ in range(rng.randint(0, 6)):
                customer.orders.append(
                    Order(
                        total_amount=round(rng.uniform(15, 400), 2),
                        payment_status=rng.choice(PAYMENT_STATUSES),
                        created_at=now - timedelta(days=rng.randint(0, 365)),
                    )
                )
            db.add(customer)

        db.commit()
        logger.info(f"Seeded {count} customers")


def seed_demo_segments():
    """Seed demo segments (counts are computed on save)."""
    with get_db_context() as db:
        existing = db.query(Segment).count()
        if existing > 0:
            logger.info(f"Segments already seeded ({existing} found)")
            return

        service = SegmentService(db, SegmentResolver(SQLRecordSource(db)))
        for name, conditions in DEMO_SEGMENTS:
            segment = service.create_segment(name, conditions)
            logger.info(f"Created segment '{segment.name}' with {segment.cached_count} customers")


if __name__ == "__main__":
    logger.info("Seeding demo data...")
    seed_demo_customers()
    seed_demo_segments()
    logger.info("Demo data seed completed!")

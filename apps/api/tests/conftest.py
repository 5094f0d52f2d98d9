"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from apps.api.database import Base, get_db
from apps.api.main import app
from apps.api.models import Customer, Order
from packages.shared.profiles import CustomerRecord, OrderRecord

NOW = datetime(2025, 6, 1, 12, 0, 0)


def make_record(
    id,
    orders=(),
    city=None,
    country=None,
    last_active_days=None,
    **fields,
):
    """Build a CustomerRecord; orders are (amount, status) pairs."""
    address = None
    if city is not None or country is not None:
        address = {"city": city or "", "country": country or ""}
    return CustomerRecord(
        id=id,
        full_name=fields.pop("full_name", f"Customer {id}"),
        email=fields.pop("email", f"{str(id).lower()}@example.com"),
        role=fields.pop("role", "customer"),
        created_at=fields.pop("created_at", NOW - timedelta(days=200)),
        last_active_at=(NOW - timedelta(days=last_active_days)) if last_active_days is not None else None,
        default_shipping_address=fields.pop("default_shipping_address", address),
        lifetime_value=fields.pop("lifetime_value", 0.0),
        orders=[
            OrderRecord(id=f"{id}-{index}", total_amount=amount, payment_status=status)
            for index, (amount, status) in enumerate(orders)
        ],
        **fields,
    )


@pytest.fixture
def record_factory():
    """Factory for CustomerRecord test data."""
    return make_record


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def population():
    """
    Three-customer reference population.

    A: paid 50 + 70, active 5 days ago, Lagos
    B: paid 200 + unpaid 999, active 40 days ago, no address
    C: no orders, active 2 days ago, Lagos
    """
    return [
        make_record("A", orders=[(50, "paid"), (70, "PAID")], city="Lagos", last_active_days=5),
        make_record("B", orders=[(200, "paid"), (999, "pending")], last_active_days=40),
        make_record("C", city="Lagos", last_active_days=2),
    ]


@pytest.fixture
def test_db():
    """Create test database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def seeded_db(test_db):
    """Test database holding the reference population as rows (relative to the real clock)."""
    now = datetime.utcnow()
    rows = [
        Customer(
            full_name="Ada Okafor",
            email="ada@example.com",
            role="customer",
            default_shipping_address={"city": "Lagos", "country": ""},
            lifetime_value=9999.0,
            created_at=now - timedelta(days=300),
            last_active_at=now - timedelta(days=5),
            orders=[
                Order(total_amount=50, payment_status="paid"),
                Order(total_amount=70, payment_status="Paid"),
            ],
        ),
        Customer(
            full_name="Bola Smith",
            email="bola@example.com",
            role="wholesale",
            default_shipping_address=None,
            created_at=now - timedelta(days=200),
            last_active_at=now - timedelta(days=40),
            orders=[
                Order(total_amount=200, payment_status="paid"),
                Order(total_amount=999, payment_status="pending"),
            ],
        ),
        Customer(
            full_name="Chidi Eze",
            email="chidi@example.com",
            role="customer",
            default_shipping_address={"city": "Lagos"},
            created_at=now - timedelta(days=100),
            last_active_at=now - timedelta(days=2),
        ),
    ]
    test_db.add_all(rows)
    test_db.commit()
    return test_db


@pytest.fixture
def client(seeded_db):
    """Create test client."""
    from fastapi.testclient import TestClient

    def override_get_db():
        try:
            yield seeded_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

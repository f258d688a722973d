"""
Pytest configuration and fixtures for backend tests.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from shared.config.constants import PaymentMethod, Roles
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt
from shared.security.rate_limit import limiter
from rest_api.models import Base, Coupon, MenuItem, Profile, Restaurant
from rest_api.services import events
from rest_api.services.domain.order_service import CartLine, OrderService


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OWNER_PHONE = "+919800000010"
CUSTOMER_PHONE = "+919800000001"


@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema and session for each test.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def published_events(monkeypatch):
    """
    Capture background event publishing instead of talking to Redis.
    Each call is (kind, payload).
    """
    dispatch = AsyncMock()
    monkeypatch.setattr(events.notifier, "_dispatch", dispatch)
    return dispatch


@pytest.fixture(scope="function")
def client(db_session):
    """
    Test client bound to the test session. The lifespan is not run, so no
    PostgreSQL or Redis is needed.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    yield TestClient(app)

    limiter.enabled = True
    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


def _profile(db_session, role: str, phone: str, name: str, **extra) -> Profile:
    profile = Profile(role=role, phone=phone, full_name=name, **extra)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def seed_admin(db_session):
    return _profile(db_session, Roles.SUPER_ADMIN, "+919800000099", "Platform Admin")


@pytest.fixture
def seed_customer(db_session):
    return _profile(db_session, Roles.CUSTOMER, CUSTOMER_PHONE, "Asha")


@pytest.fixture
def seed_other_customer(db_session):
    return _profile(db_session, Roles.CUSTOMER, "+919800000002", "Ravi")


@pytest.fixture
def seed_rider(db_session):
    return _profile(db_session, Roles.RIDER, "+919800000020", "Vikram")


@pytest.fixture
def seed_other_rider(db_session):
    return _profile(db_session, Roles.RIDER, "+919800000021", "Imran")


@pytest.fixture
def seed_owner(db_session):
    return _profile(db_session, Roles.RESTAURANT, OWNER_PHONE, "Spice Route Owner")


@pytest.fixture
def seed_restaurant(db_session, seed_owner):
    """
    Tech fee ₹10, flat delivery ₹40, no free-delivery threshold, zero credit
    with a -₹500 floor, 5% inclusive food GST.
    """
    restaurant = Restaurant(
        name="Spice Route",
        slug="spice-route",
        owner_phone=OWNER_PHONE,
        upi_id="spiceroute@upi",
        tech_fee=Decimal("10"),
        delivery_fee=Decimal("40"),
        free_delivery_threshold=None,
        credit_balance=Decimal("0"),
        min_balance_limit=Decimal("-500"),
        gst_enabled=True,
        food_gst_rate=Decimal("5"),
        is_active=True,
    )
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def seed_menu(db_session, seed_restaurant):
    """Selling prices: paneer ₹250, dal ₹150, gulab jamun ₹60."""
    items = {
        "paneer": MenuItem(
            restaurant_id=seed_restaurant.id,
            name="Paneer Tikka",
            category="Starters",
            base_price=Decimal("240"),
            selling_price=Decimal("250"),
        ),
        "dal": MenuItem(
            restaurant_id=seed_restaurant.id,
            name="Dal Makhani",
            category="Mains",
            base_price=Decimal("140"),
            selling_price=Decimal("150"),
        ),
        "dessert": MenuItem(
            restaurant_id=seed_restaurant.id,
            name="Gulab Jamun",
            category="Desserts",
            base_price=Decimal("50"),
            selling_price=Decimal("60"),
        ),
    }
    db_session.add_all(items.values())
    db_session.commit()
    for item in items.values():
        db_session.refresh(item)
    return items


@pytest.fixture
def seed_coupon(db_session, seed_restaurant):
    """SAVE50: ₹50 off orders of ₹200 or more."""
    coupon = Coupon(
        restaurant_id=seed_restaurant.id,
        code="SAVE50",
        discount_value=Decimal("50"),
        min_order_value=Decimal("200"),
        is_active=True,
    )
    db_session.add(coupon)
    db_session.commit()
    db_session.refresh(coupon)
    return coupon


# =============================================================================
# Auth
# =============================================================================


def auth_headers(profile: Profile) -> dict[str, str]:
    token = sign_jwt({"sub": str(profile.id), "role": profile.role, "phone": profile.phone})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(seed_customer):
    return auth_headers(seed_customer)


@pytest.fixture
def owner_headers(seed_owner):
    return auth_headers(seed_owner)


@pytest.fixture
def other_customer_headers(seed_other_customer):
    return auth_headers(seed_other_customer)


@pytest.fixture
def rider_headers(seed_rider):
    return auth_headers(seed_rider)


@pytest.fixture
def other_rider_headers(seed_other_rider):
    return auth_headers(seed_other_rider)


@pytest.fixture
def admin_headers(seed_admin):
    return auth_headers(seed_admin)


# =============================================================================
# Orders
# =============================================================================


@pytest.fixture
def place_order(db_session, seed_customer, seed_restaurant, seed_menu):
    """
    Place an order straight through the service.

    Usage:
        order = place_order(paneer=2)
        order = place_order(payment_method=PaymentMethod.PREPAID_UPI, dal=1)
    """
    def _place(payment_method: str = PaymentMethod.COD_CASH, customer=None, coupon_code=None, **quantities):
        lines = [
            CartLine(menu_item_id=seed_menu[key].id, quantity=qty)
            for key, qty in (quantities or {"paneer": 2}).items()
        ]
        placed = OrderService(db_session).place_order(
            customer=customer or seed_customer,
            restaurant_id=seed_restaurant.id,
            lines=lines,
            delivery_address="12 MG Road, Bengaluru",
            payment_method=payment_method,
            coupon_code=coupon_code,
            gps_coordinates="12.9716,77.5946",
        )
        return placed.order

    return _place

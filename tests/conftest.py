import os

# Settings are read at import time, so they go in before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["LOGIN_RATE_LIMIT"] = "1000"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENFORCE_ROLES"] = "0"
os.environ.pop("REDIS_URL", None)

from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from core.auth import hash_password
from core.database import Base, get_db
from models import user, discounts, product, shipping, orders  # noqa: F401
from models.discounts import Discount
from models.product import Product, ProductVariant
from models.shipping import ShippingOption
from models.user import User
from routers.paystack import get_paystack_client

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _override_get_db():
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    main.app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


@pytest.fixture
def paystack(client):
    """Install a handler that plays the payment gateway: paystack(lambda request: httpx.Response(...))."""
    seen = []

    def install(handler):
        def _record(request):
            seen.append(request)
            return handler(request)

        transport = httpx.MockTransport(_record)

        async def _client():
            async with httpx.AsyncClient(
                base_url="https://api.paystack.test",
                transport=transport,
                headers={"Authorization": "Bearer sk_test_123"},
            ) as c:
                yield c

        main.app.dependency_overrides[get_paystack_client] = _client
        return seen

    return install


# --- Factories ---

@pytest.fixture
def make_user(db):
    def _make(email="admin@example.com", password="secret-pass", role="ADMIN", name="Admin"):
        u = User(name=name, email=email, password=hash_password(password), role=role)
        db.add(u)
        db.commit()
        db.refresh(u)
        return u
    return _make


@pytest.fixture
def make_product(db):
    def _make(title="Tee", barcode=None, price=10.0, inventory=5, variants=None, category="Apparel"):
        p = Product(
            title=title,
            description=f"{title} description",
            category=category,
            barcode=barcode,
            price=None if variants else price,
            inventory=None if variants else inventory,
            tags=[],
        )
        for v in variants or []:
            p.variants.append(ProductVariant(**v))
        db.add(p)
        db.commit()
        db.refresh(p)
        return p
    return _make


@pytest.fixture
def make_discount(db):
    def _make(code="SAVE10", type="percentage", value=10, products=None, variants=None, **fields):
        d = Discount(
            code=code,
            type=type,
            value=value,
            usage_count=fields.pop("usage_count", 0),
            starts_at=fields.pop("starts_at", datetime.utcnow() - timedelta(days=1)),
            is_active=fields.pop("is_active", True),
            **fields,
        )
        d.products = list(products or [])
        d.variants = list(variants or [])
        db.add(d)
        db.commit()
        db.refresh(d)
        return d
    return _make


@pytest.fixture
def make_shipping(db):
    def _make(name="Standard", price=5.0, delivery_time="3-5 days", status="ACTIVE"):
        s = ShippingOption(name=name, price=price, delivery_time=delivery_time, status=status)
        db.add(s)
        db.commit()
        db.refresh(s)
        return s
    return _make

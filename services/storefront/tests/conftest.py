import os

# Must be set before app modules build their engine from settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ.pop("REDIS_URL", None)

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.cart import ProductSnapshot
from app.domain.checkout import ShippingInfo
from app.domain.models import Base, PaymentMethod, Product
from app.infrastructure.db import get_db
from app.infrastructure.seed import seed_reference_data
from app.infrastructure.session_store import SessionStore
from app.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_reference_data(session)
    yield session
    session.close()


@pytest.fixture
def store():
    return SessionStore(ttl_seconds=3600, max_entries=100)


@pytest.fixture
def client(db, session_factory, store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_store = store
    yield TestClient(app)
    app.dependency_overrides.clear()


def product_by_sku(db, sku: str) -> Product:
    return db.query(Product).filter(Product.sku == sku).one()


def method_by_code(db, code: str) -> PaymentMethod:
    return db.query(PaymentMethod).filter(PaymentMethod.code == code).one()


def make_product(product_id=1, price="10.00", stock=5, name=None, sku=None) -> ProductSnapshot:
    return ProductSnapshot(
        id=product_id,
        name=name or f"Product {product_id}",
        price=Decimal(price),
        stock_quantity=stock,
        sku=sku or f"SKU{product_id:04d}",
    )


@pytest.fixture
def shipping_info() -> ShippingInfo:
    return ShippingInfo(
        email="jane@example.com",
        first_name="Jane",
        last_name="Doe",
        address="1 Main St",
        city="Springfield",
        postal_code="12345",
        country="US",
        phone="555-0100",
    )

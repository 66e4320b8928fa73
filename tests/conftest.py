"""
Shared fixtures: an in-memory SQLite database per test, catalogue factories
and an authenticated TestClient.

Settings are read at import time, so the environment is prepared before any
``app`` module is imported.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MIDTRANS_SERVER_KEY", "SB-Mid-server-test")
os.environ.setdefault("SQLALCHEMY_URL", "sqlite://")
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

import app.models  # noqa: F401
from app.database import get_session
from app.main import app as fastapi_app
from app.models.bundle import Bundle, BundleProduct
from app.models.product import Product
from app.models.seller import Seller
from app.models.user import User
from app.services.checkout_service import create_transaction
from tests.helpers import sqlite_engine


@pytest.fixture
def engine():
    engine = sqlite_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_session_override():
        yield session

    fastapi_app.dependency_overrides[get_session] = get_session_override
    with TestClient(fastapi_app) as client:
        yield client
    fastapi_app.dependency_overrides.clear()


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(first_name="Budi", last_name="Santoso", **kwargs):
        counter["n"] += 1
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            **kwargs,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_seller(session, make_user):
    def _make(name, user=None):
        user = user or make_user(first_name=name, last_name="Store", role="seller")
        seller = Seller(user_id=user.id, name=name, phone="0811000000", city="Jakarta")
        session.add(seller)
        session.commit()
        session.refresh(seller)
        return seller

    return _make


@pytest.fixture
def make_product(session):
    def _make(seller, name, price=50000.0, is_physical=False, **kwargs):
        product = Product(
            seller_id=seller.id,
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=price,
            is_physical=is_physical,
            **kwargs,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_bundle(session):
    def _make(seller, name, products, price=90000.0):
        bundle = Bundle(
            seller_id=seller.id,
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=price,
        )
        session.add(bundle)
        session.commit()
        session.refresh(bundle)
        for product in products:
            session.add(BundleProduct(bundle_id=bundle.id, product_id=product.id))
        session.commit()
        return bundle

    return _make


@pytest.fixture
def buyer(make_user):
    return make_user(first_name="Siti", last_name="Rahma")


@pytest.fixture
def catalog(make_seller, make_product, make_bundle):
    """Two sellers, a physical book each and a digital bundle of two ebooks."""
    seller_a = make_seller("Toko A")
    seller_b = make_seller("Toko B")
    p1 = make_product(seller_a, "Laskar Pelangi", 85000.0, is_physical=True, sku="LP-01", weight=400)
    p2 = make_product(seller_b, "Bumi Manusia", 95000.0, is_physical=True, sku="BM-01", weight=500)
    p3 = make_product(seller_a, "Ebook Satu", 30000.0)
    p4 = make_product(seller_a, "Ebook Dua", 35000.0)
    b1 = make_bundle(seller_a, "Paket Ebook", [p3, p4], price=55000.0)
    return {
        "seller_a": seller_a,
        "seller_b": seller_b,
        "p1": p1,
        "p2": p2,
        "p3": p3,
        "p4": p4,
        "b1": b1,
    }


@pytest.fixture
def t1(session, buyer, catalog):
    """P1 (seller A, physical), P2 (seller B, physical) and bundle B1 (digital)."""
    return create_transaction(
        session,
        customer_id=buyer.id,
        gateway_order_id="ORDER-T1",
        items=[
            {"product_id": catalog["p1"].id},
            {"product_id": catalog["p2"].id},
            {"bundle_id": catalog["b1"].id},
        ],
    )


@pytest.fixture
def recipient():
    return {
        "recipient_name": "Siti Rahma",
        "recipient_phone": "0812345678",
        "address_line": "Jl. Merdeka No. 10",
        "city": "Bandung",
        "province": "Jawa Barat",
        "postal_code": "40111",
        "notes": "Titip satpam",
    }


@pytest.fixture
def shipping_choices(catalog):
    return [
        {"seller_id": catalog["seller_a"].id, "carrier": "jne", "service": "REG", "cost": 15000},
        {"seller_id": catalog["seller_b"].id, "carrier": "jne", "service": "REG", "cost": 12000},
    ]

"""Pytest fixtures for the ordering API tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine, select

from primavera.main import app
from primavera.models import Customer, PointsTransaction, Product, Role, User
from primavera.search import get_menu_index
from primavera.services.identity import get_or_create_customer
from primavera.services.loyalty import adjust_points
from primavera.utils.db import get_session, init_db


@pytest.fixture
def engine():
    """A fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def menu(session):
    """A small menu: three pizzas, a drink, a side and one product that's switched off."""
    products = [
        Product(name="Margherita", description="Tomato, mozzarella and basil",
                ingredients=["tomato", "mozzarella", "basil"], price=Decimal("8.90"),
                category="pizza", sort_order=1),
        Product(name="Diavola", description="Spicy salami and chili",
                ingredients=["tomato", "mozzarella", "salami", "chili"], price=Decimal("11.50"),
                category="pizza", sort_order=2),
        Product(name="Quattro Formaggi", description="Four cheeses",
                ingredients=["mozzarella", "gorgonzola", "parmesan", "emmental"], price=Decimal("11.90"),
                category="pizza", sort_order=3),
        Product(name="Fanta 0.5L", description="Orange drink", price=Decimal("2.50"),
                category="drink", sort_order=1),
        Product(name="Hranolky", description="Crispy fries", ingredients=["potatoes", "salt"],
                price=Decimal("3.90"), category="side", sort_order=1),
        Product(name="Calzone", description="Folded pizza", price=Decimal("12.00"),
                category="pizza", sort_order=4, available=False),
    ]
    for product in products:
        session.add(product)
    session.commit()
    return {product.name: product.id for product in products}


@pytest.fixture
def accounts(session):
    users = {
        "admin": User(name="Pizzeria Admin", email="admin@primavera.sk", role=Role.ADMIN),
        "marco": User(name="Marco Rossi", email="marco@example.com"),
        "lucia": User(name="Lucia", email="lucia@example.com"),
    }
    for user in users.values():
        session.add(user)
    session.commit()
    return {key: user.id for key, user in users.items()}


@pytest.fixture
def client(session, menu, accounts):
    """Test client sharing the test session; each request ends like a real one would."""

    def get_session_override():
        try:
            yield session
        finally:
            session.rollback()

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_menu_index] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers_for(user_id: int) -> dict:
    return {"user-id": str(user_id)}


@pytest.fixture
def admin_headers(accounts):
    return headers_for(accounts["admin"])


@pytest.fixture
def marco_headers(accounts):
    return headers_for(accounts["marco"])


@pytest.fixture
def marco(session, accounts):
    """Marco's loyalty profile with 800 points, booked through the ledger."""
    user = session.get(User, accounts["marco"])
    customer = get_or_create_customer(session, user, phone="+421900111222")
    session.commit()
    adjust_points(session, customer.id, 800, "Welcome bonus")
    return customer.id


def ledger_sum(session: Session, customer_id: int) -> int:
    total = session.exec(
        select(func.coalesce(func.sum(PointsTransaction.amount), 0)).where(
            PointsTransaction.customer_id == customer_id
        )
    ).one()
    return int(total)


def balance_of(session: Session, customer_id: int) -> int:
    session.expire_all()
    return session.get(Customer, customer_id).points_balance


def order_payload(menu: dict, lines=None, **overrides) -> dict:
    payload = {
        "items": [
            {"product_id": menu[name], "quantity": quantity}
            for name, quantity in (lines or [("Margherita", 2), ("Fanta 0.5L", 1)])
        ],
        "delivery_type": "delivery",
        "payment_method": "cash_on_delivery",
        "delivery_address": "Hlavná 12",
        "delivery_city": "Bratislava",
        "delivery_postal_code": "81101",
        "delivery_phone": "+421900111222",
    }
    payload.update(overrides)
    return payload

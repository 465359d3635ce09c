"""Pytest fixtures for YUANDI."""
import os

import pytest

# Set environment BEFORE importing app/db so the default engine stays in memory
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

from app import create_app
from config import YuandiConfig
from yuandi.config import AppConfig
from yuandi.db.session import build_engine, build_session_factory, init_db
from yuandi.domain import InMemorySequenceCounter, OrderInput, OrderItem
from yuandi.services import OrderService


@pytest.fixture
def order_input():
    return OrderInput(
        customer_name="홍길동",
        customer_phone="010-1234-5678",
        pccc="P123456789012",
        shipping_address="서울시 강남구 테헤란로 123",
        items=[
            OrderItem(product_id="prod-1", product_name="iPhone 15", quantity=2, price=5000),
            OrderItem(product_id="prod-2", product_name="AirPods", quantity=1, price=2000),
        ],
    )


@pytest.fixture
def counter():
    return InMemorySequenceCounter()


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def order_service(session_factory):
    return OrderService(session_factory)


@pytest.fixture
def app(tmp_path):
    """Flask app with TESTING config, in-memory DB and a temp data dir."""
    config = YuandiConfig(
        secret_key="test-secret-key",
        admin_username="admin",
        admin_password="admin-pass",
        project_root=tmp_path,
        app_config=AppConfig(
            database_url="sqlite:///:memory:",
            secret_key="test-secret-key",
            log_level="WARNING",
            currency="KRW",
            settlement_currency="CNY",
            korea_exim_api_key=None,
            fixer_api_key=None,
        ),
    )
    flask_app = create_app(config)
    flask_app.config["TESTING"] = True
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(app, client):
    """Login helper. Creates a staff account with the given role and logs in."""

    def _login(role="admin"):
        repo = app.extensions["yuandi_components"]["staff_repo"]
        username = f"{role}-user"
        if repo.get_by_username(username) is None:
            repo.add_staff(username=username, password="secret", role=role)
        r = client.post("/auth/login", json={"username": username, "password": "secret"})
        assert r.status_code == 200
        return client

    return _login


@pytest.fixture
def order_payload():
    return {
        "customer_name": "홍길동",
        "customer_phone": "010-1234-5678",
        "pccc": "P123456789012",
        "shipping_address": "서울시 강남구 테헤란로 123",
        "items": [
            {"product_id": "p1", "product_name": "립스틱", "quantity": 2, "price": 100},
            {"product_id": "p2", "product_name": "마스크팩", "quantity": 1, "price": 50},
        ],
    }

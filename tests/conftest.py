"""Shared fixtures: settings, an in-memory orders database, and API clients."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storepay.common.config import load_settings
from storepay.common.db import Base
from storepay.common.signing import WEBHOOK_SIGNATURE_FIELDS, compute_signature
from storepay.services.checkout.main import create_app as create_checkout_app
from storepay.services.orders.models import Order
from storepay.services.webhook.main import create_app as create_webhook_app


SECRET = "s3cr3t"
MERCHANT = "M1"
SITE_URL = "https://shop.example.com"


@pytest.fixture
def settings():
    return load_settings(
        _env_file=None,
        service_name="test",
        postgres_dsn="sqlite://",
        merchant_address=MERCHANT,
        payment_secret_key=SECRET,
        site_url=SITE_URL,
        tracing_enabled=False,
    )


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def add_order(session_factory):
    """Insert a pending order directly, bypassing checkout."""

    def _add(order_id: str = "order-123", amount: str = "10.00", currency: str = "USD", **fields) -> None:
        with session_factory() as db:
            db.add(
                Order(
                    id=order_id,
                    description=fields.pop("description", f"Order {order_id}"),
                    total_amount=Decimal(amount),
                    currency=currency,
                    status=fields.pop("status", "pending"),
                    payment_status=fields.pop("payment_status", "pending"),
                    **fields,
                )
            )
            db.commit()

    return _add


@pytest.fixture
def load_order(session_factory):
    def _load(order_id: str = "order-123") -> Order | None:
        with session_factory() as db:
            return db.get(Order, order_id)

    return _load


@pytest.fixture
def signed_webhook():
    """Build a webhook payload signed with the test secret."""

    def _build(status: str = "1", operation_id: str = "order-123", amount: str = "10.00", **extra) -> dict:
        payload = {"o": operation_id, "oa": MERCHANT, "c": "USD", "s": amount, "st": status, "pid": "pid-1"}
        payload.update(extra)
        payload["sign"] = compute_signature(payload, SECRET, WEBHOOK_SIGNATURE_FIELDS)
        return payload

    return _build


@pytest.fixture
def checkout_client(settings, session_factory):
    with TestClient(create_checkout_app(settings, session_factory)) as client:
        yield client


@pytest.fixture
def webhook_client(settings, session_factory):
    with TestClient(create_webhook_app(settings, session_factory)) as client:
        yield client

# tests/conftest.py

import hashlib
import hmac
import itertools
import json
import os
from datetime import timedelta

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "whsec_test"

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_payment_gateway
from src.domain.exceptions import PaymentGatewayError
from src.domain.time_utils import utc_now
from src.infrastructure.db.models import Base
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.payments.razorpay_gateway import PaymentOrder, RazorpayGateway
from src.main import app

WEBHOOK_SECRET = "whsec_test"


class FakeGateway(RazorpayGateway):
    """Razorpay gateway with order creation served locally."""

    def __init__(self):
        super().__init__(
            key_id="rzp_test_key",
            key_secret="rzp_test_secret",
            webhook_secret=WEBHOOK_SECRET,
        )
        self._counter = itertools.count(1)
        self.orders = []

    def create_order(self, amount_paise, receipt, notes):
        order = PaymentOrder(
            order_id=f"order_test_{next(self._counter)}",
            amount=amount_paise,
            currency=self.currency,
            key_id=self.key_id,
        )
        self.orders.append((order, receipt, notes))
        return order


class FailingGateway(FakeGateway):
    def create_order(self, amount_paise, receipt, notes):
        raise PaymentGatewayError("Failed to create payment order")


class Api:
    """Request helpers shared by the integration tests."""

    admin_headers = {"X-Admin-Token": "test-admin-token"}

    def __init__(self, client: TestClient):
        self.client = client

    @staticmethod
    def headers(email: str, name: str | None = None) -> dict:
        headers = {"X-User-Email": email}
        if name:
            headers["X-User-Name"] = name
        return headers

    @staticmethod
    def sign(order_id: str, payment_id: str, secret: str = WEBHOOK_SECRET) -> str:
        return hmac.new(
            secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()

    def send_webhook(self, event, order_id, payment_id, signature=None, event_id=None):
        headers = {
            "Content-Type": "application/json",
            "X-Razorpay-Signature": signature or self.sign(order_id, payment_id),
        }
        if event_id:
            headers["X-Razorpay-Event-Id"] = event_id
        body = {
            "event": event,
            "payload": {"payment": {"entity": {"id": payment_id, "order_id": order_id}}},
        }
        return self.client.post(
            "/webhooks/payment",
            content=json.dumps(body).encode(),
            headers=headers,
        )

    def make_verified_creator(self, email="creator@example.com", role="COMEDIAN") -> str:
        response = self.client.post(
            "/onboarding",
            json={"role": role, "displayName": "Creator Live"},
            headers=self.headers(email, "Creator"),
        )
        assert response.status_code == 200, response.text
        user_id = response.json()["id"]

        approve = self.client.post(
            f"/admin/creators/{user_id}/approve",
            headers=self.admin_headers,
        )
        assert approve.status_code == 200, approve.text
        return user_id

    def create_show(
        self,
        creator_email="creator@example.com",
        ticket_price=500,
        total_tickets=10,
        days_ahead=7,
        publish=True,
    ) -> dict:
        response = self.client.post(
            "/shows",
            json={
                "title": "Friday Night Standup",
                "date": (utc_now() + timedelta(days=days_ahead)).isoformat(),
                "venue": "The Habitat",
                "ticketPrice": ticket_price,
                "totalTickets": total_tickets,
            },
            headers=self.headers(creator_email),
        )
        assert response.status_code == 201, response.text
        show = response.json()
        if publish:
            published = self.client.post(
                f"/shows/{show['id']}/publish",
                headers=self.headers(creator_email),
            )
            assert published.status_code == 200, published.text
            show = published.json()
        return show

    def book(self, show_id: str, quantity: int, email="fan@example.com"):
        return self.client.post(
            "/bookings",
            json={"showId": show_id, "quantity": quantity},
            headers=self.headers(email),
        )

    def get_show(self, show_id: str, email="creator@example.com") -> dict:
        response = self.client.get(f"/shows/{show_id}", headers=self.headers(email))
        assert response.status_code == 200, response.text
        return response.json()

    def get_booking(self, booking_id: str, email="fan@example.com") -> dict:
        response = self.client.get(f"/bookings/{booking_id}", headers=self.headers(email))
        assert response.status_code == 200, response.text
        return response.json()


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fail_payments(client):
    """Call to make every following order creation fail."""

    def _fail():
        app.dependency_overrides[get_payment_gateway] = FailingGateway

    return _fail


@pytest.fixture
def api(client):
    return Api(client)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()

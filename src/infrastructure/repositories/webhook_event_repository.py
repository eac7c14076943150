# src/infrastructure/repositories/webhook_event_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import PaymentWebhookEvent


class WebhookEventRepository:

    def __init__(self, db: Session, provider: str = "RAZORPAY"):
        self.db = db
        self.provider = provider

    def get_by_event_key(self, event_key: str) -> PaymentWebhookEvent | None:
        stmt = (
            select(PaymentWebhookEvent)
            .where(PaymentWebhookEvent.provider == self.provider)
            .where(PaymentWebhookEvent.event_key == event_key)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def record(
        self,
        event_key: str,
        event_type: str,
        order_id: str,
        payment_id: str,
        payload_hash: str,
        booking_id: str | None,
        status: str,
    ) -> PaymentWebhookEvent:
        event = PaymentWebhookEvent(
            provider=self.provider,
            event_key=event_key,
            event_type=event_type,
            order_id=order_id,
            payment_id=payment_id,
            booking_id=booking_id,
            payload_hash=payload_hash,
            status=status,
        )
        self.db.add(event)
        self.db.flush()
        return event

import hashlib
import json
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from src.domain.exceptions import ServerError
from src.domain.fees import platform_fee, resolve_fee_fraction
from src.domain.state_machine import BookingStatus
from src.infrastructure.payments.razorpay_gateway import RazorpayGateway
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.fee_repository import FeeRepository
from src.infrastructure.repositories.inventory_repository import InventoryRepository
from src.infrastructure.repositories.show_repository import ShowRepository
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.repositories.webhook_event_repository import WebhookEventRepository

logger = logging.getLogger(__name__)

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"


@dataclass(frozen=True)
class WebhookOutcome:
    status_code: int
    body: dict


OK = WebhookOutcome(200, {"status": "ok"})


def _hash_payload(raw_body: bytes) -> str:
    return hashlib.sha256(raw_body).hexdigest()


class PaymentWebhookService:
    """
    Reconciles gateway events with PENDING bookings.

    Permanent conditions (bad signature, unknown booking) come back as
    4xx outcomes so the gateway stops retrying. Anything unexpected is
    raised and ends up as a 500, which the gateway will retry.
    """

    def __init__(self, db: Session, gateway: RazorpayGateway):
        self.db = db
        self.gateway = gateway
        self.booking_repository = BookingRepository(db)
        self.inventory_repository = InventoryRepository(db)
        self.show_repository = ShowRepository(db)
        self.user_repository = UserRepository(db)
        self.fee_repository = FeeRepository(db)
        self.event_repository = WebhookEventRepository(db)

    def handle(
        self,
        raw_body: bytes,
        signature: str | None,
        event_id: str | None = None,
    ) -> WebhookOutcome:
        if not signature:
            logger.warning("Webhook rejected: missing signature")
            return WebhookOutcome(400, {"error": "Missing signature"})

        try:
            envelope = json.loads(raw_body)
            event_type = envelope["event"]
            entity = envelope["payload"]["payment"]["entity"]
            payment_id = entity["id"]
            order_id = entity["order_id"]
        except (ValueError, TypeError, KeyError):
            logger.warning("Webhook rejected: malformed payload")
            return WebhookOutcome(400, {"error": "Malformed webhook payload"})

        if not self.gateway.verify_webhook_signature(order_id, payment_id, signature):
            logger.warning("Webhook rejected: invalid signature. order_id=%s", order_id)
            return WebhookOutcome(400, {"error": "Invalid signature"})

        event_key = event_id or f"{event_type}:{payment_id}"
        if self.event_repository.get_by_event_key(event_key):
            logger.info("Duplicate webhook delivery ignored. event_key=%s", event_key)
            return OK

        if event_type == PAYMENT_CAPTURED:
            outcome, booking_id = self._payment_captured(order_id, payment_id)
        elif event_type == PAYMENT_FAILED:
            outcome, booking_id = self._payment_failed(order_id)
        else:
            logger.info("Ignoring webhook event %s", event_type)
            return OK

        if outcome.status_code == 200:
            self.event_repository.record(
                event_key=event_key,
                event_type=event_type,
                order_id=order_id,
                payment_id=payment_id,
                payload_hash=_hash_payload(raw_body),
                booking_id=booking_id,
                status="PROCESSED" if booking_id else "IGNORED",
            )
        return outcome

    def _payment_captured(self, order_id: str, payment_id: str) -> tuple[WebhookOutcome, str | None]:
        booking = self.booking_repository.get_pending_by_order_id(order_id)
        if not booking:
            logger.error("Booking not found for payment. order_id=%s", order_id)
            return WebhookOutcome(404, {"error": "Booking not found"}), None

        show = self.show_repository.get_by_id(booking.show_id)
        profile = self.user_repository.get_profile(show.created_by)
        fraction = resolve_fee_fraction(
            show.ticket_price,
            self.fee_repository.get_slabs(),
            show_override=show.custom_platform_fee,
            creator_override=profile.custom_platform_fee if profile else None,
        )
        final_fee = platform_fee(booking.total_amount, fraction)

        if not self.booking_repository.transition(
            booking,
            BookingStatus.CONFIRMED,
            payment_id=payment_id,
            platform_fee=final_fee,
        ):
            # A concurrent delivery finished this booking first.
            logger.warning("Booking already settled. booking_id=%s", booking.id)
            return WebhookOutcome(404, {"error": "Booking not found"}), None

        if not self.inventory_repository.mark_sold(booking.show_id, booking.quantity):
            raise ServerError(
                f"Locked inventory out of sync for show {booking.show_id}"
            )

        logger.info(
            "Payment confirmed. booking_id=%s order_id=%s platform_fee=%.2f",
            booking.id,
            order_id,
            final_fee,
        )
        return OK, booking.id

    def _payment_failed(self, order_id: str) -> tuple[WebhookOutcome, str | None]:
        booking = self.booking_repository.get_pending_by_order_id(order_id)
        if not booking:
            logger.info("No pending booking for failed payment. order_id=%s", order_id)
            return OK, None

        if not self.booking_repository.transition(booking, BookingStatus.FAILED):
            logger.warning("Booking already settled. booking_id=%s", booking.id)
            return OK, None

        if not self.inventory_repository.release(booking.show_id, booking.quantity):
            raise ServerError(
                f"Locked inventory out of sync for show {booking.show_id}"
            )

        logger.info(
            "Payment failed, tickets released. booking_id=%s quantity=%s",
            booking.id,
            booking.quantity,
        )
        return OK, booking.id

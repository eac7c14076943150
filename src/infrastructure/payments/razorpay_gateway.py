# src/infrastructure/payments/razorpay_gateway.py

import logging
from dataclasses import dataclass

import razorpay

from src.domain.exceptions import PaymentGatewayError, ServerError
from src.infrastructure import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    key_id: str


class RazorpayGateway:
    """
    Thin wrapper over the Razorpay SDK: order creation and
    webhook signature checks.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str,
        currency: str = "INR",
    ):
        self.key_id = key_id
        self.currency = currency
        self._webhook_secret = webhook_secret
        self._client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(
        self,
        amount_paise: int,
        receipt: str,
        notes: dict,
    ) -> PaymentOrder:
        try:
            order = self._client.order.create(
                {
                    "amount": amount_paise,
                    "currency": self.currency,
                    "receipt": receipt,
                    "notes": notes,
                }
            )
        except Exception as exc:
            logger.exception("Razorpay order creation failed. receipt=%s", receipt)
            raise PaymentGatewayError("Failed to create payment order") from exc

        order_id = order.get("id")
        if not order_id:
            raise PaymentGatewayError("Payment gateway returned no order id")

        return PaymentOrder(
            order_id=order_id,
            amount=amount_paise,
            currency=self.currency,
            key_id=self.key_id,
        )

    def verify_webhook_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """
        HMAC-SHA256 over "order_id|payment_id" with the webhook secret.
        A signature that is not even comparable (non-ASCII) is a mismatch.
        """
        try:
            self._client.utility.verify_webhook_signature(
                f"{order_id}|{payment_id}",
                signature,
                self._webhook_secret,
            )
        except (razorpay.errors.SignatureVerificationError, TypeError, ValueError):
            return False
        return True


def build_razorpay_gateway() -> RazorpayGateway:
    key_id = settings.RAZORPAY_KEY_ID
    key_secret = settings.RAZORPAY_KEY_SECRET
    webhook_secret = settings.RAZORPAY_WEBHOOK_SECRET
    if not key_id or not key_secret:
        logger.error("Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET.")
        raise ServerError()
    if not webhook_secret:
        logger.error("Razorpay webhook secret not configured. Set RAZORPAY_WEBHOOK_SECRET.")
        raise ServerError()
    return RazorpayGateway(
        key_id=key_id,
        key_secret=key_secret,
        webhook_secret=webhook_secret,
        currency=settings.PAYMENT_CURRENCY,
    )

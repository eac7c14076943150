from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, get_payment_gateway, get_raw_body
from src.application.payment_webhook_service import PaymentWebhookService
from src.infrastructure.payments.razorpay_gateway import RazorpayGateway

router = APIRouter(prefix="/webhooks")


@router.post("/payment")
def payment_webhook(
    raw_body: bytes = Depends(get_raw_body),
    x_razorpay_signature: str | None = Header(default=None),
    x_razorpay_event_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    outcome = PaymentWebhookService(db, gateway).handle(
        raw_body,
        signature=x_razorpay_signature,
        event_id=x_razorpay_event_id,
    )
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)

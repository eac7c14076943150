import hmac

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from src.application.onboarding_service import OnboardingService
from src.domain.exceptions import ForbiddenError, UnauthorizedError
from src.infrastructure import settings
from src.infrastructure.db.models import User
from src.infrastructure.db.session import SessionLocal
from src.infrastructure.payments.razorpay_gateway import RazorpayGateway, build_razorpay_gateway


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_payment_gateway() -> RazorpayGateway:
    return build_razorpay_gateway()


async def get_raw_body(request: Request) -> bytes:
    # Signature checks need the exact bytes the gateway sent.
    return await request.body()


def get_current_user(
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    # The auth provider in front of the API sets these headers.
    if not x_user_email or not x_user_email.strip():
        raise UnauthorizedError()
    return OnboardingService(db).get_or_create_user(x_user_email, x_user_name)


def get_optional_user(
    x_user_email: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User | None:
    if not x_user_email or not x_user_email.strip():
        return None
    return OnboardingService(db).get_or_create_user(x_user_email, x_user_name)


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    if not x_admin_token:
        raise UnauthorizedError("Admin session required")
    expected = settings.ADMIN_API_TOKEN
    # Compare bytes: compare_digest refuses non-ASCII str.
    if not expected or not hmac.compare_digest(
        x_admin_token.encode("utf-8"),
        expected.encode("utf-8"),
    ):
        raise ForbiddenError("Invalid admin credentials")

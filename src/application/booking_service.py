import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    InsufficientInventoryError,
    BusinessError,
    NotFoundError,
    ValidationError,
)
from src.domain.fees import PROVISIONAL_PLATFORM_FEE, platform_fee
from src.domain.time_utils import is_in_future
from src.infrastructure import settings
from src.infrastructure.db.models import Booking
from src.infrastructure.payments.razorpay_gateway import PaymentOrder, RazorpayGateway
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.inventory_repository import InventoryRepository
from src.infrastructure.repositories.show_repository import ShowRepository

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    booking: Booking
    payment_order: PaymentOrder


class BookingService:
    """Application service coordinating booking workflow."""

    def __init__(
        self,
        db: Session,
        gateway: RazorpayGateway | None = None,
        max_tickets_per_booking: int = settings.MAX_TICKETS_PER_BOOKING,
        booking_fee_percent: float = settings.BOOKING_FEE_PERCENT,
    ):
        self.db = db
        self.gateway = gateway
        self.max_tickets_per_booking = max_tickets_per_booking
        self.booking_fee_percent = booking_fee_percent
        self.booking_repository = BookingRepository(db)
        self.inventory_repository = InventoryRepository(db)
        self.show_repository = ShowRepository(db)

    def create_booking(
        self,
        user_id: str,
        show_id: str,
        quantity: int,
    ) -> BookingResult:
        """
        Reserve tickets and open a payment order.

        Runs inside the caller's transaction: any failure, including the
        gateway call, must roll back the reservation and the booking row.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        if quantity > self.max_tickets_per_booking:
            raise ValidationError(
                f"Maximum {self.max_tickets_per_booking} tickets per booking"
            )

        show = self.show_repository.get_by_id(show_id)
        if not show:
            raise NotFoundError("Show")

        if not is_in_future(show.date):
            raise BusinessError("Cannot book past shows")

        inventory = show.inventory
        if inventory is None or inventory.available < quantity:
            raise InsufficientInventoryError()

        total_amount = show.ticket_price * quantity
        provisional_fee = platform_fee(total_amount, PROVISIONAL_PLATFORM_FEE)
        booking_fee = round(total_amount * self.booking_fee_percent / 100, 2)

        # The read above may be stale; the conditional update is the real check.
        if not self.inventory_repository.reserve(show.id, quantity):
            raise InsufficientInventoryError()

        booking = self.booking_repository.create_booking(
            user_id=user_id,
            show_id=show.id,
            quantity=quantity,
            total_amount=total_amount,
            platform_fee=provisional_fee,
            booking_fee=booking_fee,
        )

        order = self.gateway.create_order(
            amount_paise=int(round((total_amount + booking_fee) * 100)),
            receipt=booking.id,
            notes={
                "showId": show.id,
                "userId": user_id,
                "quantity": quantity,
                "ticketPrice": show.ticket_price,
            },
        )
        booking.payment_id = order.order_id
        booking.order_id = order.order_id
        self.db.flush()

        logger.info(
            "Booking reserved. booking_id=%s show_id=%s quantity=%s order_id=%s",
            booking.id,
            show.id,
            quantity,
            order.order_id,
        )
        return BookingResult(booking=booking, payment_order=order)

    def list_user_bookings(
        self,
        user_id: str,
        show_id: str | None = None,
    ) -> list[Booking]:
        return self.booking_repository.list_for_user(user_id, show_id)

    def get_booking(self, booking_id: str, user_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)

        # Someone else's booking looks the same as a missing one.
        if not booking or booking.user_id != user_id:
            raise NotFoundError("Booking")

        return booking

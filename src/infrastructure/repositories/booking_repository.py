# src/infrastructure/repositories/booking_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, update, func

from src.infrastructure.db.models import Booking
from src.domain.state_machine import BookingStateMachine, BookingStatus
from src.domain.time_utils import utc_now


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_pending_by_order_id(self, order_id: str) -> Booking | None:
        stmt = (
            select(Booking)
            .where(Booking.payment_id == order_id)
            .where(Booking.status == BookingStatus.PENDING)
        )
        return self.db.execute(stmt).scalars().first()

    def list_for_user(
        self,
        user_id: str,
        show_id: str | None = None,
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.user_id == user_id)
        if show_id:
            stmt = stmt.where(Booking.show_id == show_id)
        stmt = stmt.order_by(Booking.created_at.desc(), Booking.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_for_shows(
        self,
        show_ids: list[str],
        statuses: tuple[BookingStatus, ...],
    ) -> list[Booking]:
        if not show_ids:
            return []
        stmt = (
            select(Booking)
            .where(Booking.show_id.in_(show_ids))
            .where(Booking.status.in_(statuses))
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_for_show(self, show_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.show_id == show_id)
        return self.db.execute(stmt).scalar_one()

    def count_for_user(self, user_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.user_id == user_id)
        return self.db.execute(stmt).scalar_one()

    def sold_quantity(self, show_id: str) -> int:
        stmt = (
            select(func.coalesce(func.sum(Booking.quantity), 0))
            .where(Booking.show_id == show_id)
            .where(Booking.status.in_(BookingStateMachine.sold_statuses()))
        )
        return int(self.db.execute(stmt).scalar_one())

    def list_stale_pending(self, created_before: datetime) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.status.in_(BookingStateMachine.holding_statuses()))
            .where(Booking.created_at < created_before)
            .order_by(Booking.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_booking(
        self,
        user_id: str,
        show_id: str,
        quantity: int,
        total_amount: int,
        platform_fee: float,
        booking_fee: float,
    ) -> Booking:
        booking = Booking(
            user_id=user_id,
            show_id=show_id,
            quantity=quantity,
            total_amount=total_amount,
            platform_fee=platform_fee,
            booking_fee=booking_fee,
            status=BookingStatus.PENDING,
            created_at=utc_now(),
        )

        self.db.add(booking)
        self.db.flush()
        return booking

    def transition(
        self,
        booking: Booking,
        new_status: BookingStatus,
        **values,
    ) -> bool:
        """
        Compare-and-set on status: the row only changes if it still
        holds the status this caller read. Returns False on a lost race.
        """
        BookingStateMachine.validate_transition(booking.status, new_status)

        self.db.flush()
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id)
            .where(Booking.status == booking.status)
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.refresh(booking)
        return result.rowcount == 1

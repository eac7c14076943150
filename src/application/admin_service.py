import logging
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy.orm import Session

from src.domain.exceptions import NotFoundError, ServerError
from src.domain.fees import (
    FeeSlab,
    creator_payout,
    fee_for_price,
    validate_override_percent,
    validate_slabs,
)
from src.domain.state_machine import BookingStateMachine, BookingStatus
from src.domain.time_utils import ensure_utc, utc_now
from src.infrastructure import settings
from src.infrastructure.db.models import Show
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.fee_repository import FeeRepository
from src.infrastructure.repositories.inventory_repository import InventoryRepository
from src.infrastructure.repositories.show_repository import ShowRepository
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class ShowCollection:
    show: Show
    tickets_sold: int = 0
    show_revenue: float = 0
    booking_fee: float = 0
    platform_fee: float = 0

    @property
    def show_earnings(self) -> float:
        return creator_payout(self.show_revenue, self.platform_fee)

    @property
    def platform_earnings(self) -> float:
        return round(self.platform_fee + self.booking_fee, 2)


@dataclass
class CollectionBucket:
    shows: list[ShowCollection] = field(default_factory=list)

    def total(self, attr: str) -> float:
        return round(sum(getattr(item, attr) for item in self.shows), 2)


class AdminService:
    """Back-office operations: fees, disbursement, reporting, cleanup."""

    def __init__(self, db: Session):
        self.db = db
        self.fee_repository = FeeRepository(db)
        self.show_repository = ShowRepository(db)
        self.user_repository = UserRepository(db)
        self.booking_repository = BookingRepository(db)
        self.inventory_repository = InventoryRepository(db)

    # -----------------------------
    # Fees
    # -----------------------------
    def get_fee_slabs(self) -> list[FeeSlab]:
        return self.fee_repository.get_slabs()

    def update_fee_slabs(self, slabs: list[FeeSlab]) -> list[FeeSlab]:
        saved = self.fee_repository.replace_slabs(validate_slabs(slabs))
        logger.info("Fee slabs replaced. count=%s", len(saved))
        return saved

    def update_creator_fee(self, user_id: str, fee_percent: float | None) -> int:
        """
        Store a creator override and push it to every un-disbursed show.
        Returns the number of shows updated.
        """
        fee_percent = validate_override_percent(fee_percent)
        profile = self.user_repository.get_profile(user_id)
        if not profile:
            raise NotFoundError("Creator")

        profile.custom_platform_fee = fee_percent
        slabs = self.fee_repository.get_slabs()
        shows = self.show_repository.list_undisbursed_by_creator(user_id)
        for show in shows:
            show.custom_platform_fee = fee_percent
            if fee_percent is None:
                show.platform_fee_percent = round(fee_for_price(show.ticket_price, slabs) * 100, 2)
            else:
                show.platform_fee_percent = fee_percent
        self.db.flush()

        logger.info(
            "Creator fee updated. user_id=%s fee_percent=%s shows=%s",
            user_id,
            fee_percent,
            len(shows),
        )
        return len(shows)

    def update_show_fee(self, show_id: str, fee_percent: float | None) -> Show:
        fee_percent = validate_override_percent(fee_percent)
        show = self._get_show(show_id)
        show.custom_platform_fee = fee_percent
        if fee_percent is None:
            profile = self.user_repository.get_profile(show.created_by)
            if profile and profile.custom_platform_fee is not None:
                show.platform_fee_percent = profile.custom_platform_fee
            else:
                slabs = self.fee_repository.get_slabs()
                show.platform_fee_percent = round(fee_for_price(show.ticket_price, slabs) * 100, 2)
        else:
            show.platform_fee_percent = fee_percent
        self.db.flush()
        return show

    # -----------------------------
    # Shows
    # -----------------------------
    def _get_show(self, show_id: str) -> Show:
        show = self.show_repository.get_by_id(show_id)
        if not show:
            raise NotFoundError("Show")
        return show

    def set_published(self, show_id: str, published: bool) -> Show:
        show = self._get_show(show_id)
        show.is_published = published
        self.db.flush()
        return show

    def disburse_show(self, show_id: str) -> Show:
        show = self._get_show(show_id)
        show.is_disbursed = True
        self.db.flush()
        logger.info("Show marked as disbursed. show_id=%s", show_id)
        return show

    # -----------------------------
    # Reporting
    # -----------------------------
    def collections(self, show_id: str | None = None) -> dict[str, CollectionBucket]:
        shows = self.show_repository.list_all()
        if show_id:
            shows = [show for show in shows if show.id == show_id]

        items = {show.id: ShowCollection(show=show) for show in shows}
        for booking in self.booking_repository.list_for_shows(
            list(items),
            BookingStateMachine.sold_statuses(),
        ):
            item = items[booking.show_id]
            item.tickets_sold += booking.quantity
            item.show_revenue += booking.total_amount
            item.booking_fee += booking.booking_fee
            item.platform_fee += booking.platform_fee

        now = utc_now()
        collected = list(items.values())
        return {
            "lifetime": CollectionBucket(collected),
            "active": CollectionBucket(
                [c for c in collected if c.show.is_published and ensure_utc(c.show.date) >= now]
            ),
            "pending": CollectionBucket(
                [c for c in collected if not c.show.is_disbursed and ensure_utc(c.show.date) < now]
            ),
            "disbursed": CollectionBucket([c for c in collected if c.show.is_disbursed]),
            "unpublished": CollectionBucket([c for c in collected if not c.show.is_published]),
        }

    def stats(self) -> dict:
        show_ids = [show.id for show in self.show_repository.list_all()]
        revenue = sum(
            booking.total_amount + booking.booking_fee
            for booking in self.booking_repository.list_for_shows(
                show_ids,
                BookingStateMachine.sold_statuses(),
            )
        )
        return {
            "total_users": self.user_repository.count_users(),
            "active_shows": self.show_repository.count_active(utc_now()),
            "total_revenue": round(revenue, 2),
            "pending_approvals": self.user_repository.count_pending_approvals(),
        }

    # -----------------------------
    # Abandoned bookings
    # -----------------------------
    def release_abandoned_bookings(
        self,
        ttl_minutes: int = settings.PENDING_BOOKING_TTL_MINUTES,
    ) -> list[str]:
        """
        Cancel PENDING bookings older than the TTL and hand their
        locked tickets back to available.
        """
        cutoff = utc_now() - timedelta(minutes=ttl_minutes)
        released = []
        for booking in self.booking_repository.list_stale_pending(cutoff):
            if not self.booking_repository.transition(booking, BookingStatus.CANCELLED):
                # Webhook got there first.
                continue
            if not self.inventory_repository.release(booking.show_id, booking.quantity):
                raise ServerError(
                    f"Locked inventory out of sync for show {booking.show_id}"
                )
            released.append(booking.id)
            logger.info(
                "Abandoned booking released. booking_id=%s quantity=%s",
                booking.id,
                booking.quantity,
            )
        return released

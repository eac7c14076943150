import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    BusinessError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.domain.fees import fee_for_price
from src.domain.roles import UserRole, can_create_shows, is_creator
from src.domain.state_machine import BookingStateMachine
from src.domain.time_utils import ensure_utc, is_in_future, utc_now
from src.infrastructure.db.models import Show, User
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.fee_repository import FeeRepository
from src.infrastructure.repositories.inventory_repository import InventoryRepository
from src.infrastructure.repositories.show_repository import ShowRepository
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class ShowStats:
    tickets_sold: int
    revenue: int


class ShowService:

    def __init__(self, db: Session):
        self.db = db
        self.show_repository = ShowRepository(db)
        self.inventory_repository = InventoryRepository(db)
        self.booking_repository = BookingRepository(db)
        self.fee_repository = FeeRepository(db)
        self.user_repository = UserRepository(db)

    def default_fee_percent(self, ticket_price: int, creator_id: str) -> float:
        profile = self.user_repository.get_profile(creator_id)
        if profile and profile.custom_platform_fee is not None:
            return profile.custom_platform_fee
        return round(fee_for_price(ticket_price, self.fee_repository.get_slabs()) * 100, 2)

    def create_show(
        self,
        user: User,
        title: str,
        date: datetime,
        venue: str,
        ticket_price: int,
        total_tickets: int,
        description: str | None = None,
    ) -> Show:
        if not can_create_shows(user.role):
            raise ForbiddenError("Only verified organizers and comedians can create shows")

        if not title or not title.strip() or not venue or not venue.strip():
            raise ValidationError("Title and venue are required")
        if not is_in_future(date):
            raise ValidationError("Show date must be in the future")
        if total_tickets <= 0:
            raise ValidationError("Total tickets must be greater than 0")
        if ticket_price <= 0:
            raise ValidationError("Ticket price must be a positive integer")

        profile = self.user_repository.get_profile(user.id)
        show = self.show_repository.add(
            Show(
                title=title.strip(),
                description=description,
                date=ensure_utc(date),
                venue=venue.strip(),
                ticket_price=ticket_price,
                total_tickets=total_tickets,
                created_by=user.id,
                is_published=False,
                is_disbursed=False,
                custom_platform_fee=profile.custom_platform_fee if profile else None,
                platform_fee_percent=self.default_fee_percent(ticket_price, user.id),
            )
        )
        self.inventory_repository.create_inventory(show.id, total_tickets)
        self.db.flush()
        self.db.refresh(show)

        logger.info("Show created. show_id=%s created_by=%s", show.id, user.id)
        return show

    def list_public_shows(self) -> list[Show]:
        return self.show_repository.list_published_upcoming(utc_now())

    def list_shows_for(self, user: User | None) -> list[Show]:
        if user is None or not is_creator(user.role):
            return self.list_public_shows()
        return self.show_repository.list_visible_to_creator(user.id, utc_now())

    def list_my_shows(self, user: User) -> list[tuple[Show, ShowStats]]:
        shows = self.show_repository.list_by_creator(user.id)
        bookings = self.booking_repository.list_for_shows(
            [show.id for show in shows],
            BookingStateMachine.sold_statuses(),
        )
        stats = {show.id: ShowStats(tickets_sold=0, revenue=0) for show in shows}
        for booking in bookings:
            stats[booking.show_id].tickets_sold += booking.quantity
            stats[booking.show_id].revenue += booking.total_amount
        return [(show, stats[show.id]) for show in shows]

    def get_show(self, show_id: str, user: User | None = None) -> Show:
        show = self.show_repository.get_by_id(show_id)
        if not show:
            raise NotFoundError("Show")

        # Drafts are only visible to whoever created them.
        if not show.is_published:
            if user is None or (show.created_by != user.id and user.role != UserRole.ADMIN):
                raise NotFoundError("Show")

        return show

    def get_owned_show(self, show_id: str, user: User) -> Show:
        show = self.show_repository.get_by_id(show_id)
        if not show:
            raise NotFoundError("Show")
        if show.created_by != user.id and user.role != UserRole.ADMIN:
            raise ForbiddenError("You can only manage your own shows")
        return show

    def update_show(self, show: Show, changes: dict) -> Show:
        # Only the description can be cleared.
        changes = {
            key: value
            for key, value in changes.items()
            if value is not None or key == "description"
        }
        if "title" in changes:
            if not changes["title"] or not changes["title"].strip():
                raise ValidationError("Title is required")
            show.title = changes["title"].strip()
        if "venue" in changes:
            if not changes["venue"] or not changes["venue"].strip():
                raise ValidationError("Venue is required")
            show.venue = changes["venue"].strip()
        if "description" in changes:
            show.description = changes["description"]
        if "date" in changes:
            if not is_in_future(changes["date"]):
                raise ValidationError("Show date must be in the future")
            show.date = ensure_utc(changes["date"])
        if "ticket_price" in changes:
            if changes["ticket_price"] <= 0:
                raise ValidationError("Ticket price must be a positive integer")
            show.ticket_price = changes["ticket_price"]
            if show.custom_platform_fee is None:
                show.platform_fee_percent = self.default_fee_percent(
                    show.ticket_price,
                    show.created_by,
                )
        if "total_tickets" in changes:
            self._resize(show, changes["total_tickets"])

        self.db.flush()
        self.db.refresh(show)
        return show

    def _resize(self, show: Show, total_tickets: int) -> None:
        if total_tickets <= 0:
            raise ValidationError("Total tickets must be greater than 0")

        inventory = self.inventory_repository.lock_inventory(show.id)
        sold = self.booking_repository.sold_quantity(show.id)
        committed = inventory.locked + sold
        if total_tickets < committed:
            raise BusinessError(
                f"Total tickets cannot go below {committed} already reserved or sold"
            )

        delta = total_tickets - show.total_tickets
        if delta and not self.inventory_repository.adjust_available(show.id, delta):
            raise BusinessError("Tickets were reserved meanwhile, please retry")
        show.total_tickets = total_tickets

    def set_published(self, show: Show, published: bool) -> Show:
        show.is_published = published
        self.db.flush()
        logger.info("Show %s. show_id=%s", "published" if published else "unpublished", show.id)
        return show

    def delete_show(self, show: Show) -> None:
        if self.booking_repository.count_for_show(show.id) > 0:
            raise BusinessError("Cannot delete a show that has bookings")
        self.show_repository.delete(show)
        logger.info("Show deleted. show_id=%s", show.id)

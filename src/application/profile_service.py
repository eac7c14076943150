import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from src.domain.exceptions import BusinessError, NotFoundError, ValidationError
from src.domain.roles import (
    ApprovalStatus,
    CreatorKind,
    UserRole,
    can_create_shows,
)
from src.domain.time_utils import ensure_utc, utc_now
from src.infrastructure.db.models import Show, User
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.show_repository import ShowRepository
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnboardingStatus:
    role: UserRole
    onboarding_completed: bool
    creator_kind: CreatorKind | None
    approval_status: ApprovalStatus | None
    admin_note: str | None
    can_create_shows: bool


class ProfileService:
    """
    Self-service account management and the public comedian directory.
    """

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)
        self.show_repository = ShowRepository(db)
        self.booking_repository = BookingRepository(db)

    def onboarding_status(self, user: User) -> OnboardingStatus:
        profile = user.profile
        latest = self.user_repository.latest_approval(user.id)
        return OnboardingStatus(
            role=user.role,
            onboarding_completed=profile is not None,
            creator_kind=profile.kind if profile else None,
            approval_status=latest.status if latest else None,
            admin_note=latest.admin_note if latest else None,
            can_create_shows=can_create_shows(user.role),
        )

    def update_user(self, user: User, name: str) -> User:
        name = name.strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        user.name = name
        self.db.flush()
        return user

    def update_creator_profile(self, user: User, changes: dict) -> User:
        """
        Edit the onboarding details. A rejected creator who edits their
        profile goes back into the review queue.
        """
        profile = user.profile
        if profile is None:
            raise NotFoundError("Creator profile")

        if "display_name" in changes:
            display_name = (changes["display_name"] or "").strip()
            if not display_name:
                raise ValidationError("Display name is required")
            profile.display_name = display_name
        if "contact" in changes:
            profile.contact = changes["contact"]
        if "bio" in changes:
            profile.bio = changes["bio"]

        latest = self.user_repository.latest_approval(user.id)
        if latest is not None and latest.status == ApprovalStatus.REJECTED:
            self.user_repository.add_approval(user.id, profile.kind, ApprovalStatus.PENDING)
            logger.info("Creator resubmitted for review. user_id=%s", user.id)

        self.db.flush()
        return user

    def delete_account(self, user: User) -> None:
        """
        Bookings are financial records and are never deleted, so any
        account they point at stays. Shows without bookings go with it.
        """
        if user.role == UserRole.ADMIN:
            raise BusinessError("Admin users cannot be deleted")
        if self.booking_repository.count_for_user(user.id) > 0:
            raise BusinessError("Cannot delete an account with bookings")

        shows = self.show_repository.list_by_creator(user.id)
        now = utc_now()
        if any(show.is_published and ensure_utc(show.date) >= now for show in shows):
            raise BusinessError(
                "Cannot delete an account with active published shows. Unpublish them first."
            )
        if any(self.booking_repository.count_for_show(show.id) > 0 for show in shows):
            raise BusinessError("Cannot delete an account with shows that have bookings")

        user_id = user.id
        for show in shows:
            self.show_repository.delete(show)
        self.user_repository.delete_user(user)
        logger.info("Account deleted. user_id=%s shows_removed=%s", user_id, len(shows))

    # -----------------------------
    # Comedian directory
    # -----------------------------
    def list_comedians(self) -> list[User]:
        return self.user_repository.list_creators_by_role(UserRole.COMEDIAN_VERIFIED)

    def get_comedian(self, comedian_id: str) -> tuple[User, list[Show]]:
        user = self.user_repository.get_by_id(comedian_id)
        if not user or user.role != UserRole.COMEDIAN_VERIFIED or user.profile is None:
            raise NotFoundError("Comedian")
        shows = self.show_repository.list_published_upcoming(utc_now(), created_by=user.id)
        return user, shows

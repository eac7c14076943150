import logging

from sqlalchemy.orm import Session

from src.domain.exceptions import BusinessError, NotFoundError, ValidationError
from src.domain.roles import (
    ApprovalStatus,
    CreatorKind,
    UserRole,
    is_creator,
    unverified_role,
    verified_role,
)
from src.infrastructure.db.models import ApprovalRecord, User
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class OnboardingService:
    """
    Identity comes from the external auth provider. This service only
    materialises users on first sight and walks creators through
    onboarding and admin review.
    """

    def __init__(self, db: Session):
        self.db = db
        self.user_repository = UserRepository(db)

    def get_or_create_user(self, email: str, name: str | None = None) -> User:
        email = email.strip().lower()
        if not email:
            raise ValidationError("Email is required")

        user = self.user_repository.get_by_email(email)
        if user:
            return user

        user = self.user_repository.create_user(email=email, name=name)
        logger.info("New audience user. user_id=%s", user.id)
        return user

    def onboard_creator(
        self,
        user: User,
        kind: CreatorKind,
        display_name: str,
        contact: str | None = None,
        bio: str | None = None,
    ) -> User:
        if is_creator(user.role) or self.user_repository.get_profile(user.id):
            raise BusinessError("User has already completed onboarding")
        if user.role == UserRole.ADMIN:
            raise BusinessError("Admins cannot onboard as creators")
        if not display_name or not display_name.strip():
            raise ValidationError("Display name is required")

        self.user_repository.create_profile(
            user=user,
            kind=kind,
            display_name=display_name.strip(),
            contact=contact,
            bio=bio,
        )
        user.role = unverified_role(kind)
        self.user_repository.add_approval(user.id, kind, ApprovalStatus.PENDING)
        self.db.flush()
        self.db.refresh(user)

        logger.info("Creator onboarded. user_id=%s kind=%s", user.id, kind.value)
        return user

    def _get_creator(self, user_id: str) -> User:
        user = self.user_repository.get_by_id(user_id)
        if not user or not user.profile:
            raise NotFoundError("Creator")
        return user

    def approve(self, user_id: str) -> ApprovalRecord:
        user = self._get_creator(user_id)
        kind = user.profile.kind
        user.role = verified_role(kind)
        record = self.user_repository.add_approval(user.id, kind, ApprovalStatus.APPROVED)
        logger.info("Creator approved. user_id=%s", user.id)
        return record

    def reject(self, user_id: str, reason: str | None = None) -> ApprovalRecord:
        user = self._get_creator(user_id)
        kind = user.profile.kind
        user.role = unverified_role(kind)
        record = self.user_repository.add_approval(
            user.id,
            kind,
            ApprovalStatus.REJECTED,
            admin_note=reason,
        )
        logger.info("Creator rejected. user_id=%s", user.id)
        return record

    def disable(self, user_id: str) -> User:
        user = self._get_creator(user_id)
        user.role = unverified_role(user.profile.kind)
        self.db.flush()
        logger.info("Creator disabled. user_id=%s", user.id)
        return user

    def list_creators(
        self,
        kind: CreatorKind | None = None,
        pending_only: bool = False,
    ) -> list[tuple[User, ApprovalRecord | None]]:
        users = self.user_repository.list_creators(kind=kind, pending_only=pending_only)
        return [(user, self.user_repository.latest_approval(user.id)) for user in users]

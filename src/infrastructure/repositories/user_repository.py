# src/infrastructure/repositories/user_repository.py

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import delete, select, func

from src.infrastructure.db.models import ApprovalRecord, CreatorProfile, User
from src.domain.roles import ApprovalStatus, CreatorKind, UserRole
from src.domain.time_utils import utc_now


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.profile))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        stmt = (
            select(User)
            .where(User.email == email)
            .options(selectinload(User.profile))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_user(self, email: str, name: str | None = None) -> User:
        user = User(email=email, name=name, role=UserRole.AUDIENCE)
        self.db.add(user)
        self.db.flush()
        return user

    def count_users(self) -> int:
        return self.db.execute(select(func.count(User.id))).scalar_one()

    def get_profile(self, user_id: str) -> CreatorProfile | None:
        stmt = select(CreatorProfile).where(CreatorProfile.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_profile(
        self,
        user: User,
        kind: CreatorKind,
        display_name: str,
        contact: str | None,
        bio: str | None,
    ) -> CreatorProfile:
        profile = CreatorProfile(
            user_id=user.id,
            kind=kind,
            display_name=display_name,
            contact=contact,
            bio=bio,
        )
        self.db.add(profile)
        self.db.flush()
        return profile

    def list_creators(
        self,
        kind: CreatorKind | None = None,
        pending_only: bool = False,
    ) -> list[User]:
        stmt = (
            select(User)
            .join(CreatorProfile, CreatorProfile.user_id == User.id)
            .options(selectinload(User.profile))
            .order_by(User.created_at.desc())
        )
        if kind is not None:
            stmt = stmt.where(CreatorProfile.kind == kind)
        if pending_only:
            stmt = stmt.where(
                User.role.in_((UserRole.ORGANIZER_UNVERIFIED, UserRole.COMEDIAN_UNVERIFIED))
            )
        return list(self.db.execute(stmt).scalars().all())

    def list_creators_by_role(self, role: UserRole) -> list[User]:
        stmt = (
            select(User)
            .join(CreatorProfile, CreatorProfile.user_id == User.id)
            .where(User.role == role)
            .options(selectinload(User.profile))
            .order_by(CreatorProfile.display_name, User.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def delete_user(self, user: User) -> None:
        self.db.execute(delete(ApprovalRecord).where(ApprovalRecord.user_id == user.id))
        if user.profile is not None:
            self.db.delete(user.profile)
        self.db.delete(user)
        self.db.flush()

    def add_approval(
        self,
        user_id: str,
        kind: CreatorKind,
        status: ApprovalStatus,
        admin_note: str | None = None,
    ) -> ApprovalRecord:
        record = ApprovalRecord(
            user_id=user_id,
            kind=kind,
            status=status,
            admin_note=admin_note,
            created_at=utc_now(),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def latest_approval(self, user_id: str) -> ApprovalRecord | None:
        stmt = (
            select(ApprovalRecord)
            .where(ApprovalRecord.user_id == user_id)
            .order_by(ApprovalRecord.created_at.desc(), ApprovalRecord.id.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def count_pending_approvals(self) -> int:
        # Creators still unverified whose latest review was not a rejection.
        pending = 0
        for user in self.list_creators(pending_only=True):
            latest = self.latest_approval(user.id)
            if latest is None or latest.status != ApprovalStatus.REJECTED:
                pending += 1
        return pending

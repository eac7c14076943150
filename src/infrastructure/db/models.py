# src/infrastructure/db/models.py

from sqlalchemy import (
    String,
    Integer,
    Float,
    Boolean,
    DateTime,
    Enum,
    Text,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from uuid import uuid4

from src.infrastructure.db.session import Base
from src.domain.roles import ApprovalStatus, CreatorKind, UserRole
from src.domain.state_machine import BookingStatus


def _uuid() -> str:
    return str(uuid4())


creator_kind_enum = Enum(CreatorKind, name="creator_kind")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.AUDIENCE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    profile: Mapped["CreatorProfile | None"] = relationship(
        back_populates="user",
        uselist=False,
    )


class CreatorProfile(Base):
    """
    Organizer or comedian details captured at onboarding.
    custom_platform_fee is a percent override applied to the creator's shows.
    """

    __tablename__ = "creator_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        unique=True,
    )
    kind: Mapped[CreatorKind] = mapped_column(
        creator_kind_enum,
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_platform_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped[User] = relationship(back_populates="profile")

    __table_args__ = (
        CheckConstraint(
            "custom_platform_fee IS NULL OR (custom_platform_fee >= 0 AND custom_platform_fee <= 100)",
            name="ck_profile_fee_percent_range",
        ),
    )


class ApprovalRecord(Base):
    __tablename__ = "approval_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    kind: Mapped[CreatorKind] = mapped_column(
        creator_kind_enum,
        nullable=False,
    )
    status: Mapped[ApprovalStatus] = mapped_column(
        Enum(ApprovalStatus, name="approval_status"),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class Show(Base):
    __tablename__ = "shows"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    venue: Mapped[str] = mapped_column(String(200), nullable=False)
    ticket_price: Mapped[int] = mapped_column(Integer, nullable=False)
    total_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_disbursed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    custom_platform_fee: Mapped[float | None] = mapped_column(Float, nullable=True)
    platform_fee_percent: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    inventory: Mapped["TicketInventory"] = relationship(
        back_populates="show",
        uselist=False,
        cascade="all, delete-orphan",
    )
    creator: Mapped[User] = relationship()

    __table_args__ = (
        CheckConstraint("ticket_price > 0", name="ck_show_price_positive"),
        CheckConstraint("total_tickets > 0", name="ck_show_total_tickets_positive"),
    )


class TicketInventory(Base):
    __tablename__ = "ticket_inventory"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    show_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("shows.id"),
        nullable=False,
        unique=True,
    )
    available: Mapped[int] = mapped_column(Integer, nullable=False)
    locked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    show: Mapped[Show] = relationship(back_populates="inventory")

    __table_args__ = (
        CheckConstraint("available >= 0", name="ck_available_nonnegative"),
        CheckConstraint("locked >= 0", name="ck_locked_nonnegative"),
    )


class Booking(Base):
    """
    Booking table reflecting domain state.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    show_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("shows.id"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    booking_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    # Gateway order id while PENDING, payment id once captured.
    payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    show: Mapped[Show] = relationship()

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_booking_quantity_positive",
        ),
    )


class FeeSlabConfig(Base):
    __tablename__ = "fee_slabs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    min_price: Mapped[float] = mapped_column(Float, nullable=False)
    max_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    fee: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("position", name="uq_fee_slab_position"),
        CheckConstraint("fee >= 0 AND fee <= 1", name="ck_fee_slab_fraction"),
    )


class PaymentWebhookEvent(Base):
    __tablename__ = "payment_webhook_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    event_key: Mapped[str] = mapped_column(String(128), nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    order_id: Mapped[str] = mapped_column(String(64), nullable=False)
    payment_id: Mapped[str] = mapped_column(String(64), nullable=False)
    booking_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="PROCESSED")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("provider", "event_key", name="uq_webhook_provider_event_key"),
    )

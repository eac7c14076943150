from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class CamelModel(BaseModel):
    """Accepts and emits the camelCase field names clients already use."""

    model_config = ConfigDict(populate_by_name=True)


# -----------------------------
# Bookings
# -----------------------------
class BookingRequest(CamelModel):
    show_id: str = Field(alias="showId")
    # true or "2" must not pass for a ticket count.
    quantity: StrictInt


class BookingResponse(CamelModel):
    id: str
    show_id: str = Field(alias="showId")
    user_id: str = Field(alias="userId")
    quantity: int
    total_amount: int = Field(alias="totalAmount")
    platform_fee: float = Field(alias="platformFee")
    booking_fee: float = Field(alias="bookingFee")
    status: str
    payment_id: str | None = Field(default=None, alias="paymentId")
    created_at: datetime = Field(alias="createdAt")


class PaymentOrderResponse(CamelModel):
    order_id: str = Field(alias="orderId")
    amount: int
    currency: str
    key_id: str = Field(alias="keyId")


class BookingCreatedResponse(CamelModel):
    booking: BookingResponse
    payment_order: PaymentOrderResponse = Field(alias="paymentOrder")


class BookingListResponse(CamelModel):
    bookings: list[BookingResponse]


# -----------------------------
# Shows
# -----------------------------
class ShowCreate(CamelModel):
    title: str
    description: str | None = None
    date: datetime
    venue: str
    ticket_price: int = Field(alias="ticketPrice")
    total_tickets: int = Field(alias="totalTickets")


class ShowUpdate(CamelModel):
    title: str | None = None
    description: str | None = None
    date: datetime | None = None
    venue: str | None = None
    ticket_price: int | None = Field(default=None, alias="ticketPrice")
    total_tickets: int | None = Field(default=None, alias="totalTickets")


class InventoryResponse(CamelModel):
    available: int
    locked: int


class ShowStatsResponse(CamelModel):
    tickets_sold: int = Field(alias="ticketsSold")
    revenue: int


class ShowResponse(CamelModel):
    id: str
    title: str
    description: str | None = None
    date: datetime
    venue: str
    ticket_price: int = Field(alias="ticketPrice")
    total_tickets: int = Field(alias="totalTickets")
    created_by: str = Field(alias="createdBy")
    is_published: bool = Field(alias="isPublished")
    is_disbursed: bool = Field(alias="isDisbursed")
    custom_platform_fee: float | None = Field(default=None, alias="customPlatformFee")
    platform_fee_percent: float = Field(alias="platformFeePercent")
    inventory: InventoryResponse | None = None
    stats: ShowStatsResponse | None = None


# -----------------------------
# Users and onboarding
# -----------------------------
class OnboardingRequest(CamelModel):
    role: Literal["ORGANIZER", "COMEDIAN"]
    display_name: str = Field(alias="displayName")
    contact: str | None = None
    bio: str | None = None


class ProfileResponse(CamelModel):
    kind: str
    display_name: str = Field(alias="displayName")
    contact: str | None = None
    bio: str | None = None
    custom_platform_fee: float | None = Field(default=None, alias="customPlatformFee")


class UserResponse(CamelModel):
    id: str
    email: str
    name: str | None = None
    role: str
    profile: ProfileResponse | None = None


class CreatorResponse(UserResponse):
    approval_status: str | None = Field(default=None, alias="approvalStatus")
    admin_note: str | None = Field(default=None, alias="adminNote")


class UserUpdate(CamelModel):
    name: str


class CreatorProfileUpdate(CamelModel):
    display_name: str | None = Field(default=None, alias="displayName")
    contact: str | None = None
    bio: str | None = None


class OnboardingStatusResponse(CamelModel):
    role: str
    onboarding_completed: bool = Field(alias="onboardingCompleted")
    creator_kind: str | None = Field(default=None, alias="creatorKind")
    approval_status: str | None = Field(default=None, alias="approvalStatus")
    admin_note: str | None = Field(default=None, alias="adminNote")
    can_create_shows: bool = Field(alias="canCreateShows")


class ComedianResponse(CamelModel):
    id: str
    display_name: str = Field(alias="displayName")
    bio: str | None = None
    upcoming_shows: list[ShowResponse] | None = Field(default=None, alias="upcomingShows")


class RejectRequest(CamelModel):
    reason: str | None = None


# -----------------------------
# Admin
# -----------------------------
class FeeSlabModel(CamelModel):
    min_price: float = Field(alias="minPrice")
    max_price: float | None = Field(default=None, alias="maxPrice")
    fee: float


class FeeSlabsRequest(CamelModel):
    slabs: list[FeeSlabModel]


class FeeSlabsResponse(CamelModel):
    slabs: list[FeeSlabModel]
    is_default: bool = Field(alias="isDefault")


class FeeOverrideRequest(CamelModel):
    fee_percent: float | None = Field(default=None, alias="feePercent")


class CollectionShowResponse(CamelModel):
    id: str
    title: str
    date: datetime
    is_published: bool = Field(alias="isPublished")
    is_disbursed: bool = Field(alias="isDisbursed")
    tickets_sold: int = Field(alias="ticketsSold")
    show_revenue: float = Field(alias="showRevenue")
    booking_fee: float = Field(alias="bookingFee")
    platform_fee: float = Field(alias="platformFee")
    show_earnings: float = Field(alias="showEarnings")
    platform_earnings: float = Field(alias="platformEarnings")


class CollectionBucketResponse(CamelModel):
    show_revenue: float = Field(alias="showRevenue")
    booking_fee: float = Field(alias="bookingFee")
    platform_fee: float = Field(alias="platformFee")
    show_earnings: float = Field(alias="showEarnings")
    platform_earnings: float = Field(alias="platformEarnings")
    shows: list[CollectionShowResponse]


class StatsResponse(CamelModel):
    total_users: int = Field(alias="totalUsers")
    active_shows: int = Field(alias="activeShows")
    total_revenue: float = Field(alias="totalRevenue")
    pending_approvals: int = Field(alias="pendingApprovals")


class ReleaseAbandonedResponse(CamelModel):
    released: list[str]

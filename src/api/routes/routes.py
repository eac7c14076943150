from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from src.api.dependencies import (
    get_current_user,
    get_db,
    get_optional_user,
    get_payment_gateway,
)
from src.api.schemas.schemas import (
    BookingCreatedResponse,
    BookingListResponse,
    BookingRequest,
    BookingResponse,
    ComedianResponse,
    CreatorProfileUpdate,
    InventoryResponse,
    OnboardingRequest,
    OnboardingStatusResponse,
    PaymentOrderResponse,
    ProfileResponse,
    ShowCreate,
    ShowResponse,
    ShowStatsResponse,
    ShowUpdate,
    UserResponse,
    UserUpdate,
)
from src.application.booking_service import BookingService
from src.application.onboarding_service import OnboardingService
from src.application.profile_service import ProfileService
from src.application.show_service import ShowService, ShowStats
from src.domain.roles import CreatorKind
from src.infrastructure.db.models import Booking, Show, User
from src.infrastructure.payments.razorpay_gateway import RazorpayGateway


router = APIRouter()


def booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        show_id=booking.show_id,
        user_id=booking.user_id,
        quantity=booking.quantity,
        total_amount=booking.total_amount,
        platform_fee=booking.platform_fee,
        booking_fee=booking.booking_fee,
        status=booking.status.value,
        payment_id=booking.payment_id,
        created_at=booking.created_at,
    )


def show_response(show: Show, stats: ShowStats | None = None) -> ShowResponse:
    inventory = show.inventory
    return ShowResponse(
        id=show.id,
        title=show.title,
        description=show.description,
        date=show.date,
        venue=show.venue,
        ticket_price=show.ticket_price,
        total_tickets=show.total_tickets,
        created_by=show.created_by,
        is_published=show.is_published,
        is_disbursed=show.is_disbursed,
        custom_platform_fee=show.custom_platform_fee,
        platform_fee_percent=show.platform_fee_percent,
        inventory=(
            InventoryResponse(available=inventory.available, locked=inventory.locked)
            if inventory
            else None
        ),
        stats=(
            ShowStatsResponse(tickets_sold=stats.tickets_sold, revenue=stats.revenue)
            if stats
            else None
        ),
    )


def user_response(user: User) -> UserResponse:
    profile = user.profile
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role.value,
        profile=(
            ProfileResponse(
                kind=profile.kind.value,
                display_name=profile.display_name,
                contact=profile.contact,
                bio=profile.bio,
                custom_platform_fee=profile.custom_platform_fee,
            )
            if profile
            else None
        ),
    )


@router.get("/health")
def health():
    return {"message": "Comedy Connect booking engine is running"}


# -----------------------------
# Users
# -----------------------------
@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user_response(user)


@router.post("/onboarding", response_model=UserResponse)
def onboarding(
    request: OnboardingRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = OnboardingService(db).onboard_creator(
        user=user,
        kind=CreatorKind(request.role),
        display_name=request.display_name,
        contact=request.contact,
        bio=request.bio,
    )
    return user_response(user)


@router.get("/onboarding/status", response_model=OnboardingStatusResponse)
def onboarding_status(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = ProfileService(db).onboarding_status(user)
    return OnboardingStatusResponse(
        role=result.role.value,
        onboarding_completed=result.onboarding_completed,
        creator_kind=result.creator_kind.value if result.creator_kind else None,
        approval_status=result.approval_status.value if result.approval_status else None,
        admin_note=result.admin_note,
        can_create_shows=result.can_create_shows,
    )


@router.patch("/me", response_model=UserResponse)
def update_me(
    request: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_response(ProfileService(db).update_user(user, request.name))


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ProfileService(db).delete_account(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/creator/profile", response_model=UserResponse)
def update_creator_profile(
    request: CreatorProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = request.model_dump(exclude_unset=True)
    return user_response(ProfileService(db).update_creator_profile(user, changes))


# -----------------------------
# Comedians
# -----------------------------
@router.get("/comedians", response_model=list[ComedianResponse])
def list_comedians(db: Session = Depends(get_db)):
    return [
        ComedianResponse(
            id=comedian.id,
            display_name=comedian.profile.display_name,
            bio=comedian.profile.bio,
        )
        for comedian in ProfileService(db).list_comedians()
    ]


@router.get("/comedians/{comedian_id}", response_model=ComedianResponse)
def get_comedian(comedian_id: str, db: Session = Depends(get_db)):
    comedian, shows = ProfileService(db).get_comedian(comedian_id)
    return ComedianResponse(
        id=comedian.id,
        display_name=comedian.profile.display_name,
        bio=comedian.profile.bio,
        upcoming_shows=[show_response(show) for show in shows],
    )


# -----------------------------
# Shows
# -----------------------------
@router.get("/shows", response_model=list[ShowResponse])
def list_shows(
    mine: bool = False,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    service = ShowService(db)
    if mine and user is not None:
        return [show_response(show, stats) for show, stats in service.list_my_shows(user)]
    return [show_response(show) for show in service.list_shows_for(user)]


@router.post("/shows", response_model=ShowResponse, status_code=status.HTTP_201_CREATED)
def create_show(
    request: ShowCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    show = ShowService(db).create_show(
        user=user,
        title=request.title,
        description=request.description,
        date=request.date,
        venue=request.venue,
        ticket_price=request.ticket_price,
        total_tickets=request.total_tickets,
    )
    return show_response(show)


@router.get("/shows/{show_id}", response_model=ShowResponse)
def get_show(
    show_id: str,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return show_response(ShowService(db).get_show(show_id, user))


@router.patch("/shows/{show_id}", response_model=ShowResponse)
def update_show(
    show_id: str,
    request: ShowUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ShowService(db)
    show = service.get_owned_show(show_id, user)
    changes = request.model_dump(exclude_unset=True)
    return show_response(service.update_show(show, changes))


@router.post("/shows/{show_id}/publish", response_model=ShowResponse)
def publish_show(
    show_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ShowService(db)
    show = service.get_owned_show(show_id, user)
    return show_response(service.set_published(show, True))


@router.post("/shows/{show_id}/unpublish", response_model=ShowResponse)
def unpublish_show(
    show_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ShowService(db)
    show = service.get_owned_show(show_id, user)
    return show_response(service.set_published(show, False))


@router.delete("/shows/{show_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_show(
    show_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ShowService(db)
    service.delete_show(service.get_owned_show(show_id, user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -----------------------------
# Bookings
# -----------------------------
@router.post(
    "/bookings",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    request: BookingRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
):
    result = BookingService(db, gateway).create_booking(
        user_id=user.id,
        show_id=request.show_id,
        quantity=request.quantity,
    )
    order = result.payment_order
    return BookingCreatedResponse(
        booking=booking_response(result.booking),
        payment_order=PaymentOrderResponse(
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            key_id=order.key_id,
        ),
    )


@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    show_id: str | None = Query(default=None, alias="showId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    bookings = BookingService(db).list_user_bookings(user.id, show_id)
    return BookingListResponse(bookings=[booking_response(b) for b in bookings])


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return booking_response(BookingService(db).get_booking(booking_id, user.id))

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, require_admin
from src.api.routes.routes import show_response, user_response
from src.api.schemas.schemas import (
    CollectionBucketResponse,
    CollectionShowResponse,
    CreatorResponse,
    FeeOverrideRequest,
    FeeSlabModel,
    FeeSlabsRequest,
    FeeSlabsResponse,
    RejectRequest,
    ReleaseAbandonedResponse,
    ShowResponse,
    StatsResponse,
)
from src.application.admin_service import AdminService, CollectionBucket
from src.application.onboarding_service import OnboardingService
from src.domain.fees import DEFAULT_FEE_SLABS, FeeSlab
from src.domain.roles import CreatorKind

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _slabs_response(slabs: list[FeeSlab]) -> FeeSlabsResponse:
    is_default = not slabs
    return FeeSlabsResponse(
        slabs=[
            FeeSlabModel(min_price=s.min_price, max_price=s.max_price, fee=s.fee)
            for s in (slabs or DEFAULT_FEE_SLABS)
        ],
        is_default=is_default,
    )


def _bucket_response(bucket: CollectionBucket) -> CollectionBucketResponse:
    return CollectionBucketResponse(
        show_revenue=bucket.total("show_revenue"),
        booking_fee=bucket.total("booking_fee"),
        platform_fee=bucket.total("platform_fee"),
        show_earnings=bucket.total("show_earnings"),
        platform_earnings=bucket.total("platform_earnings"),
        shows=[
            CollectionShowResponse(
                id=item.show.id,
                title=item.show.title,
                date=item.show.date,
                is_published=item.show.is_published,
                is_disbursed=item.show.is_disbursed,
                tickets_sold=item.tickets_sold,
                show_revenue=item.show_revenue,
                booking_fee=item.booking_fee,
                platform_fee=item.platform_fee,
                show_earnings=item.show_earnings,
                platform_earnings=item.platform_earnings,
            )
            for item in bucket.shows
        ],
    )


# -----------------------------
# Fees
# -----------------------------
@router.get("/fees/slabs", response_model=FeeSlabsResponse)
def get_fee_slabs(db: Session = Depends(get_db)):
    return _slabs_response(AdminService(db).get_fee_slabs())


@router.put("/fees/slabs", response_model=FeeSlabsResponse)
def update_fee_slabs(request: FeeSlabsRequest, db: Session = Depends(get_db)):
    slabs = [FeeSlab(s.min_price, s.max_price, s.fee) for s in request.slabs]
    return _slabs_response(AdminService(db).update_fee_slabs(slabs))


@router.put("/creators/{user_id}/fee")
def update_creator_fee(user_id: str, request: FeeOverrideRequest, db: Session = Depends(get_db)):
    updated = AdminService(db).update_creator_fee(user_id, request.fee_percent)
    return {"userId": user_id, "feePercent": request.fee_percent, "showsUpdated": updated}


@router.put("/shows/{show_id}/fee", response_model=ShowResponse)
def update_show_fee(show_id: str, request: FeeOverrideRequest, db: Session = Depends(get_db)):
    return show_response(AdminService(db).update_show_fee(show_id, request.fee_percent))


# -----------------------------
# Shows
# -----------------------------
@router.post("/shows/{show_id}/publish", response_model=ShowResponse)
def publish_show(show_id: str, db: Session = Depends(get_db)):
    return show_response(AdminService(db).set_published(show_id, True))


@router.post("/shows/{show_id}/unpublish", response_model=ShowResponse)
def unpublish_show(show_id: str, db: Session = Depends(get_db)):
    return show_response(AdminService(db).set_published(show_id, False))


@router.post("/shows/{show_id}/disburse", response_model=ShowResponse)
def disburse_show(show_id: str, db: Session = Depends(get_db)):
    return show_response(AdminService(db).disburse_show(show_id))


# -----------------------------
# Reporting
# -----------------------------
@router.get("/collections", response_model=dict[str, CollectionBucketResponse])
def collections(
    show_id: str | None = Query(default=None, alias="showId"),
    db: Session = Depends(get_db)):
    buckets = AdminService(db).collections(show_id)
    return {name: _bucket_response(bucket) for name, bucket in buckets.items()}


@router.get("/stats", response_model=StatsResponse)
def stats(db: Session = Depends(get_db)):
    return StatsResponse(**AdminService(db).stats())


# -----------------------------
# Creators
# -----------------------------
@router.get("/creators", response_model=list[CreatorResponse])
def list_creators(
    kind: CreatorKind | None = None,
    pending: bool = False,
    db: Session = Depends(get_db),
):
    creators = OnboardingService(db).list_creators(kind=kind, pending_only=pending)
    return [
        CreatorResponse(
            **user_response(user).model_dump(),
            approval_status=approval.status.value if approval else None,
            admin_note=approval.admin_note if approval else None,
        )
        for user, approval in creators
    ]


@router.post("/creators/{user_id}/approve")
def approve_creator(user_id: str, db: Session = Depends(get_db)):
    record = OnboardingService(db).approve(user_id)
    return {"userId": user_id, "status": record.status.value}


@router.post("/creators/{user_id}/reject")
def reject_creator(user_id: str, request: RejectRequest | None = None, db: Session = Depends(get_db)):
    reason = request.reason if request else None
    record = OnboardingService(db).reject(user_id, reason)
    return {"userId": user_id, "status": record.status.value}


@router.post("/creators/{user_id}/disable", response_model=CreatorResponse)
def disable_creator(user_id: str, db: Session = Depends(get_db)):
    user = OnboardingService(db).disable(user_id)
    return CreatorResponse(**user_response(user).model_dump())


# -----------------------------
# Maintenance
# -----------------------------
@router.post("/bookings/release-abandoned", response_model=ReleaseAbandonedResponse)
def release_abandoned(db: Session = Depends(get_db)):
    return ReleaseAbandonedResponse(released=AdminService(db).release_abandoned_bookings())

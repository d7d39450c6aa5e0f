"""Coupon API endpoints: the public claim flow and coupon administration."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from couponpool.core.auth import get_client_ip, require_admin
from couponpool.core.config import settings
from couponpool.core.database import get_db
from couponpool.core.rate_limiter import claim_rate_limiter
from couponpool.models.coupon import Coupon
from couponpool.schemas.claim import ClaimedCoupon, ClaimSuccessResponse
from couponpool.schemas.coupon import (
    ClaimSummary,
    CouponBatchCreate,
    CouponBatchResponse,
    CouponCreate,
    CouponDetailResponse,
    CouponMutationResponse,
    CouponResponse,
    CouponUpdate,
    MessageResponse,
    PoolCountsResponse,
    TestCouponsRequest,
    TestCouponsResponse,
)
from couponpool.services.claim_service import ClaimService
from couponpool.services.coupon_service import CouponService
from couponpool.services.errors import (
    AllocationConflict,
    CooldownActive,
    CouponNotFound,
    CouponValidationError,
    NoCouponsAvailable,
)
from couponpool.services.fingerprint_service import FingerprintResult, FingerprintService

router = APIRouter()


def _check_claim_rate_limit(request: Request) -> str:
    """Dependency that enforces the per-IP claim rate limit and returns the client IP."""
    ip_address = get_client_ip(request)
    if not claim_rate_limiter.is_allowed(ip_address):
        raise HTTPException(
            status_code=429,
            detail="Too many requests, please try again after a minute",
            headers={"Retry-After": str(claim_rate_limiter.retry_after(ip_address))},
        )
    return ip_address


def _persist_fingerprint(response: Response, fingerprint: FingerprintResult) -> None:
    if not fingerprint.is_new:
        return
    response.set_cookie(
        key=settings.FINGERPRINT_COOKIE_NAME,
        value=fingerprint.fingerprint,
        max_age=settings.fingerprint_cookie_max_age,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
        domain=settings.COOKIE_DOMAIN,
    )


# ===== Public =====


@router.post(
    "/claim",
    response_model=ClaimSuccessResponse,
    summary="Claim a coupon",
    responses={
        404: {"description": "No coupons available"},
        409: {"description": "Concurrent claims exhausted the retry bound"},
        429: {"description": "Already claimed within the cooldown, or rate limited"},
    },
)
def claim_coupon(
    request: Request,
    response: Response,
    ip_address: str = Depends(_check_claim_rate_limit),
    db: Session = Depends(get_db),
) -> Any:
    """Give the requesting device the oldest available coupon."""
    user_agent = request.headers.get("User-Agent")
    fingerprint = FingerprintService().resolve(
        request.cookies.get(settings.FINGERPRINT_COOKIE_NAME), user_agent
    )

    error: JSONResponse | None = None
    try:
        claim = ClaimService(db).claim(fingerprint.fingerprint, ip_address, user_agent)
    except CooldownActive as e:
        error = JSONResponse(
            status_code=429,
            content={
                "message": str(e),
                "retryAfter": e.retry_after.isoformat() if e.retry_after else None,
            },
        )
    except NoCouponsAvailable as e:
        error = JSONResponse(
            status_code=404,
            content={
                "message": "No coupons available",
                "details": {
                    "totalCoupons": e.counts.total,
                    "claimedCoupons": e.counts.claimed,
                    "availableCoupons": e.counts.available,
                },
            },
        )
    except AllocationConflict as e:
        error = JSONResponse(status_code=409, content={"message": str(e)})

    if error is not None:
        _persist_fingerprint(error, fingerprint)
        return error

    _persist_fingerprint(response, fingerprint)
    return ClaimSuccessResponse(
        message="Coupon claimed successfully",
        coupon=ClaimedCoupon.model_validate(claim.coupon),
    )


# ===== Admin =====


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
def list_coupons(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    is_claimed: bool | None = None,
    db: Session = Depends(get_db),
) -> list[Coupon]:
    """List coupons, newest first unless ``order_by`` says otherwise."""
    coupons, total = CouponService(db).list_coupons(
        skip=skip,
        limit=limit,
        order_by=order_by,
        is_active=is_active,
        is_claimed=is_claimed,
    )
    response.headers["X-Total-Count"] = str(total)
    return coupons


@router.get(
    "/stats",
    response_model=PoolCountsResponse,
    summary="Coupon pool counts",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
def get_pool_stats(db: Session = Depends(get_db)) -> PoolCountsResponse:
    counts = CouponService(db).pool_counts()
    return PoolCountsResponse(
        total_coupons=counts.total,
        claimed_coupons=counts.claimed,
        available_coupons=counts.available,
    )


@router.get(
    "/{coupon_id}",
    response_model=CouponDetailResponse,
    summary="Get coupon with claim info",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
def get_coupon(coupon_id: UUID, db: Session = Depends(get_db)) -> CouponDetailResponse:
    try:
        coupon, claim = CouponService(db).get_coupon(coupon_id)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None

    detail = CouponDetailResponse.model_validate(coupon)
    if claim is not None:
        detail.claim = ClaimSummary.model_validate(claim)
    return detail


@router.post(
    "/",
    response_model=CouponMutationResponse,
    status_code=201,
    summary="Create coupon",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Coupon code already exists"},
        401: {"description": "Unauthorized"},
    },
)
def create_coupon(data: CouponCreate, db: Session = Depends(get_db)) -> CouponMutationResponse:
    try:
        coupon = CouponService(db).create_coupon(data)
    except CouponValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return CouponMutationResponse(
        message="Coupon created successfully",
        coupon=CouponResponse.model_validate(coupon),
    )


@router.post(
    "/batch",
    response_model=CouponBatchResponse,
    status_code=201,
    summary="Create coupons in bulk",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Invalid data or all codes already exist"},
        401: {"description": "Unauthorized"},
    },
)
def create_coupon_batch(
    data: CouponBatchCreate, db: Session = Depends(get_db)
) -> CouponBatchResponse:
    """Create many coupons, skipping codes that are repeated or already stored."""
    try:
        result = CouponService(db).create_batch(data.coupons)
    except CouponValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return CouponBatchResponse(
        message=f"{len(result.created)} coupons created successfully",
        created=len(result.created),
        duplicates_skipped=result.skipped,
    )


@router.post(
    "/test-coupons",
    response_model=TestCouponsResponse,
    status_code=201,
    summary="Generate random test coupons",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
def create_test_coupons(
    data: TestCouponsRequest | None = None, db: Session = Depends(get_db)
) -> TestCouponsResponse:
    count = data.count if data is not None else TestCouponsRequest().count
    coupons = CouponService(db).generate_test_coupons(count)
    return TestCouponsResponse(
        message=f"{len(coupons)} test coupons created successfully",
        coupons=[CouponResponse.model_validate(c) for c in coupons],
    )


@router.put(
    "/{coupon_id}",
    response_model=CouponMutationResponse,
    summary="Update coupon",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Coupon code already exists"},
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
def update_coupon(
    coupon_id: UUID, data: CouponUpdate, db: Session = Depends(get_db)
) -> CouponMutationResponse:
    try:
        coupon = CouponService(db).update_coupon(coupon_id, data)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except CouponValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return CouponMutationResponse(
        message="Coupon updated successfully",
        coupon=CouponResponse.model_validate(coupon),
    )


@router.delete(
    "/{coupon_id}",
    response_model=MessageResponse,
    summary="Delete coupon",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Cannot delete a claimed coupon"},
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
def delete_coupon(coupon_id: UUID, db: Session = Depends(get_db)) -> MessageResponse:
    try:
        CouponService(db).delete_coupon(coupon_id)
    except CouponNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except CouponValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return MessageResponse(message="Coupon deleted successfully")

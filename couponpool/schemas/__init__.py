from couponpool.schemas.claim import (
    ClaimedCoupon,
    ClaimResponse,
    ClaimStatsResponse,
    ClaimSuccessResponse,
)
from couponpool.schemas.coupon import (
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

__all__ = [
    "ClaimResponse",
    "ClaimStatsResponse",
    "ClaimSuccessResponse",
    "ClaimedCoupon",
    "CouponBatchCreate",
    "CouponBatchResponse",
    "CouponCreate",
    "CouponDetailResponse",
    "CouponMutationResponse",
    "CouponResponse",
    "CouponUpdate",
    "MessageResponse",
    "PoolCountsResponse",
    "TestCouponsRequest",
    "TestCouponsResponse",
]

from couponpool.repositories.claim_repository import ClaimRepository
from couponpool.repositories.coupon_repository import CouponRepository

__all__ = [
    "ClaimRepository",
    "CouponRepository",
]

from couponpool.models.claim import Claim
from couponpool.models.coupon import Coupon

__all__ = [
    "Claim",
    "Coupon",
]

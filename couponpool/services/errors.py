"""Domain errors raised by the coupon and claim services.

All of them are ``ValueError`` subclasses so routers can translate them into
HTTP responses the same way they handle plain validation failures.
"""

from datetime import datetime

from couponpool.repositories.coupon_repository import PoolCounts


class CouponValidationError(ValueError):
    """Bad admin input (400)."""


class DuplicateCouponCode(CouponValidationError):
    def __init__(self, code: str):
        super().__init__("Coupon code already exists")
        self.code = code


class CouponAlreadyClaimed(CouponValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot delete a claimed coupon")


class ClaimedCouponCodeLocked(CouponValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot change the code of a claimed coupon")


class CouponNotFound(ValueError):
    def __init__(self) -> None:
        super().__init__("Coupon not found")


class CooldownActive(ValueError):
    """The requester already claimed within the cooldown (or ever, under the permanent policy)."""

    def __init__(self, message: str, retry_after: datetime | None):
        super().__init__(message)
        self.retry_after = retry_after


class NoCouponsAvailable(ValueError):
    def __init__(self, counts: PoolCounts):
        super().__init__("No coupons available")
        self.counts = counts


class AllocationConflict(ValueError):
    """Concurrent claims kept winning the race for candidate coupons."""

    def __init__(self, attempts: int):
        super().__init__("Could not reserve a coupon, please try again")
        self.attempts = attempts

"""Coupon claiming: eligibility check followed by race-safe FIFO allocation."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from couponpool.core.config import settings
from couponpool.models.claim import Claim
from couponpool.models.shared import generate_uuid, utc_now
from couponpool.repositories.claim_repository import ClaimRepository
from couponpool.repositories.coupon_repository import CouponRepository, PoolCounts
from couponpool.services.eligibility_service import ClaimEligibilityChecker
from couponpool.services.errors import (
    AllocationConflict,
    CooldownActive,
    NoCouponsAvailable,
)

logger = logging.getLogger(__name__)


class CouponAllocator:
    """Hands out the oldest active, unclaimed coupon exactly once.

    Each attempt selects a candidate, flags it with a conditional UPDATE that
    only matches while the coupon is still unclaimed, stages the ledger entry
    and commits both together. A lost race rolls back and re-selects, up to
    ``max_attempts`` times.
    """

    def __init__(self, db: Session, max_attempts: int | None = None):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.claim_repo = ClaimRepository(db)
        self.max_attempts = max_attempts or settings.CLAIM_MAX_ATTEMPTS

    def allocate(
        self,
        fingerprint: str,
        ip_address: str,
        user_agent: str | None = None,
    ) -> Claim:
        """Reserve a coupon for the requester and record the claim.

        Raises:
            NoCouponsAvailable: If no active, unclaimed coupon is left.
            AllocationConflict: If every attempt lost the race to another claim.
        """
        for attempt in range(1, self.max_attempts + 1):
            coupon = self.coupon_repo.get_next_available()
            if coupon is None:
                counts = self.coupon_repo.pool_counts()
                logger.warning(
                    "Coupon pool exhausted (total=%d, claimed=%d)", counts.total, counts.claimed
                )
                raise NoCouponsAvailable(
                    PoolCounts(total=counts.total, claimed=counts.claimed, available=0)
                )

            claim = Claim(
                id=generate_uuid(),
                fingerprint=fingerprint,
                ip_address=ip_address,
                user_agent=user_agent,
                coupon_id=coupon.id,
                claimed_at=utc_now(),
            )
            try:
                if not self.coupon_repo.mark_claimed(coupon.id, claim.id):  # type: ignore[arg-type]
                    self.db.rollback()
                    logger.info(
                        "Coupon %s was taken concurrently (attempt %d/%d)",
                        coupon.code,
                        attempt,
                        self.max_attempts,
                    )
                    continue
                self.claim_repo.insert(claim)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.info(
                    "Ledger conflict on coupon %s (attempt %d/%d)",
                    coupon.code,
                    attempt,
                    self.max_attempts,
                )
                continue
            except Exception:
                self.db.rollback()
                raise

            self.db.refresh(claim)
            return claim

        logger.warning("Gave up allocating a coupon after %d attempts", self.max_attempts)
        raise AllocationConflict(self.max_attempts)


class ClaimService:
    """Service for the public claim flow."""

    def __init__(
        self,
        db: Session,
        checker: ClaimEligibilityChecker | None = None,
        allocator: CouponAllocator | None = None,
    ):
        self.db = db
        self.checker = checker or ClaimEligibilityChecker(db)
        self.allocator = allocator or CouponAllocator(db)

    def claim(
        self,
        fingerprint: str,
        ip_address: str,
        user_agent: str | None = None,
    ) -> Claim:
        """Give one coupon to an eligible requester.

        Raises:
            CooldownActive: If the requester is not eligible under the claim policy.
            NoCouponsAvailable: If the pool has no active, unclaimed coupon.
            AllocationConflict: If concurrent claims exhausted the retry bound.
        """
        decision = self.checker.check(fingerprint, ip_address)
        if not decision.allowed:
            logger.info("Claim denied for fingerprint %s from %s", fingerprint, ip_address)
            raise CooldownActive(
                decision.reason or "Already claimed",
                decision.retry_after,
            )

        claim = self.allocator.allocate(fingerprint, ip_address, user_agent)
        logger.info(
            "Coupon %s claimed by fingerprint %s from %s",
            claim.coupon.code,
            fingerprint,
            ip_address,
        )
        return claim

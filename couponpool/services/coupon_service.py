"""Admin-side management of the coupon pool."""

import logging
import secrets
import string
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from couponpool.models.claim import Claim
from couponpool.models.coupon import Coupon
from couponpool.repositories.claim_repository import ClaimRepository
from couponpool.repositories.coupon_repository import CouponRepository, PoolCounts
from couponpool.schemas.coupon import CouponCreate, CouponUpdate
from couponpool.services.errors import (
    ClaimedCouponCodeLocked,
    CouponAlreadyClaimed,
    CouponNotFound,
    CouponValidationError,
    DuplicateCouponCode,
)

logger = logging.getLogger(__name__)

TEST_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class BatchResult:
    """Outcome of a batch create: new coupons and how many inputs were skipped."""

    created: list[Coupon]
    skipped: int


def generate_test_code() -> str:
    return "TEST-" + "".join(secrets.choice(TEST_CODE_ALPHABET) for _ in range(8))


class CouponService:
    """Service for coupon administration."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.claim_repo = ClaimRepository(db)

    def list_coupons(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        is_active: bool | None = None,
        is_claimed: bool | None = None,
    ) -> tuple[list[Coupon], int]:
        """Return a page of coupons and the total matching count."""
        coupons = self.coupon_repo.get_all(
            skip=skip,
            limit=limit,
            order_by=order_by,
            is_active=is_active,
            is_claimed=is_claimed,
        )
        total = self.coupon_repo.count(is_active=is_active, is_claimed=is_claimed)
        return coupons, total

    def get_coupon(self, coupon_id: UUID) -> tuple[Coupon, Claim | None]:
        """Get a coupon together with the claim that took it, if any."""
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            raise CouponNotFound()
        claim = self.claim_repo.get_by_coupon_id(coupon_id) if coupon.is_claimed else None
        return coupon, claim

    def create_coupon(self, data: CouponCreate) -> Coupon:
        if self.coupon_repo.get_by_code(data.code):
            raise DuplicateCouponCode(data.code)
        try:
            coupon = self.coupon_repo.create(data)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateCouponCode(data.code) from None
        logger.info("Created coupon %s", coupon.code)
        return coupon

    def create_batch(self, items: list[CouponCreate]) -> BatchResult:
        """Create every coupon whose code is new, skipping duplicates.

        Codes repeated inside the batch keep their first occurrence; codes
        already in the pool are dropped. ``skipped`` counts both.

        Raises:
            CouponValidationError: If the batch is empty or nothing in it is new.
        """
        if not items:
            raise CouponValidationError("Invalid coupons data")

        seen: set[str] = set()
        unique: list[CouponCreate] = []
        for item in items:
            if item.code not in seen:
                seen.add(item.code)
                unique.append(item)

        existing = self.coupon_repo.existing_codes(seen)
        new_items = [item for item in unique if item.code not in existing]
        if not new_items:
            raise CouponValidationError("All coupon codes already exist")

        try:
            created = self.coupon_repo.create_many(new_items)
        except IntegrityError:
            self.db.rollback()
            raise CouponValidationError(
                "Coupon codes changed while saving the batch, please retry"
            ) from None

        skipped = len(items) - len(created)
        logger.info("Batch created %d coupons, skipped %d duplicates", len(created), skipped)
        return BatchResult(created=created, skipped=skipped)

    def update_coupon(self, coupon_id: UUID, data: CouponUpdate) -> Coupon:
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            raise CouponNotFound()

        if data.code is not None and data.code != coupon.code:
            if coupon.is_claimed:
                raise ClaimedCouponCodeLocked()
            if self.coupon_repo.get_by_code(data.code):
                raise DuplicateCouponCode(data.code)

        try:
            updated = self.coupon_repo.update(coupon_id, data)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateCouponCode(data.code or "") from None
        if updated is None:
            raise CouponNotFound()
        return updated

    def delete_coupon(self, coupon_id: UUID) -> None:
        """Delete a coupon that has not been claimed yet."""
        coupon = self.coupon_repo.get_by_id(coupon_id)
        if not coupon:
            raise CouponNotFound()
        if coupon.is_claimed:
            raise CouponAlreadyClaimed()
        if not self.coupon_repo.delete(coupon_id):
            # Claimed between the read and the delete.
            raise CouponAlreadyClaimed()
        logger.info("Deleted coupon %s", coupon_id)

    def generate_test_coupons(self, count: int = 5) -> list[Coupon]:
        """Create ``count`` active coupons with random ``TEST-`` codes."""
        if count < 1 or count > 100:
            raise CouponValidationError("count must be between 1 and 100")

        codes: list[str] = []
        while len(codes) < count:
            code = generate_test_code()
            if code not in codes:
                codes.append(code)
        taken = self.coupon_repo.existing_codes(codes)
        codes = [c for c in codes if c not in taken]
        while len(codes) < count:
            code = generate_test_code()
            if code not in codes and not self.coupon_repo.get_by_code(code):
                codes.append(code)

        items = [
            CouponCreate(code=code, description=f"Test coupon {i + 1}", is_active=True)
            for i, code in enumerate(codes)
        ]
        return self.coupon_repo.create_many(items)

    def pool_counts(self) -> PoolCounts:
        return self.coupon_repo.pool_counts()

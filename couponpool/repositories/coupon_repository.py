"""Coupon repository for data access."""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from couponpool.core.sorting import apply_order_by
from couponpool.models.coupon import Coupon
from couponpool.schemas.coupon import CouponCreate, CouponUpdate

SORTABLE_FIELDS = ("code", "created_at", "updated_at", "is_active", "is_claimed")


@dataclass(frozen=True)
class PoolCounts:
    total: int
    claimed: int
    available: int


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        is_active: bool | None = None,
        is_claimed: bool | None = None,
    ) -> list[Coupon]:
        """Get all coupons with optional filters, newest first by default."""
        query = self.db.query(Coupon)

        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)
        if is_claimed is not None:
            query = query.filter(Coupon.is_claimed == is_claimed)

        query = apply_order_by(query, Coupon, order_by, SORTABLE_FIELDS)
        return query.offset(skip).limit(limit).all()

    def count(self, is_active: bool | None = None, is_claimed: bool | None = None) -> int:
        """Count coupons with optional filters."""
        query = self.db.query(func.count(Coupon.id))
        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)
        if is_claimed is not None:
            query = query.filter(Coupon.is_claimed == is_claimed)
        return query.scalar() or 0

    def pool_counts(self) -> PoolCounts:
        """Total, claimed and currently claimable (active and unclaimed) coupons."""
        return PoolCounts(
            total=self.count(),
            claimed=self.count(is_claimed=True),
            available=self.count(is_active=True, is_claimed=False),
        )

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by code."""
        return self.db.query(Coupon).filter(Coupon.code == code).first()

    def existing_codes(self, codes: Iterable[str]) -> set[str]:
        """Return the subset of ``codes`` already present in the pool."""
        wanted = list(set(codes))
        if not wanted:
            return set()
        rows = self.db.query(Coupon.code).filter(Coupon.code.in_(wanted)).all()
        return {row[0] for row in rows}

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=data.code,
            description=data.description,
            is_active=data.is_active,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def create_many(self, items: list[CouponCreate]) -> list[Coupon]:
        """Insert several coupons in one transaction, preserving input order."""
        coupons = [
            Coupon(code=item.code, description=item.description, is_active=item.is_active)
            for item in items
        ]
        self.db.add_all(coupons)
        self.db.commit()
        for coupon in coupons:
            self.db.refresh(coupon)
        return coupons

    def update(self, coupon_id: UUID, data: CouponUpdate) -> Coupon | None:
        """Apply a partial update to a coupon."""
        coupon = self.get_by_id(coupon_id)
        if not coupon:
            return None

        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete(self, coupon_id: UUID) -> bool:
        """Delete an unclaimed coupon. Claimed coupons are never removed."""
        deleted = (
            self.db.query(Coupon)
            .filter(Coupon.id == coupon_id, Coupon.is_claimed.is_(False))
            .delete(synchronize_session="fetch")
        )
        self.db.commit()
        return bool(deleted)

    def get_next_available(self) -> Coupon | None:
        """Oldest active, unclaimed coupon (FIFO), or None when the pool is empty."""
        return (
            self.db.query(Coupon)
            .filter(Coupon.is_active.is_(True), Coupon.is_claimed.is_(False))
            .order_by(Coupon.created_at.asc(), Coupon.code.asc())
            .populate_existing()
            .first()
        )

    def mark_claimed(self, coupon_id: UUID, claim_id: UUID) -> bool:
        """Flag a coupon claimed only if it is still active and unclaimed.

        Runs as a single conditional UPDATE inside the caller's transaction and
        does not commit. Returns False when another writer got there first.
        """
        result = self.db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                Coupon.is_claimed.is_(False),
                Coupon.is_active.is_(True),
            )
            .values(is_claimed=True, claimed_by_id=claim_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

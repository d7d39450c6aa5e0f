"""Claim ledger repository.

The ledger is append-only: there are no update or delete helpers, and
``insert`` leaves committing to the allocator so the ledger row and the
coupon flag land in the same transaction.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from couponpool.core.sorting import apply_order_by
from couponpool.models.claim import Claim

SORTABLE_FIELDS = ("claimed_at", "fingerprint", "ip_address")


class ClaimRepository:
    def __init__(self, db: Session):
        self.db = db

    def insert(self, claim: Claim) -> Claim:
        """Stage a new ledger entry in the current transaction."""
        self.db.add(claim)
        self.db.flush()
        return claim

    def get_by_id(self, claim_id: UUID) -> Claim | None:
        return self.db.query(Claim).filter(Claim.id == claim_id).first()

    def get_by_coupon_id(self, coupon_id: UUID) -> Claim | None:
        return self.db.query(Claim).filter(Claim.coupon_id == coupon_id).first()

    def find_recent_by_fingerprint(self, fingerprint: str, since: datetime) -> Claim | None:
        """Most recent claim by ``fingerprint`` at or after ``since``."""
        return (
            self.db.query(Claim)
            .filter(Claim.fingerprint == fingerprint, Claim.claimed_at >= since)
            .order_by(Claim.claimed_at.desc())
            .first()
        )

    def find_recent_by_ip(self, ip_address: str, since: datetime) -> Claim | None:
        """Most recent claim from ``ip_address`` at or after ``since``."""
        return (
            self.db.query(Claim)
            .filter(Claim.ip_address == ip_address, Claim.claimed_at >= since)
            .order_by(Claim.claimed_at.desc())
            .first()
        )

    def find_latest(
        self,
        fingerprint: str | None = None,
        ip_address: str | None = None,
    ) -> Claim | None:
        """Most recent claim matching the fingerprint or the IP, ever."""
        query = self.db.query(Claim)
        if fingerprint is not None and ip_address is not None:
            query = query.filter(
                (Claim.fingerprint == fingerprint) | (Claim.ip_address == ip_address)
            )
        elif fingerprint is not None:
            query = query.filter(Claim.fingerprint == fingerprint)
        elif ip_address is not None:
            query = query.filter(Claim.ip_address == ip_address)
        else:
            return None
        return query.order_by(Claim.claimed_at.desc()).first()

    def find_all(
        self,
        ip_address: str | None = None,
        fingerprint: str | None = None,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[Claim]:
        query = self.db.query(Claim)
        if ip_address is not None:
            query = query.filter(Claim.ip_address == ip_address)
        if fingerprint is not None:
            query = query.filter(Claim.fingerprint == fingerprint)
        query = apply_order_by(
            query,
            Claim,
            order_by,
            SORTABLE_FIELDS,
            default_field="claimed_at",
            default_direction="desc",
        )
        return query.offset(skip).limit(limit).all()

    def count(self, ip_address: str | None = None, fingerprint: str | None = None) -> int:
        query = self.db.query(func.count(Claim.id))
        if ip_address is not None:
            query = query.filter(Claim.ip_address == ip_address)
        if fingerprint is not None:
            query = query.filter(Claim.fingerprint == fingerprint)
        return query.scalar() or 0

    def count_since(self, since: datetime) -> int:
        return (
            self.db.query(func.count(Claim.id)).filter(Claim.claimed_at >= since).scalar() or 0
        )

    def count_distinct_fingerprints(self) -> int:
        return self.db.query(func.count(func.distinct(Claim.fingerprint))).scalar() or 0

    def count_distinct_ips(self) -> int:
        return self.db.query(func.count(func.distinct(Claim.ip_address))).scalar() or 0

"""Read-only views over the claim ledger for administrators."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from couponpool.models.claim import Claim
from couponpool.models.shared import utc_now
from couponpool.repositories.claim_repository import ClaimRepository


@dataclass(frozen=True)
class ClaimStats:
    total_claims: int
    claims_last_24_hours: int
    claims_last_7_days: int
    unique_ip_count: int
    unique_browser_count: int


class LedgerService:
    def __init__(self, db: Session):
        self.db = db
        self.claim_repo = ClaimRepository(db)

    def list_claims(
        self,
        ip_address: str | None = None,
        fingerprint: str | None = None,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> tuple[list[Claim], int]:
        """Return a page of claims (newest first by default) and the matching total."""
        claims = self.claim_repo.find_all(
            ip_address=ip_address,
            fingerprint=fingerprint,
            skip=skip,
            limit=limit,
            order_by=order_by,
        )
        total = self.claim_repo.count(ip_address=ip_address, fingerprint=fingerprint)
        return claims, total

    def stats(self, now: datetime | None = None) -> ClaimStats:
        now = now or utc_now()
        return ClaimStats(
            total_claims=self.claim_repo.count(),
            claims_last_24_hours=self.claim_repo.count_since(now - timedelta(hours=24)),
            claims_last_7_days=self.claim_repo.count_since(now - timedelta(days=7)),
            unique_ip_count=self.claim_repo.count_distinct_ips(),
            unique_browser_count=self.claim_repo.count_distinct_fingerprints(),
        )

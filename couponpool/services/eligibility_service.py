"""Claim eligibility: may this requester claim a coupon right now?"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy.orm import Session

from couponpool.core.config import settings
from couponpool.models.claim import Claim
from couponpool.models.shared import as_utc, utc_now
from couponpool.repositories.claim_repository import ClaimRepository


class EligibilityKey(str, Enum):
    FINGERPRINT = "fingerprint"
    IP = "ip"
    BOTH = "both"


class CooldownPolicy(str, Enum):
    WINDOW = "window"
    PERMANENT = "permanent"


@dataclass
class EligibilityDecision:
    """Outcome of an eligibility check."""

    allowed: bool
    reason: str | None = None
    retry_after: datetime | None = None
    claim: Claim | None = None


class ClaimEligibilityChecker:
    """Decides ALLOW or DENY for a requester based on the claim ledger."""

    def __init__(
        self,
        db: Session,
        eligibility_key: EligibilityKey | str | None = None,
        cooldown_policy: CooldownPolicy | str | None = None,
        cooldown: timedelta | None = None,
    ):
        self.claim_repo = ClaimRepository(db)
        self.eligibility_key = EligibilityKey(eligibility_key or settings.CLAIM_ELIGIBILITY_KEY)
        self.cooldown_policy = CooldownPolicy(cooldown_policy or settings.CLAIM_COOLDOWN_POLICY)
        self.cooldown = cooldown if cooldown is not None else timedelta(
            hours=settings.CLAIM_COOLDOWN_HOURS
        )

    def check(
        self,
        fingerprint: str,
        ip_address: str,
        now: datetime | None = None,
    ) -> EligibilityDecision:
        """Check whether ``fingerprint`` (and/or ``ip_address``, per policy) may claim.

        Args:
            fingerprint: Device fingerprint of the requester.
            ip_address: Observed client IP.
            now: Reference time, defaults to the current UTC time.

        Returns:
            An allowed decision, or a denied one carrying the blocking claim and,
            under the window policy, the time at which claiming reopens.
        """
        now = now or utc_now()
        use_fingerprint = self.eligibility_key in (EligibilityKey.FINGERPRINT, EligibilityKey.BOTH)
        use_ip = self.eligibility_key in (EligibilityKey.IP, EligibilityKey.BOTH)

        if self.cooldown_policy == CooldownPolicy.PERMANENT:
            previous = self.claim_repo.find_latest(
                fingerprint=fingerprint if use_fingerprint else None,
                ip_address=ip_address if use_ip else None,
            )
            if previous is None:
                return EligibilityDecision(allowed=True)
            return EligibilityDecision(
                allowed=False,
                reason="You have already claimed a coupon with this device.",
                claim=previous,
            )

        since = now - self.cooldown
        candidates = []
        if use_fingerprint:
            candidates.append(self.claim_repo.find_recent_by_fingerprint(fingerprint, since))
        if use_ip:
            candidates.append(self.claim_repo.find_recent_by_ip(ip_address, since))
        recent = [c for c in candidates if c is not None]
        if not recent:
            return EligibilityDecision(allowed=True)

        latest = max(recent, key=lambda c: as_utc(c.claimed_at))  # type: ignore[arg-type]
        return EligibilityDecision(
            allowed=False,
            reason="You have already claimed a coupon recently. Please try again later.",
            retry_after=as_utc(latest.claimed_at) + self.cooldown,  # type: ignore[arg-type]
            claim=latest,
        )

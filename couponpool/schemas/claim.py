"""Claim (ledger entry) schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ClaimedCoupon(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    description: str


class ClaimSuccessResponse(BaseModel):
    message: str
    coupon: ClaimedCoupon


class ClaimCouponInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str
    is_active: bool


class ClaimResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    fingerprint: str
    ip_address: str
    user_agent: str | None = None
    coupon_id: UUID
    claimed_at: datetime
    coupon: ClaimCouponInfo | None = None


class ClaimStatsResponse(BaseModel):
    total_claims: int = Field(serialization_alias="totalClaims")
    claims_last_24_hours: int = Field(serialization_alias="claimsLast24Hours")
    claims_last_7_days: int = Field(serialization_alias="claimsLast7Days")
    unique_ip_count: int = Field(serialization_alias="uniqueIPCount")
    unique_browser_count: int = Field(serialization_alias="uniqueBrowserCount")

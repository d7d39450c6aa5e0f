"""Coupon schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Coupon code must not be blank")
        return value


class CouponBatchCreate(BaseModel):
    coupons: list[CouponCreate] = Field(min_length=1)


class CouponUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    is_active: bool | None = Field(default=None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("code")
    @classmethod
    def strip_code(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Coupon code must not be blank")
        return value


class TestCouponsRequest(BaseModel):
    __test__ = False

    count: int = Field(default=5, ge=1, le=100)


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str
    is_active: bool
    is_claimed: bool
    claimed_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class ClaimSummary(BaseModel):
    """Claim fields shown on a coupon's detail view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    fingerprint: str
    ip_address: str
    claimed_at: datetime


class CouponDetailResponse(CouponResponse):
    claim: ClaimSummary | None = None


class CouponMutationResponse(BaseModel):
    message: str
    coupon: CouponResponse


class CouponBatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    created: int
    duplicates_skipped: int = Field(serialization_alias="duplicatesSkipped")


class TestCouponsResponse(BaseModel):
    __test__ = False

    message: str
    coupons: list[CouponResponse]


class PoolCountsResponse(BaseModel):
    total_coupons: int = Field(serialization_alias="totalCoupons")
    claimed_coupons: int = Field(serialization_alias="claimedCoupons")
    available_coupons: int = Field(serialization_alias="availableCoupons")


class MessageResponse(BaseModel):
    message: str

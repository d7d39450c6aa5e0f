"""Coupon model for the distributable coupon pool."""

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text

from couponpool.core.database import Base
from couponpool.models.shared import UUIDType, generate_uuid, utc_now


class Coupon(Base):
    """A single coupon code that can be handed out exactly once."""

    __tablename__ = "coupons"
    __table_args__ = (
        Index("ix_coupons_available", "is_active", "is_claimed", "created_at"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)

    is_active = Column(Boolean, nullable=False, default=True)
    is_claimed = Column(Boolean, nullable=False, default=False)
    # Plain column: the claims table holds the enforced FK in the other direction.
    claimed_by_id = Column(UUIDType, unique=True, nullable=True)

    # Client-side timestamps keep sub-second precision for FIFO allocation.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

"""Claim model: the append-only ledger of handed-out coupons."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from couponpool.core.database import Base
from couponpool.models.shared import UUIDType, generate_uuid, utc_now


class Claim(Base):
    """Ledger entry linking a device fingerprint to the coupon it received."""

    __tablename__ = "claims"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    fingerprint = Column(String(255), nullable=False, index=True)
    ip_address = Column(String(64), nullable=False, index=True)
    user_agent = Column(Text, nullable=True)
    coupon_id = Column(
        UUIDType,
        ForeignKey("coupons.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    claimed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)

    coupon = relationship("Coupon", lazy="joined")

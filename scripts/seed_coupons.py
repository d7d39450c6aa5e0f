"""Seed the coupon pool with sample coupons when it is empty."""

from couponpool.core import database
from couponpool.core.log_config import configure_logging
from couponpool.repositories.coupon_repository import CouponRepository
from couponpool.schemas.coupon import CouponCreate
from couponpool.services.coupon_service import CouponService

SAMPLE_COUPONS = [
    ("SAVE10", "10% off on your first purchase"),
    ("SUMMER25", "25% off on summer collection"),
    ("FREESHIP", "Free shipping on orders over $50"),
    ("WELCOME15", "15% discount for new customers"),
    ("FLASH50", "50% off flash sale (limited time)"),
    ("HOLIDAY20", "20% off for holiday season"),
    ("LOYALTY30", "30% off for loyal customers"),
    ("BIRTHDAY25", "25% off birthday special"),
    ("APP15", "15% off when ordering through our app"),
    ("WEEKEND10", "10% off weekend special"),
]


def seed() -> int:
    """Insert the sample coupons into an empty pool. Returns how many were created."""
    database.init_db()
    db = database.SessionLocal()
    try:
        if CouponRepository(db).count() > 0:
            return 0
        items = [CouponCreate(code=code, description=desc) for code, desc in SAMPLE_COUPONS]
        return len(CouponService(db).create_batch(items).created)
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    created = seed()
    if created:
        print(f"{created} sample coupons created successfully")
    else:
        print("Coupons already exist in the database")

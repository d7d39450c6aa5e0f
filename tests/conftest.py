"""Shared test fixtures for all test modules."""

import contextlib
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import couponpool.models  # noqa: F401
from couponpool.core import database as db_module
from couponpool.core.database import Base
from couponpool.core.rate_limiter import api_rate_limiter, claim_rate_limiter
from couponpool.models.coupon import Coupon
from couponpool.models.shared import utc_now
from couponpool.services.admin_auth_service import AdminAuthService

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

ADMIN_ID = "test-admin"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def reset_rate_limiters():
    """Both limiters are process-wide; start every test with empty windows."""
    api_rate_limiter.reset()
    claim_rate_limiter.reset()
    yield
    api_rate_limiter.reset()
    claim_rate_limiter.reset()


@pytest.fixture
def db_session():
    """Create a database session for direct repository and service testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def admin_token():
    return AdminAuthService.issue_token(ADMIN_ID)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


def add_coupon(
    session: Session,
    code: str,
    created_at: datetime | None = None,
    description: str | None = None,
    is_active: bool = True,
) -> Coupon:
    """Insert a coupon with an explicit creation time so FIFO order is deterministic."""
    coupon = Coupon(
        code=code,
        description=description or f"{code} description",
        is_active=is_active,
        created_at=created_at or utc_now(),
    )
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon


def add_coupons(session: Session, *codes: str) -> list[Coupon]:
    """Insert coupons oldest first, one minute apart, in the order given."""
    base = utc_now() - timedelta(hours=1)
    return [
        add_coupon(session, code, created_at=base + timedelta(minutes=i))
        for i, code in enumerate(codes)
    ]

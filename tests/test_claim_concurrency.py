"""Concurrent claims against a file-backed SQLite database.

Each worker thread uses its own connection and session, so the conditional
update in the allocator is the only thing preventing double allocation.
"""

import threading
from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from couponpool.core.database import Base
from couponpool.models.claim import Claim
from couponpool.models.coupon import Coupon
from couponpool.models.shared import utc_now
from couponpool.services.claim_service import ClaimService
from couponpool.services.errors import AllocationConflict, NoCouponsAvailable


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'claims.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


def _seed(factory, count: int) -> None:
    base = utc_now() - timedelta(hours=1)
    with factory() as db:
        db.add_all(
            Coupon(
                code=f"RACE{i:03d}",
                description=f"Race coupon {i}",
                created_at=base + timedelta(seconds=i),
            )
            for i in range(count)
        )
        db.commit()


def _run_claims(factory, workers: int) -> tuple[list[str], list[Exception]]:
    codes: list[str] = []
    errors: list[Exception] = []
    lock = threading.Lock()
    barrier = threading.Barrier(workers)

    def worker(n: int) -> None:
        db = factory()
        try:
            barrier.wait()
            claim = ClaimService(db).claim(f"device-{n}", f"10.1.0.{n}")
            with lock:
                codes.append(claim.coupon.code)
        except Exception as e:  # collected and asserted on by the test
            with lock:
                errors.append(e)
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=120)
    return codes, errors


class TestConcurrentClaims:
    def test_no_coupon_is_handed_out_twice(self, file_session_factory):
        _seed(file_session_factory, 5)

        codes, errors = _run_claims(file_session_factory, workers=12)

        assert len(codes) == len(set(codes))
        assert len(codes) <= 5
        assert len(codes) + len(errors) == 12
        for error in errors:
            assert isinstance(error, (NoCouponsAvailable, AllocationConflict))

        with file_session_factory() as db:
            claimed = db.query(Coupon).filter(Coupon.is_claimed.is_(True)).all()
            claims = db.query(Claim).all()
            assert len(claimed) == len(claims) == len(codes)
            assert {c.code for c in claimed} == set(codes)
            assert {c.id for c in claimed} == {c.coupon_id for c in claims}

    def test_ample_pool_serves_everyone(self, file_session_factory):
        _seed(file_session_factory, 20)

        codes, errors = _run_claims(file_session_factory, workers=6)

        for error in errors:
            assert isinstance(error, AllocationConflict)
        assert len(codes) == len(set(codes))
        with file_session_factory() as db:
            assert db.query(Claim).count() == len(codes)
            assert db.query(Coupon).filter(Coupon.is_claimed.is_(True)).count() == len(codes)

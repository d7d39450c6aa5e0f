"""Tests for coupon schemas, the coupon repository and the admin coupon API."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from couponpool.main import app
from couponpool.models.coupon import Coupon
from couponpool.repositories.coupon_repository import CouponRepository
from couponpool.schemas.coupon import CouponCreate, CouponUpdate
from couponpool.services.coupon_service import CouponService, generate_test_code
from couponpool.services.errors import (
    ClaimedCouponCodeLocked,
    CouponAlreadyClaimed,
    CouponValidationError,
    DuplicateCouponCode,
)
from tests.conftest import add_coupons

BASE = "/api/coupons/"


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def claim_first_available(db_session, fingerprint="fp-test"):
    from couponpool.services.claim_service import CouponAllocator

    return CouponAllocator(db_session).allocate(fingerprint, "10.0.0.1")


class TestCouponSchemas:
    def test_code_is_stripped(self):
        assert CouponCreate(code="  SAVE10 ", description="x").code == "SAVE10"

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError):
            CouponCreate(code="   ", description="x")

    def test_description_required(self):
        with pytest.raises(ValidationError):
            CouponCreate(code="SAVE10", description="")

    def test_accepts_camel_case_is_active(self):
        assert CouponCreate(code="A", description="x", isActive=False).is_active is False
        assert CouponUpdate(isActive=True).is_active is True

    def test_update_rejects_blank_description(self):
        with pytest.raises(ValidationError):
            CouponUpdate(description="")

    def test_defaults_to_active(self):
        assert CouponCreate(code="A", description="x").is_active is True


class TestCouponRepository:
    def test_create_defaults(self, db_session):
        coupon = CouponRepository(db_session).create(
            CouponCreate(code="NEW1", description="New coupon")
        )
        assert coupon.id is not None
        assert coupon.is_active is True
        assert coupon.is_claimed is False
        assert coupon.claimed_by_id is None
        assert coupon.created_at is not None

    def test_existing_codes(self, db_session):
        add_coupons(db_session, "A", "B")
        repo = CouponRepository(db_session)
        assert repo.existing_codes(["A", "C", "B", "A"]) == {"A", "B"}
        assert repo.existing_codes([]) == set()

    def test_get_next_available_is_fifo(self, db_session):
        add_coupons(db_session, "OLD", "NEW")
        assert CouponRepository(db_session).get_next_available().code == "OLD"

    def test_mark_claimed_only_once(self, db_session):
        (coupon,) = add_coupons(db_session, "ONCE")
        repo = CouponRepository(db_session)

        assert repo.mark_claimed(coupon.id, uuid4()) is True
        db_session.commit()
        assert repo.mark_claimed(coupon.id, uuid4()) is False
        db_session.rollback()

    def test_mark_claimed_skips_inactive(self, db_session):
        (coupon,) = add_coupons(db_session, "OFF")
        coupon.is_active = False
        db_session.commit()

        assert CouponRepository(db_session).mark_claimed(coupon.id, uuid4()) is False
        db_session.rollback()

    def test_delete_refuses_claimed(self, db_session):
        add_coupons(db_session, "KEEP")
        claim = claim_first_available(db_session)

        assert CouponRepository(db_session).delete(claim.coupon_id) is False
        assert db_session.query(Coupon).count() == 1

    def test_pool_counts(self, db_session):
        coupons = add_coupons(db_session, "A", "B", "C")
        coupons[2].is_active = False
        db_session.commit()
        claim_first_available(db_session)

        counts = CouponRepository(db_session).pool_counts()
        assert (counts.total, counts.claimed, counts.available) == (3, 1, 1)


class TestCouponService:
    def test_duplicate_code(self, db_session):
        service = CouponService(db_session)
        service.create_coupon(CouponCreate(code="DUP", description="x"))
        with pytest.raises(DuplicateCouponCode):
            service.create_coupon(CouponCreate(code="DUP", description="y"))

    def test_batch_skips_existing_and_repeated_codes(self, db_session):
        add_coupons(db_session, "EXISTING")
        items = [
            CouponCreate(code="EXISTING", description="x"),
            CouponCreate(code="NEW1", description="first"),
            CouponCreate(code="NEW1", description="repeat"),
            CouponCreate(code="NEW2", description="x"),
        ]

        result = CouponService(db_session).create_batch(items)

        assert [c.code for c in result.created] == ["NEW1", "NEW2"]
        assert result.created[0].description == "first"
        assert result.skipped == 2

    def test_batch_of_only_existing_codes(self, db_session):
        add_coupons(db_session, "A")
        with pytest.raises(CouponValidationError, match="All coupon codes already exist"):
            CouponService(db_session).create_batch([CouponCreate(code="A", description="x")])

    def test_rename_claimed_raises(self, db_session):
        add_coupons(db_session, "HANDED")
        claim = claim_first_available(db_session)

        with pytest.raises(ClaimedCouponCodeLocked):
            CouponService(db_session).update_coupon(claim.coupon_id, CouponUpdate(code="RENAMED"))

        db_session.expire_all()
        assert db_session.query(Coupon).filter(Coupon.id == claim.coupon_id).one().code == "HANDED"

    def test_rename_unclaimed_coupon(self, db_session):
        (coupon,) = add_coupons(db_session, "BEFORE")

        updated = CouponService(db_session).update_coupon(coupon.id, CouponUpdate(code="AFTER"))

        assert updated.code == "AFTER"

    def test_delete_claimed_raises(self, db_session):
        add_coupons(db_session, "CLAIMED")
        claim = claim_first_available(db_session)
        with pytest.raises(CouponAlreadyClaimed):
            CouponService(db_session).delete_coupon(claim.coupon_id)

    def test_generate_test_code_format(self):
        code = generate_test_code()
        assert code.startswith("TEST-")
        assert len(code) == 13
        assert code[5:].isalnum() and code[5:].upper() == code[5:]

    def test_generate_test_coupons_count_bounds(self, db_session):
        with pytest.raises(CouponValidationError):
            CouponService(db_session).generate_test_coupons(0)
        with pytest.raises(CouponValidationError):
            CouponService(db_session).generate_test_coupons(101)


class TestCouponAdminApi:
    def test_requires_authentication(self, client: TestClient):
        resp = client.get(BASE)
        assert resp.status_code == 401
        assert resp.json() == {"message": "Authentication required"}

    def test_create_coupon(self, client: TestClient, admin_headers):
        resp = client.post(
            BASE,
            json={"code": "SAVE10", "description": "10% off", "isActive": True},
            headers=admin_headers,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Coupon created successfully"
        assert body["coupon"]["code"] == "SAVE10"
        assert body["coupon"]["is_claimed"] is False

    def test_create_duplicate_returns_400(self, client: TestClient, admin_headers):
        payload = {"code": "SAVE10", "description": "10% off"}
        client.post(BASE, json=payload, headers=admin_headers)

        resp = client.post(BASE, json=payload, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json() == {"message": "Coupon code already exists"}

    def test_create_invalid_payload_returns_422(self, client: TestClient, admin_headers):
        resp = client.post(BASE, json={"code": "", "description": "x"}, headers=admin_headers)
        assert resp.status_code == 422

    def test_list_coupons_with_total(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "A", "B", "C")

        resp = client.get(BASE, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.headers["X-Total-Count"] == "3"
        assert [c["code"] for c in resp.json()] == ["C", "B", "A"]

    def test_list_coupons_filters(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "A", "B", "C")
        claim_first_available(db_session)

        resp = client.get(f"{BASE}?is_claimed=false&order_by=code:asc", headers=admin_headers)

        assert [c["code"] for c in resp.json()] == ["B", "C"]
        assert resp.headers["X-Total-Count"] == "2"

    def test_get_coupon_with_claim(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "A")
        claim = claim_first_available(db_session, fingerprint="device-x")

        resp = client.get(f"{BASE}{claim.coupon_id}", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["is_claimed"] is True
        assert body["claimed_by_id"] == str(claim.id)
        assert body["claim"]["fingerprint"] == "device-x"
        assert body["claim"]["ip_address"] == "10.0.0.1"

    def test_get_unclaimed_coupon_has_no_claim(
        self, client: TestClient, db_session, admin_headers
    ):
        (coupon,) = add_coupons(db_session, "A")

        resp = client.get(f"{BASE}{coupon.id}", headers=admin_headers)

        assert resp.json()["claim"] is None

    def test_get_missing_coupon(self, client: TestClient, admin_headers):
        resp = client.get(f"{BASE}{uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"message": "Coupon not found"}

    def test_batch_create(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "OLD")

        resp = client.post(
            f"{BASE}batch",
            json={
                "coupons": [
                    {"code": "OLD", "description": "x"},
                    {"code": "N1", "description": "x"},
                    {"code": "N2", "description": "x"},
                ]
            },
            headers=admin_headers,
        )

        assert resp.status_code == 201
        assert resp.json() == {
            "message": "2 coupons created successfully",
            "created": 2,
            "duplicatesSkipped": 1,
        }

    def test_batch_all_duplicates(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "OLD")

        resp = client.post(
            f"{BASE}batch",
            json={"coupons": [{"code": "OLD", "description": "x"}]},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert resp.json() == {"message": "All coupon codes already exist"}

    def test_batch_empty_is_rejected(self, client: TestClient, admin_headers):
        resp = client.post(f"{BASE}batch", json={"coupons": []}, headers=admin_headers)
        assert resp.status_code == 422

    def test_generate_test_coupons(self, client: TestClient, admin_headers):
        resp = client.post(f"{BASE}test-coupons", json={"count": 3}, headers=admin_headers)

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "3 test coupons created successfully"
        codes = [c["code"] for c in body["coupons"]]
        assert len(set(codes)) == 3
        assert all(code.startswith("TEST-") for code in codes)
        assert [c["description"] for c in body["coupons"]] == [
            "Test coupon 1",
            "Test coupon 2",
            "Test coupon 3",
        ]

    def test_generate_test_coupons_default_count(self, client: TestClient, admin_headers):
        resp = client.post(f"{BASE}test-coupons", headers=admin_headers)
        assert resp.status_code == 201
        assert len(resp.json()["coupons"]) == 5

    def test_update_coupon(self, client: TestClient, db_session, admin_headers):
        (coupon,) = add_coupons(db_session, "A")

        resp = client.put(
            f"{BASE}{coupon.id}",
            json={"description": "Updated", "isActive": False},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Coupon updated successfully"
        assert body["coupon"]["description"] == "Updated"
        assert body["coupon"]["is_active"] is False
        assert body["coupon"]["code"] == "A"

    def test_update_to_taken_code(self, client: TestClient, db_session, admin_headers):
        first, _ = add_coupons(db_session, "A", "B")

        resp = client.put(f"{BASE}{first.id}", json={"code": "B"}, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json() == {"message": "Coupon code already exists"}

    def test_rename_claimed_coupon_is_refused(
        self, client: TestClient, db_session, admin_headers
    ):
        add_coupons(db_session, "HANDED")
        claim = claim_first_available(db_session)

        resp = client.put(
            f"{BASE}{claim.coupon_id}", json={"code": "RENAMED"}, headers=admin_headers
        )

        assert resp.status_code == 400
        assert resp.json() == {"message": "Cannot change the code of a claimed coupon"}
        detail = client.get(f"{BASE}{claim.coupon_id}", headers=admin_headers).json()
        assert detail["code"] == "HANDED"

    def test_claimed_coupon_description_can_change(
        self, client: TestClient, db_session, admin_headers
    ):
        add_coupons(db_session, "HANDED")
        claim = claim_first_available(db_session)

        resp = client.put(
            f"{BASE}{claim.coupon_id}",
            json={"code": "HANDED", "description": "Reworded", "isActive": False},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        coupon = resp.json()["coupon"]
        assert coupon["code"] == "HANDED"
        assert coupon["description"] == "Reworded"
        assert coupon["is_active"] is False
        assert coupon["is_claimed"] is True

    def test_update_blank_description_returns_422(
        self, client: TestClient, db_session, admin_headers
    ):
        (coupon,) = add_coupons(db_session, "A")

        resp = client.put(f"{BASE}{coupon.id}", json={"description": ""}, headers=admin_headers)

        assert resp.status_code == 422

    def test_update_missing_coupon(self, client: TestClient, admin_headers):
        resp = client.put(f"{BASE}{uuid4()}", json={"description": "x"}, headers=admin_headers)
        assert resp.status_code == 404

    def test_deactivated_coupon_is_not_handed_out(
        self, client: TestClient, db_session, admin_headers
    ):
        first, _ = add_coupons(db_session, "A", "B")
        client.put(f"{BASE}{first.id}", json={"isActive": False}, headers=admin_headers)

        resp = client.post("/api/coupons/claim", headers={"X-Forwarded-For": "192.0.2.1"})

        assert resp.json()["coupon"]["code"] == "B"

    def test_delete_coupon(self, client: TestClient, db_session, admin_headers):
        (coupon,) = add_coupons(db_session, "A")

        resp = client.delete(f"{BASE}{coupon.id}", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json() == {"message": "Coupon deleted successfully"}
        assert client.get(f"{BASE}{coupon.id}", headers=admin_headers).status_code == 404

    def test_delete_claimed_coupon_is_refused(
        self, client: TestClient, db_session, admin_headers
    ):
        add_coupons(db_session, "A")
        claim = claim_first_available(db_session)

        resp = client.delete(f"{BASE}{claim.coupon_id}", headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json() == {"message": "Cannot delete a claimed coupon"}
        detail = client.get(f"{BASE}{claim.coupon_id}", headers=admin_headers).json()
        assert detail["is_claimed"] is True

    def test_delete_missing_coupon(self, client: TestClient, admin_headers):
        resp = client.delete(f"{BASE}{uuid4()}", headers=admin_headers)
        assert resp.status_code == 404

    def test_pool_stats(self, client: TestClient, db_session, admin_headers):
        add_coupons(db_session, "A", "B")
        claim_first_available(db_session)

        resp = client.get(f"{BASE}stats", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json() == {"totalCoupons": 2, "claimedCoupons": 1, "availableCoupons": 1}

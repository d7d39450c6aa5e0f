"""Claim ledger API endpoints (admin only)."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from couponpool.core.auth import require_admin
from couponpool.core.database import get_db
from couponpool.models.claim import Claim
from couponpool.schemas.claim import ClaimResponse, ClaimStatsResponse
from couponpool.services.ledger_service import LedgerService

router = APIRouter(
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)


@router.get("/", response_model=list[ClaimResponse], summary="List claims")
def list_claims(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Claim]:
    """List every claim, most recent first unless ``order_by`` says otherwise."""
    claims, total = LedgerService(db).list_claims(skip=skip, limit=limit, order_by=order_by)
    response.headers["X-Total-Count"] = str(total)
    return claims


@router.get("/stats", response_model=ClaimStatsResponse, summary="Claim statistics")
def get_claim_stats(db: Session = Depends(get_db)) -> ClaimStatsResponse:
    stats = LedgerService(db).stats()
    return ClaimStatsResponse(
        total_claims=stats.total_claims,
        claims_last_24_hours=stats.claims_last_24_hours,
        claims_last_7_days=stats.claims_last_7_days,
        unique_ip_count=stats.unique_ip_count,
        unique_browser_count=stats.unique_browser_count,
    )


@router.get("/ip/{ip_address}", response_model=list[ClaimResponse], summary="Claims by IP")
def list_claims_by_ip(
    ip_address: str,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Claim]:
    claims, total = LedgerService(db).list_claims(ip_address=ip_address, skip=skip, limit=limit)
    response.headers["X-Total-Count"] = str(total)
    return claims


@router.get(
    "/browser/{fingerprint}",
    response_model=list[ClaimResponse],
    summary="Claims by browser fingerprint",
)
def list_claims_by_fingerprint(
    fingerprint: str,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Claim]:
    claims, total = LedgerService(db).list_claims(
        fingerprint=fingerprint, skip=skip, limit=limit
    )
    response.headers["X-Total-Count"] = str(total)
    return claims

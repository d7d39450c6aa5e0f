"""Admin session endpoints.

Logging in belongs to the external admin auth service; this API only checks
the session and clears its cookie.
"""

from fastapi import APIRouter, Depends, Response

from couponpool.core.auth import require_admin
from couponpool.core.config import settings
from couponpool.schemas.coupon import MessageResponse

router = APIRouter()


@router.get(
    "/check",
    summary="Check admin session",
    responses={401: {"description": "Unauthorized"}},
)
def check_session(admin_id: str = Depends(require_admin)) -> dict[str, object]:
    return {"isAuthenticated": True, "adminId": admin_id}


@router.post("/logout", response_model=MessageResponse, summary="Log out")
def logout(response: Response) -> MessageResponse:
    response.delete_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        domain=settings.COOKIE_DOMAIN,
        secure=settings.COOKIE_SECURE,
        httponly=True,
        samesite=settings.COOKIE_SAMESITE,  # type: ignore[arg-type]
    )
    return MessageResponse(message="Logged out successfully")

import jwt
from fastapi import HTTPException, Request

from couponpool.core.config import settings
from couponpool.services.admin_auth_service import AdminAuthService


def require_admin(request: Request) -> str:
    """Authenticate an admin from the session cookie or a Bearer token.

    The cookie wins when both are present. Returns the admin id from the token.
    """
    token = request.cookies.get(settings.ADMIN_COOKIE_NAME)

    if not token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]

    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        return AdminAuthService.verify_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None


def get_client_ip(request: Request) -> str:
    """Best-effort client address: first forwarded hop, else the socket peer."""
    if settings.TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"

from datetime import UTC, datetime, timedelta

import jwt

from couponpool.core.config import settings

TOKEN_TYPE = "admin"


class AdminAuthService:
    @staticmethod
    def issue_token(admin_id: str, hours: int | None = None) -> str:
        """Sign an admin JWT, valid for ``ADMIN_TOKEN_HOURS`` by default."""
        now = datetime.now(UTC)
        payload = {
            "sub": str(admin_id),
            "type": TOKEN_TYPE,
            "iat": now,
            "exp": now + timedelta(hours=hours or settings.ADMIN_TOKEN_HOURS),
        }
        return jwt.encode(payload, settings.ADMIN_JWT_SECRET, algorithm="HS256")

    @staticmethod
    def verify_token(token: str) -> str:
        """Decode and validate an admin JWT, returning the admin id.

        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
        """
        payload = jwt.decode(token, settings.ADMIN_JWT_SECRET, algorithms=["HS256"])
        if payload.get("type") != TOKEN_TYPE or not payload.get("sub"):
            raise jwt.InvalidTokenError("Invalid token type")
        return str(payload["sub"])

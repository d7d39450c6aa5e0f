"""Device fingerprint resolution for public claim requests."""

import hashlib
import re
import secrets
import time
from dataclasses import dataclass
from enum import Enum

from couponpool.core.config import settings

_COOKIE_VALUE_RE = re.compile(r"^[A-Za-z0-9-]{1,128}$")


class FingerprintMode(str, Enum):
    PERSISTED = "persisted"
    FRESH = "fresh"


@dataclass
class FingerprintResult:
    """Resolved fingerprint; ``is_new`` tells the caller to persist it as a cookie."""

    fingerprint: str
    is_new: bool


class FingerprintService:
    """Derives the per-device identifier used as the claim eligibility key.

    In ``persisted`` mode an existing cookie value is reused so a browser keeps
    the same identity across requests. In ``fresh`` mode every request gets a
    new identifier, which makes every request look like a new device.
    """

    def __init__(self, mode: FingerprintMode | str | None = None):
        self.mode = FingerprintMode(mode or settings.FINGERPRINT_MODE)

    def resolve(self, cookie_value: str | None, user_agent: str | None = None) -> FingerprintResult:
        if (
            self.mode == FingerprintMode.PERSISTED
            and cookie_value
            and _COOKIE_VALUE_RE.match(cookie_value)
        ):
            return FingerprintResult(fingerprint=cookie_value, is_new=False)
        return FingerprintResult(fingerprint=self.generate(user_agent), is_new=True)

    @staticmethod
    def generate(user_agent: str | None = None) -> str:
        """Mint a new fingerprint from a timestamp, a random token and the user agent."""
        parts = [str(time.time_ns()), secrets.token_hex(8)]
        if user_agent:
            parts.append(hashlib.sha256(user_agent.encode()).hexdigest()[:12])
        return "-".join(parts)

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "couponpool"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/couponpool.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Admin tokens (issued by the admin auth collaborator, verified here)
    ADMIN_JWT_SECRET: str = "change-me-to-a-long-random-secret-value"
    ADMIN_TOKEN_HOURS: int = 24
    ADMIN_COOKIE_NAME: str = "adminToken"

    # Cookie transport
    COOKIE_DOMAIN: str | None = None
    COOKIE_SECURE: bool = True
    COOKIE_SAMESITE: str = "none"  # "lax", "strict" or "none"
    TRUST_FORWARDED_FOR: bool = True

    # Fingerprinting
    FINGERPRINT_MODE: str = "persisted"  # "persisted" or "fresh"
    FINGERPRINT_COOKIE_NAME: str = "deviceId"
    FINGERPRINT_COOKIE_MAX_AGE_DAYS: int = 30

    # Claim policy
    CLAIM_ELIGIBILITY_KEY: str = "fingerprint"  # "fingerprint", "ip" or "both"
    CLAIM_COOLDOWN_POLICY: str = "window"  # "window" or "permanent"
    CLAIM_COOLDOWN_HOURS: int = 24
    CLAIM_MAX_ATTEMPTS: int = 3

    # Rate limiting
    RATE_LIMIT_CLAIMS_PER_MINUTE: int = 3
    RATE_LIMIT_API_REQUESTS: int = 100
    RATE_LIMIT_API_WINDOW_SECONDS: int = 15 * 60

    @property
    def fingerprint_cookie_max_age(self) -> int:
        return self.FINGERPRINT_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60


settings = Settings()

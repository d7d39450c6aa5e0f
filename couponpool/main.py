import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.responses import Response

from couponpool.core.auth import get_client_ip
from couponpool.core.config import settings
from couponpool.core.database import init_db
from couponpool.core.log_config import configure_logging
from couponpool.core.rate_limiter import api_rate_limiter
from couponpool.routers import auth, claims, coupons

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Coupons", "description": "Claim coupons and administer the coupon pool."},
    {"name": "Claims", "description": "Query the claim ledger."},
    {"name": "Auth", "description": "Admin session checks."},
]


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    init_db()
    logger.info("%s %s started", settings.APP_NAME, settings.version)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Hands out one-time coupon codes to anonymous visitors, oldest first, "
        "at most one per device per cooldown window."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.middleware("http")
async def api_rate_limit(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method != "OPTIONS" and request.url.path.startswith("/api"):
        ip_address = get_client_ip(request)
        if not api_rate_limiter.is_allowed(ip_address):
            retry_after = api_rate_limiter.retry_after(ip_address)
            return JSONResponse(
                status_code=429,
                content={
                    "message": "Too many requests from this IP, please try again later",
                    "retryAfter": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )
    return await call_next(request)


@app.exception_handler(HTTPException)
async def http_exception_handler(_request: Request, exc: HTTPException) -> Response:
    content: dict[str, object] = {"message": exc.detail}
    headers = dict(exc.headers or {})
    if exc.status_code == 429 and "Retry-After" in headers:
        content["retryAfter"] = int(headers["Retry-After"])
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers or None)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


app.include_router(coupons.router, prefix="/api/coupons", tags=["Coupons"])
app.include_router(claims.router, prefix="/api/claims", tags=["Claims"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }

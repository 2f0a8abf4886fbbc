"""
Rate limiting using slowapi.

Usage in a router (slowapi needs the `request` argument):

    @router.post("/login")
    @limiter.limit(LOGIN_RATE_LIMIT)
    def login(request: Request, body: LoginRequest, ...):
        ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from pos_shared.config.logging import get_logger
from pos_shared.config.settings import settings

logger = get_logger(__name__)

# Client IP as key; disabled in tests through RATE_LIMIT_ENABLED=false
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

LOGIN_RATE_LIMIT = f"{settings.login_rate_limit}/minute"

# Seconds a client waits after hitting a per-minute limit
RETRY_AFTER_SECONDS = 60


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handler for slowapi's RateLimitExceeded.
    Returns 429 JSON with a Retry-After header.
    """
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Demasiadas solicitudes. Intente de nuevo más tarde.",
            "limit": str(exc.detail),
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )

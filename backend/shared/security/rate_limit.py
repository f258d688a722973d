"""
Rate limiting with slowapi.

Checkout and payment endpoints are keyed by the authenticated user when a
bearer token is present, otherwise by client IP.

Usage in a router:
    from shared.security.rate_limit import limiter

    @router.post("/orders")
    @limiter.limit(settings.checkout_rate_limit)
    def place_order(request: Request, ...):
        ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


def user_or_ip_key(request: Request) -> str:
    """
    Rate limit key: the bearer token's tail when authenticated (one bucket per
    session), else the remote address.
    """
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer ") and len(authorization) > 40:
        return f"token:{authorization[-32:]}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_or_ip_key, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    JSON 429 response with retry information.
    """
    logger.warning("Rate limit exceeded", path=request.url.path, limit=str(exc.detail))
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please try again later.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(exc.detail)},
    )

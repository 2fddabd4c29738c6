"""
Rate limiting for endpoints that reach the upstream news API.

Manual syncs are limited per caller with slowapi. A caller is the
X-User-Id header when present, else the client address.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from fastapi import Request
from fastapi.responses import JSONResponse

from .config import config

SYNC_RETRY_AFTER_SECONDS = 60


def get_sync_rate_limit() -> str:
    """Manual sync limit from config; 0 or less disables it."""
    per_minute = config.SYNC_RATE_LIMIT_PER_MINUTE
    if per_minute <= 0:
        return "1000000/minute"
    return f"{per_minute}/minute"


def sync_caller_key(request: Request) -> str:
    user_id = request.headers.get("X-User-Id", "").strip()
    if user_id:
        return f"user:{user_id}"
    return f"addr:{get_remote_address(request)}"


limiter = Limiter(
    key_func=sync_caller_key,
    storage_uri="memory://",  # Per process; resets on restart
)


def sync_rate_limited_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 telling the client when its next manual sync may run."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many manual syncs ({exc.detail}); stored news is still served",
            "retry_after": SYNC_RETRY_AFTER_SECONDS,
        },
        headers={"Retry-After": str(SYNC_RETRY_AFTER_SECONDS)},
    )


def setup_rate_limiting(app):
    """Attach the limiter and its 429 handler to a FastAPI app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, sync_rate_limited_handler)

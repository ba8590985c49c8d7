"""Per-client request limits for the /api routes"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from token_pricer.core.config import Settings
from token_pricer.core.logging import get_logger

log = get_logger("rate_limit")

LIMITED_PREFIX = "/api/"


def rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning(f"Rate limit hit by {get_remote_address(request)} on {request.url.path} ({exc.detail})")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "message": "Rate limit exceeded. Please try again later.",
            "limit": exc.detail,
        },
    )


def install_rate_limit(app: FastAPI, config: Settings) -> Limiter:
    """Attach a limiter keyed by client IP. Call after every router is included."""
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[config.RATE_LIMIT],
        enabled=config.RATE_LIMIT_ENABLED,
    )
    for route in app.routes:
        endpoint = getattr(route, "endpoint", None)
        if endpoint is not None and not getattr(route, "path", "").startswith(LIMITED_PREFIX):
            limiter.exempt(endpoint)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded)
    app.add_middleware(SlowAPIMiddleware)
    return limiter

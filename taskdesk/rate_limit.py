from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    headers_enabled=True,
    enabled=settings.RATE_LIMIT_ENABLED,
)

_LIMIT_HEADERS = ("retry-after", "x-ratelimit-limit", "x-ratelimit-remaining", "x-ratelimit-reset")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the API's error envelope.

    slowapi's stock handler computes the rate-limit headers; its body is
    replaced and the headers are carried over.
    """
    stock = _rate_limit_exceeded_handler(request, exc)
    headers = {k: v for k, v in stock.headers.items() if k.lower() in _LIMIT_HEADERS}
    return JSONResponse(
        {"success": False, "message": f"Rate limit exceeded: {exc.detail}"},
        status_code=429,
        headers=headers,
    )


__all__ = ["limiter", "rate_limit_exceeded_handler"]

"""Rate limiting for credential endpoints."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from videotube.config import settings
from videotube.exception_handlers import create_error_response
from videotube.exceptions import ErrorCode
from videotube.utils.network import get_client_ip

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_client_ip,
    storage_uri="memory://",
    headers_enabled=False,
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render 429s in the standard error envelope."""
    logger.warning(
        f"Rate limit exceeded: {exc.detail}",
        extra={"path": request.url.path, "client_ip": get_client_ip(request)},
    )
    return create_error_response(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        message=f"Rate limit exceeded: {exc.detail}",
        error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
        path=request.url.path,
    )


def configure_rate_limiting(app) -> None:
    """Attach the limiter to the app and render 429s."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

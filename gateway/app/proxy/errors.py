"""
Error taxonomy for the forwarding pipeline.

Every stage either returns the input for the next stage or raises one of
these. ``proxy_error_handler`` (registered in main.py) turns them into the
terminal JSON response. CORS headers are attached only when the error knows
the caller's origin, i.e. after the origin has been authorized.
"""

from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..models import ErrorResponse
from .headers import cors_headers


class ProxyError(Exception):
    """Base class for errors that short-circuit the pipeline."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(self, cors_origin: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message or self.error)
        self.cors_origin = cors_origin
        self.message = message

    @property
    def payload(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, message=self.message)


class OriginRejected(ProxyError):
    """Caller's Origin is not allowlisted. Never carries CORS headers."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "Origin not allowed"

    def __init__(self):
        super().__init__(cors_origin=None)


class MissingTarget(ProxyError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Missing ?url= parameter"

    def __init__(self, origin: str):
        super().__init__(cors_origin=origin)


class InvalidTarget(ProxyError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid target URL"

    def __init__(self, origin: str):
        super().__init__(cors_origin=origin)


class UpstreamFailure(ProxyError):
    """Transport-level failure talking to the upstream (DNS, connect, TLS, timeout)."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error = "Upstream error"

    def __init__(self, origin: str, message: str):
        super().__init__(cors_origin=origin, message=message)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """
    Render a ProxyError as its JSON error body.

    Args:
        request: FastAPI request object
        exc: The pipeline error that was raised

    Returns:
        JSONResponse: ``{"error": ...}`` (plus ``message`` when set)
    """
    headers = cors_headers(exc.cors_origin) if exc.cors_origin else None
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.payload.model_dump(exclude_none=True),
        headers=headers,
    )

"""
Data Models Module

This module defines Pydantic models for the per-request state that flows
through the forwarding pipeline and for the JSON error bodies returned to
callers.

Models are organized by pipeline stage:
- Inbound models (what the browser sent)
- Forwarding models (what the upstream receives)
- Upstream models (what the upstream answered)
- Error models (JSON bodies for short-circuited requests)

Nothing here is persisted: every instance lives for one request only.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# Header lists keep the original order and any duplicated names.
HeaderList = List[Tuple[str, str]]


# ============================================================================
# Inbound Models
# ============================================================================

class InboundRequest(BaseModel):
    """Request as delivered by the HTTP layer, after origin and URL checks."""
    model_config = ConfigDict(frozen=True)

    method: str = Field(..., description="HTTP method used by the caller")
    origin: str = Field(..., description="Value of the caller's Origin header")
    headers: HeaderList = Field(default_factory=list, description="Full inbound header list")
    body: bytes = Field(default=b"", description="Raw request body")
    target_url: str = Field(..., description="Validated absolute http(s) upstream URL")


# ============================================================================
# Forwarding Models
# ============================================================================

class ForwardedRequest(BaseModel):
    """Sanitized request sent to the upstream."""
    model_config = ConfigDict(frozen=True)

    method: str = Field(..., description="HTTP method, unchanged")
    url: str = Field(..., description="Upstream URL")
    headers: HeaderList = Field(default_factory=list, description="Sanitized header list")
    body: Optional[bytes] = Field(None, description="Raw body, or None when empty")


# ============================================================================
# Upstream Models
# ============================================================================

class UpstreamResponse(BaseModel):
    """Upstream answer relayed to the caller."""
    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., description="Upstream HTTP status code")
    content_type: Optional[str] = Field(None, description="Upstream Content-Type, if any")
    body: bytes = Field(default=b"", description="Raw (decoded transfer) response body")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """JSON error body returned when a request is short-circuited."""
    error: str = Field(..., description="Short error description")
    message: Optional[str] = Field(None, description="Failure detail (upstream errors only)")

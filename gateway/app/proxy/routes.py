"""
Proxy Routes - Browser Request Forwarding
==========================================

This module implements the forwarding pipeline that lets the Runbook AI
agent page call third-party HTTP(s) APIs without handing its credentials to
a public CORS proxy.

Security Model:
---------------
1. Only callers whose Origin header exactly matches ALLOWED_ORIGINS are served
2. Preflights from other origins get a bare 403 so the browser blocks the call
3. Target URL must be an absolute http/https URL (checked before any I/O)
4. Browser fingerprint, sec-* and hop-by-hop headers are stripped
5. User-Agent is replaced with the gateway's own identity
6. Destination hosts are NOT restricted: the allowlist governs callers only

Pipeline:
---------
    preflight -> authorize_origin -> resolve_target -> build_forwarded_request
              -> dispatch -> relay_response

Each stage returns the next stage's input or raises a ProxyError, which
main.py renders as the terminal JSON response.

Endpoints:
----------
- ANY /{path}?url=<encoded upstream URL>  (documented form: /proxy?url=...)
"""

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request, Response, status
import httpx

from ..config import ALLOWED_ORIGINS, get_settings
from ..models import ForwardedRequest, InboundRequest, UpstreamResponse
from .errors import InvalidTarget, MissingTarget, OriginRejected, UpstreamFailure
from .headers import cors_headers, sanitize_request_headers

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter()

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_TARGET_SCHEMES = ("http", "https")
DEFAULT_CONTENT_TYPE = "application/json"


# ============================================================================
# Dependencies
# ============================================================================

UpstreamClientFactory = Callable[[], httpx.AsyncClient]


def build_upstream_client() -> httpx.AsyncClient:
    """
    Create the HTTP client for one upstream call.

    The caller closes it when the call finishes, so no connection pool is
    shared between requests. Redirects are followed, as a browser fetch would.

    Returns:
        httpx.AsyncClient bounded by UPSTREAM_TIMEOUT_SECONDS
    """
    settings = get_settings()
    timeout = httpx.Timeout(
        settings.UPSTREAM_TIMEOUT_SECONDS,
        connect=settings.upstream_connect_timeout,
    )
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def get_upstream_client_factory() -> UpstreamClientFactory:
    """
    Dependency that provides the upstream client factory.

    The client itself is only opened once a request has passed the origin
    and target checks, so preflights and rejected calls never build one.
    """
    return build_upstream_client


# ============================================================================
# Pipeline Stages
# ============================================================================

def preflight_response(origin: str, requested_headers: Optional[str]) -> Response:
    """
    Answer a CORS preflight.

    Allowlisted origins get 204 with CORS headers echoing the requested
    headers. Everyone else gets a bare 403: no body and no CORS headers, so
    the browser refuses to send the real request.
    """
    if origin not in ALLOWED_ORIGINS:
        logger.warning("Rejected preflight from origin %r", origin)
        return Response(status_code=status.HTTP_403_FORBIDDEN)

    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=cors_headers(origin, requested_headers),
    )


def authorize_origin(origin: str) -> str:
    """
    Gate every non-preflight request on an exact Origin match.

    Raises:
        OriginRejected: If origin is not in ALLOWED_ORIGINS
    """
    if origin not in ALLOWED_ORIGINS:
        logger.warning("Rejected request from origin %r", origin)
        raise OriginRejected()
    return origin


def resolve_target(raw_url: Optional[str], origin: str) -> str:
    """
    Validate the ``url`` query parameter.

    Args:
        raw_url: Decoded value of ``?url=``, or None when absent
        origin: Authorized caller origin (for CORS on errors)

    Returns:
        Absolute http(s) URL as a string

    Raises:
        MissingTarget: If the parameter is absent or empty
        InvalidTarget: If it is not an absolute http/https URL with a host
    """
    if not raw_url:
        logger.debug("Request without ?url= parameter")
        raise MissingTarget(origin)

    try:
        url = httpx.URL(raw_url)
    except httpx.InvalidURL:
        logger.debug("Unparseable target URL %r", raw_url)
        raise InvalidTarget(origin)

    if url.scheme not in ALLOWED_TARGET_SCHEMES or not url.host:
        logger.debug("Rejected target URL %r", raw_url)
        raise InvalidTarget(origin)

    return str(url)


def build_forwarded_request(inbound: InboundRequest) -> ForwardedRequest:
    """Strip classified headers and drop empty bodies."""
    return ForwardedRequest(
        method=inbound.method,
        url=inbound.target_url,
        headers=sanitize_request_headers(inbound.headers),
        body=inbound.body or None,
    )


async def dispatch(
    client: httpx.AsyncClient,
    forwarded: ForwardedRequest,
    origin: str,
) -> UpstreamResponse:
    """
    Send the forwarded request upstream exactly once.

    Header values were decoded as latin-1 by Starlette; re-encoding them the
    same way forwards the caller's original bytes, including non-ASCII ones.

    Raises:
        UpstreamFailure: On any transport error (DNS, connect, TLS, timeout,
            protocol, redirect loop)
    """
    try:
        response = await client.request(
            forwarded.method,
            forwarded.url,
            headers=httpx.Headers(forwarded.headers, encoding="latin-1"),
            content=forwarded.body,
        )
    except httpx.HTTPError as e:
        detail = str(e) or type(e).__name__
        logger.error(
            f"Upstream error: {detail}",
            extra={
                "method": forwarded.method,
                "target": forwarded.url,
                "exception_type": type(e).__name__,
            }
        )
        raise UpstreamFailure(origin, detail) from e

    return UpstreamResponse(
        status_code=response.status_code,
        content_type=response.headers.get("content-type"),
        body=response.content,
    )


def relay_response(upstream: UpstreamResponse, origin: str) -> Response:
    """
    Pass the upstream status, Content-Type and body back with CORS headers.

    Content-Type goes through ``headers`` rather than ``media_type`` so it is
    relayed verbatim (no charset appended).
    """
    headers = {"Content-Type": upstream.content_type or DEFAULT_CONTENT_TYPE}
    headers.update(cors_headers(origin))
    return Response(
        content=upstream.body,
        status_code=upstream.status_code,
        headers=headers,
    )


# ============================================================================
# Proxy Endpoint
# ============================================================================

@proxy_router.api_route("/{path:path}", methods=PROXY_METHODS)
async def forward(
    request: Request,
    client_factory: UpstreamClientFactory = Depends(get_upstream_client_factory),
) -> Response:
    """
    Forward a browser request to the URL given in ``?url=``.

    The path is not discriminated: every path runs the same pipeline.

    Returns:
        Upstream response (status, Content-Type, body) with CORS headers, or
        the preflight answer for OPTIONS requests
    """
    origin = request.headers.get("origin", "")

    if request.method == "OPTIONS":
        return preflight_response(origin, request.headers.get("access-control-request-headers"))

    authorize_origin(origin)

    # First value wins when ?url= is repeated
    target_values = request.query_params.getlist("url")
    target_url = resolve_target(target_values[0] if target_values else None, origin)

    inbound = InboundRequest(
        method=request.method,
        origin=origin,
        headers=request.headers.items(),
        body=await request.body(),
        target_url=target_url,
    )
    forwarded = build_forwarded_request(inbound)

    logger.info(
        f"Forwarding {forwarded.method} to {httpx.URL(forwarded.url).host}",
        extra={
            "origin": origin,
            "body_length": len(inbound.body),
        }
    )

    async with client_factory() as client:
        upstream = await dispatch(client, forwarded, origin)
    return relay_response(upstream, origin)

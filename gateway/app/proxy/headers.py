"""
Header classification and CORS helpers for the forwarding gateway.

Two static sets decide which inbound headers are dropped before a request is
forwarded upstream:

- HOP_BY_HOP_HEADERS: meaningful for a single network leg only, plus the
  headers that belong to the browser-to-gateway leg (host, origin, referer,
  cookie).
- BROWSER_IDENTITY_HEADERS: browser fingerprint headers. Upstream APIs with
  bot detection flag them on credentialed requests.

Any header whose name starts with ``sec-`` is dropped as well. Classification
looks at the header NAME only.
"""

from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

# https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers#hop-by-hop_headers
HOP_BY_HOP_HEADERS: FrozenSet[str] = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
    # browser <-> gateway leg only
    "host",
    "origin",
    "referer",
    "cookie",
})

BROWSER_IDENTITY_HEADERS: FrozenSet[str] = frozenset({
    "user-agent",
    "accept",
    "accept-charset",
    "accept-encoding",
    "accept-language",
    "cache-control",
    "pragma",
})

BROWSER_IDENTITY_PREFIX = "sec-"

PROXY_USER_AGENT = "runbook-ai-proxy/1.0"

CORS_ALLOW_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
CORS_DEFAULT_ALLOW_HEADERS = "Authorization, Content-Type"
CORS_MAX_AGE = "86400"


def is_hop_by_hop(name: str) -> bool:
    return name.lower() in HOP_BY_HOP_HEADERS


def is_browser_identity(name: str) -> bool:
    lower = name.lower()
    return lower in BROWSER_IDENTITY_HEADERS or lower.startswith(BROWSER_IDENTITY_PREFIX)


def sanitize_request_headers(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """
    Build the header list sent upstream.

    Drops hop-by-hop, browser-identity and ``sec-*`` headers, keeps every
    other header in its original order (duplicates included), then sets
    ``user-agent`` to the gateway's own identity.

    Args:
        headers: (name, value) pairs, typically ``request.headers.items()``

    Returns:
        Sanitized (name, value) pairs
    """
    forwarded = [
        (name, value)
        for name, value in headers
        if not is_hop_by_hop(name) and not is_browser_identity(name)
    ]
    forwarded.append(("user-agent", PROXY_USER_AGENT))
    return forwarded


def cors_headers(origin: str, requested_headers: Optional[str] = None) -> Dict[str, str]:
    """
    CORS response headers for an allowlisted origin.

    ``Access-Control-Allow-Headers`` echoes whatever the browser asked for in
    its preflight, so no static header allowlist has to be maintained here.
    """
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": requested_headers or CORS_DEFAULT_ALLOW_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }

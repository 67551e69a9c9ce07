"""
Proxy Package
=============

This package implements the origin-gated forwarding pipeline that relays
browser requests to arbitrary http(s) upstreams.

Main Components:
----------------
- routes.py: FastAPI router with the catch-all forwarding endpoint
- headers.py: Header classification, sanitization and CORS headers
- errors.py: ProxyError taxonomy and its JSON exception handler

Security Features:
------------------
- Exact-match Origin allowlist
- Hop-by-hop, browser fingerprint and sec-* header stripping
- Fixed gateway User-Agent on every upstream request

Usage:
------
    from gateway.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .errors import ProxyError, proxy_error_handler
from .routes import proxy_router

__all__ = ["proxy_router", "ProxyError", "proxy_error_handler"]

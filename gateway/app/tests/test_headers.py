"""
Unit Tests for Header Classification and Pipeline Stages
=========================================================

Tests for gateway/app/proxy/headers.py and the pure stages in
gateway/app/proxy/routes.py

Run tests:
----------
    pytest gateway/app/tests/test_headers.py -v
"""

import pytest

from gateway.app.models import InboundRequest
from gateway.app.proxy.errors import InvalidTarget, MissingTarget, OriginRejected
from gateway.app.proxy.headers import (
    BROWSER_IDENTITY_HEADERS,
    HOP_BY_HOP_HEADERS,
    PROXY_USER_AGENT,
    cors_headers,
    is_browser_identity,
    is_hop_by_hop,
    sanitize_request_headers,
)
from gateway.app.proxy.routes import (
    authorize_origin,
    build_forwarded_request,
    resolve_target,
)


ORIGIN = "https://www.runbookai.net"


# ============================================================================
# Classification Tests
# ============================================================================

def test_classification_sets_are_disjoint():
    assert HOP_BY_HOP_HEADERS.isdisjoint(BROWSER_IDENTITY_HEADERS)


def test_classification_sets_are_lower_case():
    for name in HOP_BY_HOP_HEADERS | BROWSER_IDENTITY_HEADERS:
        assert name == name.lower()


@pytest.mark.parametrize("name", ["Connection", "HOST", "Origin", "referer", "Cookie", "Transfer-Encoding"])
def test_hop_by_hop_is_case_insensitive(name):
    assert is_hop_by_hop(name)


@pytest.mark.parametrize("name", ["User-Agent", "Accept", "accept-encoding", "Sec-Fetch-Dest", "sec-ch-ua-platform"])
def test_browser_identity_headers(name):
    assert is_browser_identity(name)


@pytest.mark.parametrize("name", ["Authorization", "Content-Type", "X-Secret", "X-Sec-Token", "Secret"])
def test_application_headers_not_classified(name):
    """Only a leading sec- marks a header; names are matched literally"""
    assert not is_hop_by_hop(name)
    assert not is_browser_identity(name)


# ============================================================================
# Sanitizer Tests
# ============================================================================

def test_sanitize_strips_classified_headers_and_sets_user_agent():
    headers = [
        ("host", "localhost:8082"),
        ("connection", "keep-alive"),
        ("origin", ORIGIN),
        ("user-agent", "Mozilla/5.0"),
        ("accept", "*/*"),
        ("sec-fetch-mode", "cors"),
        ("authorization", "Bot token"),
        ("content-type", "application/json"),
    ]

    assert sanitize_request_headers(headers) == [
        ("authorization", "Bot token"),
        ("content-type", "application/json"),
        ("user-agent", PROXY_USER_AGENT),
    ]


def test_sanitize_adds_user_agent_when_absent():
    assert sanitize_request_headers([]) == [("user-agent", "runbook-ai-proxy/1.0")]


def test_sanitize_keeps_duplicate_headers_in_order():
    headers = [("x-tag", "a"), ("Cookie", "c=1"), ("x-tag", "b")]

    assert sanitize_request_headers(headers)[:2] == [("x-tag", "a"), ("x-tag", "b")]


def test_sanitize_ignores_values():
    """Classification looks at the name only"""
    headers = [("x-forwarded-note", "cookie"), ("x-other", "sec-fetch-mode")]

    assert sanitize_request_headers(headers)[:2] == headers


# ============================================================================
# CORS Header Tests
# ============================================================================

def test_cors_headers_default_allow_headers():
    assert cors_headers(ORIGIN) == {
        "Access-Control-Allow-Origin": ORIGIN,
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
        "Access-Control-Max-Age": "86400",
    }


def test_cors_headers_echo_requested_headers():
    headers = cors_headers(ORIGIN, "X-Anything, x-other")

    assert headers["Access-Control-Allow-Headers"] == "X-Anything, x-other"


# ============================================================================
# Pipeline Stage Tests
# ============================================================================

def test_authorize_origin_accepts_allowlisted():
    assert authorize_origin(ORIGIN) == ORIGIN


def test_authorize_origin_rejects_without_cors():
    with pytest.raises(OriginRejected) as exc_info:
        authorize_origin("https://runbookai.net.evil.example")

    assert exc_info.value.status_code == 403
    assert exc_info.value.cors_origin is None


@pytest.mark.parametrize("raw", [None, ""])
def test_resolve_target_missing(raw):
    with pytest.raises(MissingTarget) as exc_info:
        resolve_target(raw, ORIGIN)

    assert exc_info.value.cors_origin == ORIGIN
    assert exc_info.value.payload.model_dump(exclude_none=True) == {"error": "Missing ?url= parameter"}


@pytest.mark.parametrize("raw", ["not-a-url", "ftp://host/path", "ws://host/socket", "mailto:ops@example.com"])
def test_resolve_target_invalid(raw):
    with pytest.raises(InvalidTarget):
        resolve_target(raw, ORIGIN)


@pytest.mark.parametrize("raw", [
    "http://localhost:8080/health",
    "https://api.example.com/v1/items?limit=5",
    "HTTPS://API.EXAMPLE.COM/v1",
])
def test_resolve_target_accepts_http_and_https(raw):
    """No destination restriction: any absolute http(s) URL is accepted"""
    resolved = resolve_target(raw, ORIGIN)

    assert resolved.lower().startswith(("http://", "https://"))


def test_build_forwarded_request_omits_empty_body():
    inbound = InboundRequest(
        method="GET",
        origin=ORIGIN,
        headers=[("cookie", "a=1"), ("authorization", "Bot t")],
        body=b"",
        target_url="https://api.example.com/",
    )

    forwarded = build_forwarded_request(inbound)

    assert forwarded.body is None
    assert forwarded.url == "https://api.example.com/"
    assert forwarded.headers == [("authorization", "Bot t"), ("user-agent", PROXY_USER_AGENT)]


def test_build_forwarded_request_keeps_body():
    inbound = InboundRequest(
        method="PATCH",
        origin=ORIGIN,
        body=b'{"name":"ops"}',
        target_url="https://api.example.com/",
    )

    assert build_forwarded_request(inbound).body == b'{"name":"ops"}'

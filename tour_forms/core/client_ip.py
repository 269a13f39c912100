"""Caller IP resolution for the IP rate-limit dimension.

Behind Cloudflare or a reverse proxy the socket peer is the proxy, so the
forwarding headers are consulted first (in order of trust):

1. ``CF-Connecting-IP``
2. ``X-Real-IP``
3. first entry of ``X-Forwarded-For``

Header trust can be disabled with ``APP_TRUST_PROXY_HEADERS=false`` when the
service is exposed directly.
"""

from __future__ import annotations

from typing import Mapping

from fastapi import Request

from tour_forms.core.config import settings

UNKNOWN_IP = "unknown"

PROXY_HEADERS = ("cf-connecting-ip", "x-real-ip")


def resolve_client_ip(
    headers: Mapping[str, str],
    peer: str | None = None,
    *,
    trust_proxy_headers: bool = True,
) -> str:
    """Pick the caller IP from proxy headers, falling back to the socket peer.

    Args:
        headers: Request headers (case-insensitive mapping in practice).
        peer: Socket peer host, if known.
        trust_proxy_headers: When False, headers are ignored.

    Returns:
        The best-known client IP, or ``"unknown"``.
    """

    if trust_proxy_headers:
        for name in PROXY_HEADERS:
            value = (headers.get(name) or "").strip()
            if value:
                return value

        forwarded = headers.get("x-forwarded-for") or ""
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return peer or UNKNOWN_IP


def get_client_ip(request: Request) -> str:
    """FastAPI dependency returning the caller IP for the current request."""

    peer = request.client.host if request.client else None
    return resolve_client_ip(
        request.headers,
        peer,
        trust_proxy_headers=settings.app.trust_proxy_headers,
    )

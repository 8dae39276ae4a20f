"""Inbound webhook authentication — shared-secret token check."""

from __future__ import annotations

import hmac
from collections.abc import Mapping

from src.relay.exceptions import AuthError

DEFAULT_TOKEN_HEADER = "x-kener-token"


def authorize(presented_token: str, configured_secret: str) -> bool:
    """Return True when *presented_token* matches *configured_secret*.

    An empty secret disables authentication, so every caller is accepted.
    Tokens of a different length are rejected before any content is compared;
    equal-length tokens are compared in constant time.
    """
    if not configured_secret:
        return True

    presented = (presented_token or "").encode("utf-8")
    expected = configured_secret.encode("utf-8")
    if len(presented) != len(expected):
        return False
    return hmac.compare_digest(presented, expected)


def extract_token(headers: Mapping[str, str], header_name: str = DEFAULT_TOKEN_HEADER) -> str:
    """Read the caller's token from request headers, trimmed; "" when absent."""
    return (headers.get(header_name) or "").strip()


def require_token(
    headers: Mapping[str, str],
    configured_secret: str,
    header_name: str = DEFAULT_TOKEN_HEADER,
) -> None:
    """Raise AuthError unless the request carries the configured token."""
    if not authorize(extract_token(headers, header_name), configured_secret):
        raise AuthError(f"invalid {header_name}")

"""Exception hierarchy for the webhook relay."""

from __future__ import annotations

from typing import Any

# Reported in place of a response body that could not be decoded as JSON.
UNPARSEABLE_BODY = "<unparseable body>"


class RelayError(Exception):
    """Base exception for all relay errors."""


class AuthError(RelayError):
    """Inbound webhook token is missing or does not match the shared secret."""


class DispatchError(RelayError):
    """The chat platform did not accept a message.

    Carries the HTTP status (``None`` when the request never got a response)
    and whatever body came back.
    """

    def __init__(self, message: str, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

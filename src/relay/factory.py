"""Convenience factory for wiring the relay stack."""

from __future__ import annotations

from src.core.config import Settings
from src.relay.channels import NotificationChannel, TelegramChannel
from src.relay.dispatcher import RelayDispatcher


def create_relay_stack(
    settings: Settings,
    channel: NotificationChannel | None = None,
) -> RelayDispatcher:
    """Build a dispatcher delivering to Telegram (or to *channel* if given)."""
    if channel is None:
        channel = TelegramChannel(settings.telegram)
    return RelayDispatcher(channel=channel)

"""Kener → Telegram webhook relay: auth, normalisation, formatting, delivery."""

from src.relay.auth import authorize, extract_token, require_token
from src.relay.channels import NotificationChannel, TelegramChannel
from src.relay.dispatcher import RelayDispatcher
from src.relay.exceptions import AuthError, DispatchError, RelayError
from src.relay.factory import create_relay_stack
from src.relay.formatters import escape_html, format_alert, format_time
from src.relay.normalizer import normalize
from src.relay.server import create_web_app, start_relay_server
from src.relay.types import KenerEvent, NormalizedAlert, RenderedMessage

__all__ = [
    "AuthError",
    "DispatchError",
    "KenerEvent",
    "NormalizedAlert",
    "NotificationChannel",
    "RelayDispatcher",
    "RelayError",
    "RenderedMessage",
    "TelegramChannel",
    "authorize",
    "create_relay_stack",
    "create_web_app",
    "escape_html",
    "extract_token",
    "require_token",
    "format_alert",
    "format_time",
    "normalize",
    "start_relay_server",
]

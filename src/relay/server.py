"""Inbound HTTP surface — health check and Kener webhook receipt.

Runs as an ``aiohttp`` web server. Exposes:
- ``GET /health`` → ``ok`` (liveness only, no dependency checks)
- ``POST /``      → accepts a Kener webhook, acknowledges at once and relays
  it to Telegram in the background
"""

from __future__ import annotations

from typing import Any

import structlog
from aiohttp import web

from src.core.config import Settings
from src.relay.auth import require_token
from src.relay.dispatcher import RelayDispatcher
from src.relay.exceptions import AuthError

logger = structlog.get_logger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)
DISPATCHER_KEY = web.AppKey("dispatcher", RelayDispatcher)


async def _handle_health(request: web.Request) -> web.Response:
    return web.Response(status=200, text="ok")


async def _read_event(request: web.Request) -> Any:
    """Decode the JSON body; anything undecodable becomes an empty event."""
    if not request.can_read_body:
        return {}
    try:
        return await request.json()
    except ValueError:
        logger.warning("webhook_body_unparseable", content_type=request.content_type)
        return {}


async def _handle_webhook(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    dispatcher = request.app[DISPATCHER_KEY]

    try:
        require_token(
            request.headers,
            settings.auth.webhook_secret.get_secret_value(),
            settings.auth.token_header,
        )
    except AuthError:
        logger.info("webhook_unauthorized", remote=request.remote)
        return web.json_response({"ok": False, "error": "invalid token"}, status=401)

    event = await _read_event(request)
    logger.debug("webhook_received", remote=request.remote)

    # Acknowledge first; the relay's outcome never changes this response.
    dispatcher.submit(event)
    return web.json_response({"ok": True}, status=200)


def create_web_app(settings: Settings, dispatcher: RelayDispatcher) -> web.Application:
    """Create the aiohttp web application."""
    app = web.Application(client_max_size=settings.server.max_body_bytes)
    app[SETTINGS_KEY] = settings
    app[DISPATCHER_KEY] = dispatcher
    app.router.add_get("/health", _handle_health)
    app.router.add_post("/", _handle_webhook)
    return app


async def start_relay_server(settings: Settings, dispatcher: RelayDispatcher) -> web.AppRunner:
    """Start the relay HTTP server. Returns the runner for cleanup."""
    app = create_web_app(settings, dispatcher)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.server.host, settings.server.port)
    await site.start()
    logger.info(
        "relay_server_started",
        host=settings.server.host,
        port=settings.server.port,
        auth_enabled=settings.auth_enabled,
    )
    return runner

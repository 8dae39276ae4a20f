#!/usr/bin/env python3
"""Relay entrypoint — loads config, starts the webhook server, runs until signalled.

Usage::

    # Configure via environment (or a .env file in the working directory)
    TELEGRAM_BOT_TOKEN=... TELEGRAM_CHAT_ID=... python -m scripts.run

    # Optional YAML config file
    python -m scripts.run --config config/settings.yaml

    # Override log level
    python -m scripts.run --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

import structlog
from dotenv import load_dotenv

from src.core.config import load_settings
from src.core.exceptions import ConfigError
from src.core.logging import setup_logging
from src.relay.factory import create_relay_stack
from src.relay.server import start_relay_server

logger = structlog.get_logger(__name__)


async def run(args: argparse.Namespace) -> int:
    """Start the relay and serve until interrupted."""
    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        setup_logging(level=args.log_level)
        logger.error("config_invalid", error=str(exc))
        return 1

    setup_logging(level=args.log_level, config=settings.logging)

    dispatcher = create_relay_stack(settings)
    runner = await start_relay_server(settings, dispatcher)

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("relay_shutting_down", in_flight=dispatcher.pending)
    await runner.cleanup()
    await dispatcher.close()
    logger.info("relay_stopped")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Relay Kener webhook alerts to a Telegram chat.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args()

    load_dotenv()
    code = asyncio.run(run(args))
    sys.exit(code)


if __name__ == "__main__":
    main()

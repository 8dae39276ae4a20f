"""Relay dispatcher — runs normalize → format → send as detached background work."""

from __future__ import annotations

import asyncio

import structlog

from src.relay.channels import NotificationChannel
from src.relay.exceptions import DispatchError
from src.relay.formatters import format_alert
from src.relay.normalizer import normalize
from src.relay.types import KenerEvent, RenderedMessage

logger = structlog.get_logger(__name__)


class RelayDispatcher:
    """Forwards inbound events to a single notification channel.

    - ``submit`` schedules the whole pipeline as a detached task and returns
      at once; the caller never awaits the outcome.
    - Each message gets exactly one send attempt. Failures are logged and
      swallowed.
    - There is no limit on how many sends may be in flight.
    """

    def __init__(self, channel: NotificationChannel) -> None:
        self._channel = channel
        # Strong references keep detached tasks alive until they finish.
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ── Entry points ────────────────────────────────────────────

    def submit(self, event: KenerEvent) -> asyncio.Task[bool]:
        """Schedule ``relay(event)`` without waiting for it."""
        task = asyncio.create_task(self.relay(event))
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def relay(self, event: KenerEvent) -> bool:
        alert = normalize(event)
        message = format_alert(alert)
        ok = await self.dispatch(message)
        if ok:
            logger.info(
                "alert_relayed",
                alert_id=alert.id,
                alert_name=alert.alert_name,
                status=alert.status,
                severity=alert.severity,
            )
        return ok

    async def dispatch(self, message: RenderedMessage) -> bool:
        """Send one message. Returns False (after logging) when it was rejected."""
        try:
            await self._channel.send(message)
        except DispatchError as exc:
            logger.error(
                "relay_dispatch_failed",
                channel=type(self._channel).__name__,
                error=str(exc),
                status=exc.status,
                body=exc.body,
            )
            return False
        return True

    # ── Internal ────────────────────────────────────────────────

    def _on_task_done(self, task: asyncio.Task[bool]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "relay_task_error",
                error=f"{type(exc).__name__}: {exc}",
                exc_info=exc,
            )

    # ── Lifecycle ───────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait for every in-flight relay to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        try:
            await self._channel.close()
        except Exception:
            logger.exception("channel_close_error", channel=type(self._channel).__name__)

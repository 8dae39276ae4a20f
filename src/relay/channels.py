"""Outbound chat channel — Telegram Bot API delivery."""

from __future__ import annotations

import abc
import asyncio
from typing import Any

import aiohttp
import structlog

from src.core.config import TelegramConfig
from src.relay.exceptions import UNPARSEABLE_BODY, DispatchError
from src.relay.types import RenderedMessage

logger = structlog.get_logger(__name__)

TELEGRAM_PARSE_MODE = "HTML"


class NotificationChannel(abc.ABC):
    """Base class for message delivery channels."""

    @abc.abstractmethod
    async def send(self, message: RenderedMessage) -> None:
        """Deliver a message. Raises DispatchError when it is not accepted."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class TelegramChannel(NotificationChannel):
    """Delivers messages via the Telegram Bot API (HTML parse mode).

    A message counts as delivered only when the HTTP status is 2xx *and*
    the response body carries ``"ok": true``. One attempt, no retry.
    """

    def __init__(self, config: TelegramConfig) -> None:
        self._token = config.bot_token.get_secret_value()
        self._chat_id = config.chat_id
        self._api_base = config.api_base
        self._session: aiohttp.ClientSession | None = None

    @property
    def url(self) -> str:
        return f"{self._api_base}/bot{self._token}/sendMessage"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _build_payload(self, message: RenderedMessage) -> dict[str, Any]:
        return {
            "chat_id": self._chat_id,
            "text": message.text,
            "parse_mode": TELEGRAM_PARSE_MODE,
            "disable_web_page_preview": True,
        }

    async def send(self, message: RenderedMessage) -> None:
        payload = self._build_payload(message)

        try:
            session = self._get_session()
            async with session.post(self.url, json=payload) as resp:
                status = resp.status
                try:
                    data: Any = await resp.json(content_type=None)
                except ValueError:
                    data = None
                if data is None:
                    data = UNPARSEABLE_BODY
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise DispatchError(
                f"Telegram sendMessage failed: {type(exc).__name__}: {exc}",
                status=None,
                body=None,
            ) from exc

        acknowledged = isinstance(data, dict) and data.get("ok") is True
        if not (200 <= status < 300) or not acknowledged:
            raise DispatchError(
                f"Telegram sendMessage failed: HTTP {status}",
                status=status,
                body=data,
            )

        logger.debug("telegram_message_sent", status=status, chars=len(payload["text"]))

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

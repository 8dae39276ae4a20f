"""Tests for the HTTP surface — health, auth, immediate acknowledgement, end-to-end relay."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils
from pydantic import SecretStr
from structlog.testing import capture_logs

from src.core.config import AuthConfig, ServerConfig, Settings, TelegramConfig
from src.relay.channels import NotificationChannel, TelegramChannel
from src.relay.dispatcher import RelayDispatcher
from src.relay.server import create_web_app
from src.relay.types import RenderedMessage

_DEMO = {"id": "demo-1", "alert_name": "CPU high", "status": "TRIGGERED", "severity": "critical"}

ClientFactory = Callable[..., Awaitable[test_utils.TestClient]]


# ── Helpers ─────────────────────────────────────────────────────


class RecordingChannel(NotificationChannel):
    def __init__(self, gate: asyncio.Event | None = None) -> None:
        self.sent: list[RenderedMessage] = []
        self._gate = gate

    async def send(self, message: RenderedMessage) -> None:
        if self._gate is not None:
            await self._gate.wait()
        self.sent.append(message)

    async def close(self) -> None:
        pass


def _settings(secret: str = "", max_body_bytes: int = 256 * 1024) -> Settings:
    return Settings(
        server=ServerConfig(max_body_bytes=max_body_bytes),
        auth=AuthConfig(webhook_secret=SecretStr(secret)),
        telegram=TelegramConfig(bot_token=SecretStr("fake-token"), chat_id="12345"),
    )


@pytest.fixture
async def make_client() -> AsyncIterator[ClientFactory]:
    clients: list[test_utils.TestClient] = []

    async def _make(settings: Settings, dispatcher: RelayDispatcher) -> test_utils.TestClient:
        client = test_utils.TestClient(test_utils.TestServer(create_web_app(settings, dispatcher)))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


# ── Health ──────────────────────────────────────────────────────


class TestHealth:
    async def test_health_ok(self, make_client: ClientFactory) -> None:
        client = await make_client(_settings(secret="s"), RelayDispatcher(RecordingChannel()))
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.text() == "ok"


# ── Authentication ──────────────────────────────────────────────


class TestWebhookAuth:
    async def test_correct_token_relays(self, make_client: ClientFactory) -> None:
        ch = RecordingChannel()
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(secret="s3cret"), disp)

        resp = await client.post("/", json=_DEMO, headers={"x-kener-token": "s3cret"})
        assert resp.status == 200
        assert await resp.json() == {"ok": True}

        await disp.drain()
        assert len(ch.sent) == 1
        text = ch.sent[0].text
        assert "🚨" in text
        assert "CPU high" in text
        assert "<code>critical</code>" in text
        assert "<code>TRIGGERED</code>" in text
        assert "<b>Source:</b> <code>Kener</code>" in text

    async def test_token_whitespace_trimmed(self, make_client: ClientFactory) -> None:
        disp = RelayDispatcher(RecordingChannel())
        client = await make_client(_settings(secret="s3cret"), disp)
        resp = await client.post("/", json=_DEMO, headers={"x-kener-token": " s3cret "})
        assert resp.status == 200
        await disp.drain()

    @pytest.mark.parametrize("headers", [{}, {"x-kener-token": "wrong"}, {"x-kener-token": ""}])
    async def test_bad_token_rejected(self, make_client: ClientFactory, headers: dict[str, str]) -> None:
        ch = RecordingChannel()
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(secret="s3cret"), disp)

        resp = await client.post("/", json=_DEMO, headers=headers)
        assert resp.status == 401
        assert await resp.json() == {"ok": False, "error": "invalid token"}

        await disp.drain()
        assert ch.sent == []
        assert disp.pending == 0

    async def test_auth_disabled_without_secret(self, make_client: ClientFactory) -> None:
        ch = RecordingChannel()
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(secret=""), disp)

        resp = await client.post("/", json=_DEMO)
        assert resp.status == 200
        await disp.drain()
        assert len(ch.sent) == 1


# ── Acknowledgement ─────────────────────────────────────────────


class TestAcknowledgement:
    async def test_response_before_send_completes(self, make_client: ClientFactory) -> None:
        gate = asyncio.Event()
        ch = RecordingChannel(gate=gate)
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(), disp)

        resp = await client.post("/", json=_DEMO)
        assert resp.status == 200
        assert await resp.json() == {"ok": True}
        assert ch.sent == []
        assert disp.pending == 1

        gate.set()
        await disp.drain()
        assert len(ch.sent) == 1

    async def test_invalid_json_treated_as_empty_event(self, make_client: ClientFactory) -> None:
        ch = RecordingChannel()
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(), disp)

        resp = await client.post(
            "/", data=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status == 200
        await disp.drain()
        assert ch.sent[0].lines[0] == "<b>ℹ️ Alert</b>"

    async def test_oversized_body_rejected(self, make_client: ClientFactory) -> None:
        ch = RecordingChannel()
        disp = RelayDispatcher(ch)
        client = await make_client(_settings(max_body_bytes=1024), disp)

        big = {"description": "x" * 4096}
        resp = await client.post("/", json=big)
        assert resp.status == 413
        await disp.drain()
        assert ch.sent == []


# ── Dispatch failure after acknowledgement ──────────────────────


class TestDispatchFailure:
    async def test_rejected_by_telegram_still_acknowledged(self, make_client: ClientFactory) -> None:
        settings = _settings(secret="s3cret")
        channel = TelegramChannel(settings.telegram)
        tg_resp = AsyncMock()
        tg_resp.status = 200
        tg_resp.json = AsyncMock(return_value={"ok": False})
        tg_resp.__aenter__ = AsyncMock(return_value=tg_resp)
        tg_resp.__aexit__ = AsyncMock(return_value=False)
        session = MagicMock()
        session.post = MagicMock(return_value=tg_resp)
        session.closed = False
        channel._session = session

        disp = RelayDispatcher(channel)
        client = await make_client(settings, disp)

        with capture_logs() as logs:
            resp = await client.post("/", json=_DEMO, headers={"x-kener-token": "s3cret"})
            assert resp.status == 200
            assert await resp.json() == {"ok": True}
            await disp.drain()

        session.post.assert_called_once()
        failures = [e for e in logs if e["event"] == "relay_dispatch_failed"]
        assert len(failures) == 1
        assert failures[0]["status"] == 200
        assert failures[0]["body"] == {"ok": False}

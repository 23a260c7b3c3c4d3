from __future__ import annotations

import json
from datetime import datetime
from types import SimpleNamespace

import httpx
import pytest

from vpswatch.services.notifier import (
    ChannelConfig,
    TelegramDispatcher,
    load_channel,
    server_down_message,
    server_recovered_message,
)

ENABLED = ChannelConfig(enabled=True, bot_token="123:abc", chat_id="42")


class Capture:
    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code == 200})


@pytest.mark.asyncio
async def test_send_posts_markdown_message() -> None:
    capture = Capture()
    dispatcher = TelegramDispatcher(transport=httpx.MockTransport(capture))

    assert await dispatcher.send(ENABLED, "hello *world*") is True

    request = capture.requests[0]
    assert str(request.url) == "https://api.telegram.org/bot123:abc/sendMessage"
    assert json.loads(request.content) == {
        "chat_id": "42",
        "text": "hello *world*",
        "parse_mode": "Markdown",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "channel",
    [
        None,
        ChannelConfig(enabled=False, bot_token="123:abc", chat_id="42"),
        ChannelConfig(enabled=True, bot_token=None, chat_id="42"),
        ChannelConfig(enabled=True, bot_token="123:abc", chat_id=""),
    ],
)
async def test_unusable_channel_sends_nothing(channel) -> None:
    capture = Capture()
    dispatcher = TelegramDispatcher(transport=httpx.MockTransport(capture))

    assert await dispatcher.send(channel, "hello") is False
    assert dispatcher.dispatch(channel, "hello") is None
    assert capture.requests == []


@pytest.mark.asyncio
async def test_non_success_response_returns_false() -> None:
    dispatcher = TelegramDispatcher(transport=httpx.MockTransport(Capture(status_code=500)))
    assert await dispatcher.send(ENABLED, "hello") is False


@pytest.mark.asyncio
async def test_transport_error_is_swallowed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    dispatcher = TelegramDispatcher(transport=httpx.MockTransport(handler))
    assert await dispatcher.send(ENABLED, "hello") is False


@pytest.mark.asyncio
async def test_dispatch_runs_in_background_and_drains() -> None:
    capture = Capture()
    dispatcher = TelegramDispatcher(transport=httpx.MockTransport(capture))

    task = dispatcher.dispatch(ENABLED, "background")
    assert task is not None

    await dispatcher.drain()

    assert task.done()
    assert task.result() is True
    assert len(capture.requests) == 1


@pytest.mark.asyncio
async def test_load_channel_reads_singleton(session_factory, telegram_enabled) -> None:
    async with session_factory() as session:
        channel = await load_channel(session)

    assert channel == ENABLED
    assert channel.is_usable


@pytest.mark.asyncio
async def test_seeded_channel_is_disabled(session_factory) -> None:
    async with session_factory() as session:
        channel = await load_channel(session)

    assert channel is not None
    assert channel.is_usable is False


def test_server_messages_format_last_report() -> None:
    server = SimpleNamespace(display_name="vps-1")
    report = datetime(2026, 1, 1, 12, 0, 0)

    assert "never" in server_down_message(server, None)
    assert "2026-01-01 12:00:00 UTC" in server_down_message(server, report)
    assert "*vps-1*" in server_recovered_message(server, report)

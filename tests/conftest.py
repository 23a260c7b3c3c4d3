"""Shared fixtures: a throwaway SQLite database per test and a recording notifier."""
from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vpswatch.database import init_db
from vpswatch.models import MonitoredSite, NotificationChannel, Server


class RecordingNotifier:
    """Stands in for the Telegram dispatcher; keeps every dispatched message."""

    def __init__(self) -> None:
        self.messages: list[str] = []
        self.channels: list = []

    def dispatch(self, channel, message: str):
        self.channels.append(channel)
        self.messages.append(message)
        return None


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def telegram_enabled(session_factory):
    async with session_factory() as session:
        channel = await session.get(NotificationChannel, 1)
        channel.bot_token = "123:abc"
        channel.chat_id = "42"
        channel.enabled = 1
        await session.commit()


@pytest.fixture
def make_site(session_factory):
    async def _make(site_id: str = "site-1", url: str = "https://example.com", name: str | None = "Example"):
        async with session_factory() as session:
            site = MonitoredSite(id=site_id, url=url, name=name, last_status="PENDING")
            session.add(site)
            await session.commit()
            return site
    return _make


@pytest.fixture
def make_server(session_factory):
    async def _make(server_id: str = "srv-1", name: str = "vps-1", api_key: str = "key-1"):
        async with session_factory() as session:
            server = Server(id=server_id, name=name, api_key=api_key)
            session.add(server)
            await session.commit()
            return server
    return _make

"""Notification dispatcher - best-effort Telegram messages.

Every send is a single attempt. Failures are logged and dropped; nothing is
retried, queued, or raised to the caller.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Set

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import NotificationChannel

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


@dataclass(frozen=True)
class ChannelConfig:
    """Detached copy of the Telegram singleton, safe to use outside a session."""
    enabled: bool
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.enabled and bool(self.bot_token) and bool(self.chat_id)


async def load_channel(session: AsyncSession) -> Optional[ChannelConfig]:
    """Read the channel singleton. Returns None when the row is missing."""
    row = await session.get(NotificationChannel, 1)
    if row is None:
        return None
    return ChannelConfig(
        enabled=bool(row.enabled),
        bot_token=row.bot_token,
        chat_id=row.chat_id,
    )


def site_down_message(site, outcome, repeated: bool = False) -> str:
    headline = "Site still down" if repeated else "Site down"
    return (
        f"🔴 {headline}: *{site.display_name}* is {outcome.status.lower()} "
        f"(status code: {outcome.status_code or 'none'}).\nURL: {site.url}"
    )


def site_recovered_message(site) -> str:
    return f"✅ Site recovered: *{site.display_name}* is back online!\nURL: {site.url}"


def _format_report_time(last_report: Optional[datetime]) -> str:
    if last_report is None:
        return "never"
    return last_report.strftime("%Y-%m-%d %H:%M:%S UTC")


def server_down_message(server, last_report: Optional[datetime]) -> str:
    return (
        f"🔴 VPS down: server *{server.display_name}* appears to be offline. "
        f"Last report: {_format_report_time(last_report)}."
    )


def server_recovered_message(server, last_report: Optional[datetime]) -> str:
    return (
        f"✅ VPS recovered: server *{server.display_name}* is online and reporting again. "
        f"Latest report: {_format_report_time(last_report)}."
    )


class TelegramDispatcher:
    """Sends messages through the Telegram Bot API."""

    def __init__(self, timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport
        self._pending: Set[asyncio.Task] = set()

    async def send(self, channel: Optional[ChannelConfig], message: str) -> bool:
        """Send one message. Returns True on a 2xx response, never raises."""
        if channel is None or not channel.is_usable:
            logger.debug("Telegram notifications are disabled or not configured")
            return False

        url = f"{TELEGRAM_API_BASE}/bot{channel.bot_token}/sendMessage"
        payload = {
            "chat_id": channel.chat_id,
            "text": message,
            "parse_mode": "Markdown",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload)
            if response.is_success:
                logger.info("Telegram notification sent")
                return True
            logger.warning(f"Telegram returned {response.status_code}: {response.text[:200]}")
            return False
        except Exception as e:
            logger.error(f"Failed to send Telegram notification: {e}")
            return False

    def dispatch(self, channel: Optional[ChannelConfig], message: str) -> Optional[asyncio.Task]:
        """Fire-and-forget send. The caller never waits for delivery."""
        if channel is None or not channel.is_usable:
            logger.debug("Telegram notifications are disabled or not configured")
            return None
        task = asyncio.create_task(self.send(channel, message))
        # Hold a reference until the task finishes so it is not garbage collected
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self):
        """Wait for in-flight sends. Used on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# Global instance
dispatcher = TelegramDispatcher()

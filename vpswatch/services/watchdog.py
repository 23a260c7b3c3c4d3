"""Liveness watchdog - derives server liveness from report staleness.

Servers are never probed. A server whose last metrics report is older than
five minutes (or that never reported) is treated as FAILING, and the same
debounce policy as for sites decides whether to notify. A server counts as
previously FAILING while its last_notified_down_at is set. No history is
recorded for servers.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ..models import Server, Metrics
from ..utils.db_utils import commit_versioned
from ..utils.timeutil import from_epoch, to_epoch, utcnow
from .notifier import (
    ChannelConfig,
    TelegramDispatcher,
    dispatcher,
    load_channel,
    server_down_message,
    server_recovered_message,
)
from .transitions import TransitionDecision, TransitionKind, decide_transition

logger = logging.getLogger(__name__)

STALE_AFTER = timedelta(minutes=5)


def is_stale(last_report: Optional[int], now: datetime) -> bool:
    """True when no report was ever received or the last one is too old."""
    if last_report is None:
        return True
    return to_epoch(now) - last_report > STALE_AFTER.total_seconds()


class LivenessWatchdog:
    """Runs one staleness pass over all servers."""

    def __init__(self, notifier: Optional[TelegramDispatcher] = None):
        self.notifier = notifier or dispatcher

    async def run(self, session_factory: async_sessionmaker, now: Optional[datetime] = None) -> int:
        """Evaluate every server sequentially. Returns the number of notifications sent."""
        now = now or utcnow()

        async with session_factory() as session:
            channel = await load_channel(session)
            if channel is None or not channel.is_usable:
                # Without a channel there is nothing to debounce; leave timestamps untouched
                logger.debug("Telegram disabled or not configured, skipping server liveness pass")
                return 0

            result = await session.execute(
                select(Server.id, Metrics.timestamp)
                .outerjoin(Metrics, Metrics.server_id == Server.id)
            )
            rows = result.all()

        if not rows:
            logger.debug("No servers to check")
            return 0

        notified = 0
        for server_id, last_report in rows:
            try:
                async with session_factory() as session:
                    server = await session.get(Server, server_id)
                    if server is None:
                        continue
                    decision = await self.evaluate_server(session, server, last_report, channel, now)
                    if decision is not None and decision.notify:
                        notified += 1
            except Exception as e:
                logger.error(f"Error checking liveness of server {server_id}: {e}")

        logger.info(f"Server liveness pass complete: {len(rows)} servers, {notified} notifications")
        return notified

    async def evaluate_server(
        self,
        session: AsyncSession,
        server: Server,
        last_report: Optional[int],
        channel: Optional[ChannelConfig],
        now: datetime,
    ) -> Optional[TransitionDecision]:
        """Apply the debounce policy to one server.

        Returns None if a concurrent pass changed the server first.
        """
        stale = is_stale(last_report, now)
        decision = decide_transition(
            previous_failing=server.last_notified_down_at is not None,
            new_failing=stale,
            last_notified_down_at=server.last_notified_down_at,
            now=now,
        )

        if decision.last_notified_down_at != server.last_notified_down_at:
            # A rollback expires the instance, so keep what the log line needs
            server_id = server.id

            def apply():
                server.last_notified_down_at = decision.last_notified_down_at

            try:
                await commit_versioned(session, server, apply)
            except StaleDataError:
                await session.rollback()
                logger.warning(f"Server {server_id} was updated concurrently; skipping notification")
                return None

        report_time = from_epoch(last_report) if last_report is not None else None
        if decision.notify:
            if decision.kind == TransitionKind.RECOVERY:
                message = server_recovered_message(server, report_time)
            else:
                message = server_down_message(server, report_time)
            if self.notifier.dispatch(channel, message) is not None:
                logger.info(f"Server {server.display_name}: {decision.kind.value} notification queued")
        elif stale:
            logger.debug(f"Server {server.display_name} still stale, cooldown not elapsed")

        return decision


# Global instance
watchdog_service = LivenessWatchdog()

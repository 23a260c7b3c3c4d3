"""Status transition engine - persists check results and decides notifications.

Status classes:
- HEALTHY: UP
- FAILING: DOWN, TIMEOUT, ERROR
- PENDING: initial state before the first check, never notifies

Debounce policy, evaluated against the persisted previous status:
1. not FAILING -> FAILING: notify "down", stamp last_notified_down_at
2. FAILING -> FAILING: notify again only once the cooldown has elapsed
3. FAILING -> UP: notify "recovered", clear last_notified_down_at
4. anything else: no notification
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..models import MonitoredSite, SiteStatusEvent
from ..utils.db_utils import commit_versioned
from ..utils.timeutil import utcnow
from .notifier import TelegramDispatcher, dispatcher, load_channel, site_down_message, site_recovered_message

logger = logging.getLogger(__name__)

PENDING = "PENDING"
UP = "UP"
DOWN = "DOWN"
TIMEOUT = "TIMEOUT"
ERROR = "ERROR"

FAILING_STATUSES = frozenset({DOWN, TIMEOUT, ERROR})

# Minimum gap between two repeat-failure notifications, shared by sites and servers
NOTIFICATION_COOLDOWN = timedelta(hours=1)


def is_failing(status: Optional[str]) -> bool:
    return status in FAILING_STATUSES


class TransitionKind(str, Enum):
    FIRST_FAILURE = "first_failure"
    REPEATED_FAILURE = "repeated_failure"
    RECOVERY = "recovery"
    NONE = "none"


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of the debounce policy for one evaluation."""
    kind: TransitionKind
    notify: bool
    last_notified_down_at: Optional[datetime]


def decide_transition(
    previous_failing: bool,
    new_failing: bool,
    last_notified_down_at: Optional[datetime],
    now: datetime,
) -> TransitionDecision:
    """Apply the debounce policy.

    Works on status classes only, so the liveness watchdog reuses it for
    servers with staleness mapped onto FAILING/HEALTHY.
    """
    if new_failing and not previous_failing:
        return TransitionDecision(TransitionKind.FIRST_FAILURE, True, now)

    if new_failing:
        if last_notified_down_at is None or now - last_notified_down_at > NOTIFICATION_COOLDOWN:
            return TransitionDecision(TransitionKind.REPEATED_FAILURE, True, now)
        return TransitionDecision(TransitionKind.REPEATED_FAILURE, False, last_notified_down_at)

    if previous_failing:
        return TransitionDecision(TransitionKind.RECOVERY, True, None)

    return TransitionDecision(TransitionKind.NONE, False, last_notified_down_at)


class TransitionEngine:
    """Applies a check outcome to a site and triggers notifications."""

    def __init__(self, notifier: Optional[TelegramDispatcher] = None):
        self.notifier = notifier or dispatcher

    async def apply_check(
        self,
        session: AsyncSession,
        site: MonitoredSite,
        outcome,
        now: Optional[datetime] = None,
    ) -> Optional[TransitionDecision]:
        """Persist a check outcome for a site loaded in ``session``.

        ``site`` must carry the status as read from the store before the
        check ran. The write is a compare-and-swap on ``status_version``; if
        another evaluation of the same site committed first, nothing is
        written, nothing is sent, and None is returned.
        """
        now = now or utcnow()
        previous_status = site.last_status or PENDING

        decision = decide_transition(
            previous_failing=is_failing(previous_status),
            new_failing=is_failing(outcome.status),
            last_notified_down_at=site.last_notified_down_at,
            now=now,
        )

        # Read the channel before the write so the background send holds no session
        channel = await load_channel(session) if decision.notify else None

        # A rollback expires the instance, so keep what the log lines need
        site_id = site.id

        def apply():
            site.last_checked = now
            site.last_status = outcome.status
            site.last_status_code = outcome.status_code
            site.last_response_time_ms = outcome.response_time_ms
            site.last_notified_down_at = decision.last_notified_down_at
            session.add(SiteStatusEvent(
                site_id=site_id,
                timestamp=now,
                status=outcome.status,
                status_code=outcome.status_code,
                response_time_ms=outcome.response_time_ms,
            ))

        try:
            await commit_versioned(session, site, apply)
        except StaleDataError:
            await session.rollback()
            logger.warning(
                f"Site {site_id} was updated by a concurrent check; discarding {outcome.status} result"
            )
            return None

        if decision.notify:
            if decision.kind == TransitionKind.RECOVERY:
                message = site_recovered_message(site)
            else:
                message = site_down_message(
                    site, outcome, repeated=decision.kind == TransitionKind.REPEATED_FAILURE
                )
            if self.notifier.dispatch(channel, message) is not None:
                logger.info(f"Site {site.display_name}: {decision.kind.value} notification queued")
        elif decision.kind == TransitionKind.REPEATED_FAILURE:
            logger.debug(f"Site {site.display_name} still failing, cooldown not elapsed")

        logger.debug(
            f"Checked site {site.id} ({site.url}): {outcome.status} "
            f"({outcome.status_code or 'none'}), {outcome.response_time_ms}ms"
        )
        return decision


# Global instance
transition_engine = TransitionEngine()

"""Reachability checker - one HEAD probe per site, classified into a status."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from .transitions import UP, DOWN, TIMEOUT, ERROR

logger = logging.getLogger(__name__)

# Total time allowed for a single probe, redirects included
CHECK_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a reachability check."""
    status: str  # UP, DOWN, TIMEOUT, ERROR
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None


def classify_status_code(status_code: int) -> str:
    """Map an HTTP status code to a site status.

    Anything below 500 means a server answered, so 4xx still counts as UP.
    """
    if 200 <= status_code < 500:
        return UP
    if status_code >= 500:
        return DOWN
    # 1xx never reaches here through httpx; treat as an unusable answer
    return ERROR


class ReachabilityChecker:
    """Performs a bounded HEAD request against a URL."""

    def __init__(
        self,
        timeout: float = CHECK_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def check(self, url: str) -> CheckOutcome:
        """Probe ``url``. Never raises; every failure maps to TIMEOUT or ERROR."""
        start = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - start) * 1000)

        try:
            response = await asyncio.wait_for(self._head(url), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.debug(f"Check of {url} timed out")
            return CheckOutcome(status=TIMEOUT, response_time_ms=elapsed_ms())
        except Exception as e:
            logger.info(f"Check of {url} failed: {e!r}")
            return CheckOutcome(status=ERROR, response_time_ms=elapsed_ms())

        return CheckOutcome(
            status=classify_status_code(response.status_code),
            status_code=response.status_code,
            response_time_ms=elapsed_ms(),
        )

    async def _head(self, url: str) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            return await client.head(url)


# Global instance
checker_service = ReachabilityChecker()

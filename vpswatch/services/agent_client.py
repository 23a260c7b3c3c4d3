"""Agent client service - handles agent mode operations.

On a monitored host the agent runs, for the life of the process:
- one carrier prober loop per route
- one loss aggregator loop
- the reporting loop, posting metrics plus the latest loss snapshot
"""
import asyncio
import logging
from typing import Dict, List, Optional

import httpx

from ..config import settings
from .carrier_prober import DEFAULT_ROUTES, CarrierProber, build_probers
from .host_metrics import HostMetricsCollector
from .loss_aggregator import LossAggregator

logger = logging.getLogger(__name__)


class AgentClientService:
    """Service for agent mode - samples routes and reports metrics to the server."""

    def __init__(
        self,
        routes: Optional[Dict[str, str]] = None,
        collector: Optional[HostMetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.probers: Dict[str, CarrierProber] = build_probers(
            routes or DEFAULT_ROUTES,
            port=settings.probe_port,
            capacity=settings.window_capacity,
            interval=settings.probe_interval_seconds,
            timeout=settings.probe_timeout_seconds,
        )
        self.aggregator = LossAggregator(
            {key: prober.window for key, prober in self.probers.items()},
            interval=settings.aggregate_interval_seconds,
        )
        self.collector = collector or HostMetricsCollector()
        self._transport = transport
        self._tasks: List[asyncio.Task] = []
        self._running = False

    @property
    def server_url(self) -> str:
        """Get the server URL."""
        return (settings.server_url or "").rstrip("/")

    async def fetch_report_interval(self) -> int:
        """Read the global report interval, falling back to local config."""
        try:
            async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
                response = await client.get(f"{self.server_url}/api/settings/report-interval")
            if response.status_code == 200:
                interval = int(response.json().get("interval", 0))
                if interval > 0:
                    return interval
            logger.warning(f"Could not read report interval: {response.status_code}")
        except Exception as e:
            logger.warning(f"Could not read report interval: {e}")
        return settings.report_interval_seconds

    async def report_metrics(self, payload: dict) -> bool:
        """Post one metrics report to the server."""
        try:
            async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
                response = await client.post(
                    f"{self.server_url}/api/report/{settings.server_id}",
                    json=payload,
                    headers={"X-API-Key": settings.api_key or ""},
                )

            if response.status_code == 200:
                logger.debug("Metrics reported")
                return True
            elif response.status_code == 503:
                logger.warning("Server storage not ready, will retry next cycle")
                return False
            else:
                logger.error(f"Report failed: {response.status_code} - {response.text[:200]}")
                return False

        except Exception as e:
            logger.error(f"Failed to report metrics: {e}")
            return False

    def build_report(self) -> dict:
        return self.collector.collect(ping=self.aggregator.snapshot.as_dict())

    async def run(self):
        """Main agent loop - start samplers, then report forever."""
        if not settings.server_url or not settings.server_id or not settings.api_key:
            logger.error("SERVER_URL, SERVER_ID and API_KEY must be configured for agent mode")
            return

        self._running = True
        logger.info(f"Starting agent for server {settings.server_id}")

        for prober in self.probers.values():
            self._tasks.append(asyncio.create_task(prober.run()))
        self._tasks.append(asyncio.create_task(self.aggregator.run()))

        while self._running:
            try:
                interval = await self.fetch_report_interval()
                await self.report_metrics(self.build_report())
                await asyncio.sleep(interval)
            except Exception as e:
                logger.error(f"Agent loop error: {e}")
                await asyncio.sleep(10)

    def stop(self):
        """Stop the agent client."""
        self._running = False
        for prober in self.probers.values():
            prober.stop()
        self.aggregator.stop()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        logger.info("Agent client stopped")


# Global instance
agent_client = AgentClientService()

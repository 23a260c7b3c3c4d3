"""Carrier prober - periodic TCP reachability sampling per network route.

Each route gets its own prober loop and its own sliding window. A window has
exactly one writer (its prober); readers only ever see a tuple copy taken
with ``snapshot()``.
"""
import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# Route key -> hostname used as a proxy for that carrier's network path
DEFAULT_ROUTES = {
    "cu": "www.tynews.com.cn",
    "ct": "www.chinaccs.cn",
    "cm": "sx.10086.cn",
}

DEFAULT_PORT = 80
DEFAULT_WINDOW_CAPACITY = 100
DEFAULT_PROBE_INTERVAL = 2.0
DEFAULT_PROBE_TIMEOUT = 1.5


@dataclass(frozen=True)
class RouteTarget:
    """A fixed host:port probed for one route."""
    key: str
    host: str
    port: int = DEFAULT_PORT


class RouteProbeWindow:
    """Bounded buffer of probe outcomes; the oldest sample is evicted on overflow."""

    def __init__(self, capacity: int = DEFAULT_WINDOW_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._samples = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def record(self, ok: bool):
        self._samples.append(bool(ok))

    def snapshot(self) -> Tuple[bool, ...]:
        """Point-in-time copy of the retained samples, oldest first."""
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)


async def tcp_probe(host: str, port: int, timeout: float) -> bool:
    """Attempt a TCP connect. True if the handshake completed within ``timeout``."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (OSError, asyncio.TimeoutError):
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


ProbeFunc = Callable[[str, int, float], Awaitable[bool]]


class CarrierProber:
    """Probes one route forever, feeding its window."""

    def __init__(
        self,
        target: RouteTarget,
        window: Optional[RouteProbeWindow] = None,
        interval: float = DEFAULT_PROBE_INTERVAL,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        probe: ProbeFunc = tcp_probe,
    ):
        self.target = target
        self.window = window if window is not None else RouteProbeWindow()
        self.interval = interval
        self.timeout = timeout
        self._probe = probe
        self._running = False

    async def probe_once(self) -> bool:
        try:
            ok = await self._probe(self.target.host, self.target.port, self.timeout)
        except Exception as e:
            logger.debug(f"Probe of {self.target.key} ({self.target.host}) raised: {e}")
            ok = False
        self.window.record(ok)
        return ok

    async def run(self):
        """Probe, record, sleep; until stopped."""
        self._running = True
        logger.info(f"Carrier prober started for {self.target.key} -> {self.target.host}:{self.target.port}")
        while self._running:
            await self.probe_once()
            await asyncio.sleep(self.interval)

    def stop(self):
        self._running = False


def build_probers(
    routes: Dict[str, str] = DEFAULT_ROUTES,
    port: int = DEFAULT_PORT,
    capacity: int = DEFAULT_WINDOW_CAPACITY,
    interval: float = DEFAULT_PROBE_INTERVAL,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    probe: ProbeFunc = tcp_probe,
) -> Dict[str, CarrierProber]:
    """Create one prober, each with a fresh window, per route."""
    return {
        key: CarrierProber(
            RouteTarget(key=key, host=host, port=port),
            RouteProbeWindow(capacity),
            interval=interval,
            timeout=timeout,
            probe=probe,
        )
        for key, host in routes.items()
    }

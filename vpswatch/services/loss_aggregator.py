"""Loss aggregator - reduces probe windows to published loss percentages."""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from .carrier_prober import RouteProbeWindow

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATE_INTERVAL = 5.0


def loss_percent(samples: Sequence[bool]) -> int:
    """Integer percentage of failed samples, rounded half up. Empty -> 0."""
    if not samples:
        return 0
    failures = sum(1 for ok in samples if not ok)
    total = len(samples)
    return (200 * failures + total) // (2 * total)


@dataclass(frozen=True)
class LossSnapshot:
    """Loss per route at one point in time. Immutable once published."""
    values: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    taken_at: float = 0.0

    def as_dict(self) -> dict:
        return dict(self.values)


class LossAggregator:
    """Periodically recomputes loss for every window and swaps in a new snapshot."""

    def __init__(self, windows: Mapping[str, RouteProbeWindow], interval: float = DEFAULT_AGGREGATE_INTERVAL):
        self._windows = dict(windows)
        self.interval = interval
        self._running = False
        self._snapshot = LossSnapshot(
            values=MappingProxyType({key: 0 for key in self._windows}),
        )

    @property
    def snapshot(self) -> LossSnapshot:
        """The latest published snapshot."""
        return self._snapshot

    def aggregate(self) -> LossSnapshot:
        """Compute and publish a new snapshot."""
        values = {key: loss_percent(window.snapshot()) for key, window in self._windows.items()}
        # Single reference assignment; readers see the old or the new snapshot, never a mix
        self._snapshot = LossSnapshot(values=MappingProxyType(values), taken_at=time.time())
        return self._snapshot

    async def run(self):
        self._running = True
        logger.info(f"Loss aggregator started for routes: {', '.join(self._windows) or 'none'}")
        while self._running:
            snapshot = self.aggregate()
            logger.debug(f"Loss snapshot: {snapshot.as_dict()}")
            await asyncio.sleep(self.interval)

    def stop(self):
        self._running = False

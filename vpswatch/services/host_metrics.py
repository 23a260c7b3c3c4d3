"""Host metrics collector - builds the report body sent by the agent."""
import logging
import time
from typing import Optional, Tuple

import psutil

logger = logging.getLogger(__name__)


class HostMetricsCollector:
    """Reads CPU, memory, disk, network and uptime figures with psutil.

    Network speeds are derived from the byte counters seen on the previous
    call, so the first report carries zero speeds.
    """

    def __init__(self, disk_path: str = "/"):
        self.disk_path = disk_path
        self._last_net: Optional[Tuple[float, int, int]] = None  # (time, sent, recv)
        # The first non-blocking call only sets the baseline and returns 0.0
        psutil.cpu_percent(interval=None)

    def _cpu(self) -> dict:
        try:
            load_avg = [round(v, 2) for v in psutil.getloadavg()]
        except (AttributeError, OSError):
            load_avg = [0.0, 0.0, 0.0]
        return {
            "usage_percent": psutil.cpu_percent(interval=None),
            "load_avg": load_avg,
        }

    def _memory(self) -> dict:
        mem = psutil.virtual_memory()
        # KiB, matching `free -k`
        return {
            "total": mem.total // 1024,
            "used": mem.used // 1024,
            "free": mem.free // 1024,
            "usage_percent": round(mem.percent, 1),
        }

    def _disk(self) -> dict:
        usage = psutil.disk_usage(self.disk_path)
        gib = 1024 ** 3
        return {
            "total": round(usage.total / gib, 2),
            "used": round(usage.used / gib, 2),
            "free": round(usage.free / gib, 2),
            "usage_percent": round(usage.percent, 1),
        }

    def _network(self) -> dict:
        counters = psutil.net_io_counters()
        now = time.monotonic()
        upload_speed = download_speed = 0.0
        if self._last_net is not None:
            last_time, last_sent, last_recv = self._last_net
            elapsed = now - last_time
            if elapsed > 0:
                upload_speed = max(counters.bytes_sent - last_sent, 0) / elapsed
                download_speed = max(counters.bytes_recv - last_recv, 0) / elapsed
        self._last_net = (now, counters.bytes_sent, counters.bytes_recv)
        return {
            "upload_speed": round(upload_speed, 1),
            "download_speed": round(download_speed, 1),
            "total_upload": counters.bytes_sent,
            "total_download": counters.bytes_recv,
        }

    def collect(self, ping: Optional[dict] = None) -> dict:
        """Build a full report body."""
        return {
            "timestamp": int(time.time()),
            "cpu": self._cpu(),
            "memory": self._memory(),
            "disk": self._disk(),
            "network": self._network(),
            "uptime": int(time.time() - psutil.boot_time()),
            "ping": dict(ping or {}),
        }

from __future__ import annotations

import time
from collections import namedtuple

import psutil
import pytest

from vpswatch.services import host_metrics
from vpswatch.services.host_metrics import HostMetricsCollector

NetCounters = namedtuple("NetCounters", "bytes_sent bytes_recv")


@pytest.fixture
def cpu_calls(monkeypatch) -> list:
    calls: list = []

    def fake_cpu_percent(interval=None):
        calls.append(interval)
        return 0.0 if len(calls) == 1 else 37.5

    monkeypatch.setattr(host_metrics.psutil, "cpu_percent", fake_cpu_percent)
    return calls


def test_cpu_counter_primed_on_construction(cpu_calls) -> None:
    collector = HostMetricsCollector()

    assert cpu_calls == [None]
    assert collector._cpu()["usage_percent"] == 37.5


def test_network_speed_from_counter_deltas(cpu_calls, monkeypatch) -> None:
    monkeypatch.setattr(host_metrics.psutil, "net_io_counters", lambda: NetCounters(3000, 9000))
    collector = HostMetricsCollector()

    assert collector._network()["upload_speed"] == 0.0

    # Previous sample taken two seconds ago
    collector._last_net = (time.monotonic() - 2.0, 1000, 5000)
    network = collector._network()

    assert 900 < network["upload_speed"] <= 1000
    assert 1800 < network["download_speed"] <= 2000
    assert network["total_upload"] == 3000
    assert network["total_download"] == 9000


def test_report_carries_loss_snapshot(cpu_calls) -> None:
    report = HostMetricsCollector().collect(ping={"cu": 3})

    assert report["ping"] == {"cu": 3}
    assert len(report["cpu"]["load_avg"]) == 3
    assert report["uptime"] >= 0
    assert report["memory"]["total"] == psutil.virtual_memory().total // 1024

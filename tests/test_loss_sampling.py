from __future__ import annotations

import pytest

from vpswatch.services.carrier_prober import (
    DEFAULT_ROUTES,
    CarrierProber,
    RouteProbeWindow,
    RouteTarget,
    build_probers,
)
from vpswatch.services.loss_aggregator import LossAggregator, loss_percent


def test_loss_percent() -> None:
    assert loss_percent([]) == 0
    assert loss_percent([True] * 10) == 0
    assert loss_percent([False] * 10) == 100
    assert loss_percent([True] * 75 + [False] * 25) == 25
    # 1/3 -> 33.33, 2/3 -> 66.67, 1/8 -> 12.5 rounds up
    assert loss_percent([False, True, True]) == 33
    assert loss_percent([False, False, True]) == 67
    assert loss_percent([False] + [True] * 7) == 13


def test_window_evicts_oldest() -> None:
    window = RouteProbeWindow(capacity=3)
    for ok in (False, True, True, True):
        window.record(ok)

    assert len(window) == 3
    assert window.snapshot() == (True, True, True)


def test_window_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        RouteProbeWindow(capacity=0)


def test_mixed_window_reports_quarter_loss() -> None:
    window = RouteProbeWindow(capacity=100)
    for i in range(100):
        window.record(i % 4 != 0)
    aggregator = LossAggregator({"cu": window, "ct": RouteProbeWindow(), "cm": RouteProbeWindow()})

    snapshot = aggregator.aggregate()

    assert snapshot.as_dict() == {"cu": 25, "ct": 0, "cm": 0}


def test_initial_snapshot_is_all_zero() -> None:
    aggregator = LossAggregator({key: RouteProbeWindow() for key in DEFAULT_ROUTES})
    assert aggregator.snapshot.as_dict() == {"cu": 0, "ct": 0, "cm": 0}


def test_published_snapshot_does_not_change() -> None:
    window = RouteProbeWindow(capacity=4)
    window.record(True)
    aggregator = LossAggregator({"cu": window})
    first = aggregator.aggregate()

    window.record(False)
    second = aggregator.aggregate()

    assert first.as_dict() == {"cu": 0}
    assert second.as_dict() == {"cu": 50}
    assert aggregator.snapshot is second
    with pytest.raises(TypeError):
        first.values["cu"] = 99


@pytest.mark.asyncio
async def test_prober_records_outcomes_and_treats_exceptions_as_loss() -> None:
    results = iter([True, False, RuntimeError("boom")])

    async def fake_probe(host: str, port: int, timeout: float) -> bool:
        assert (host, port, timeout) == ("example.net", 80, 1.5)
        result = next(results)
        if isinstance(result, Exception):
            raise result
        return result

    prober = CarrierProber(RouteTarget(key="ct", host="example.net"), probe=fake_probe)
    for _ in range(3):
        await prober.probe_once()

    assert prober.window.snapshot() == (True, False, False)


def test_build_probers_gives_each_route_its_own_window() -> None:
    probers = build_probers(capacity=10)

    assert set(probers) == {"cu", "ct", "cm"}
    assert probers["cm"].target.host == "sx.10086.cn"
    assert probers["cu"].window is not probers["ct"].window
    assert probers["ct"].window.capacity == 10


def test_prober_keeps_the_window_it_is_given() -> None:
    window = RouteProbeWindow(capacity=10)
    prober = CarrierProber(RouteTarget(key="cu", host="example.net"), window)

    assert prober.window is window
    assert prober.window.capacity == 10


def _scripted_probe(outcomes: list[bool]):
    remaining = iter(outcomes)

    async def probe(host: str, port: int, timeout: float) -> bool:
        return next(remaining)

    return probe


@pytest.mark.asyncio
async def test_thirty_up_ten_down_reports_quarter_loss() -> None:
    probers = build_probers(capacity=100, probe=_scripted_probe([True] * 30 + [False] * 10))
    aggregator = LossAggregator({key: prober.window for key, prober in probers.items()})

    for _ in range(40):
        await probers["cu"].probe_once()

    assert aggregator.aggregate().as_dict() == {"cu": 25, "ct": 0, "cm": 0}


@pytest.mark.asyncio
async def test_loss_recovers_once_failures_are_evicted() -> None:
    prober = CarrierProber(
        RouteTarget(key="cm", host="example.net"),
        RouteProbeWindow(capacity=10),
        probe=_scripted_probe([False] * 10 + [True] * 10),
    )
    aggregator = LossAggregator({"cm": prober.window})

    for _ in range(10):
        await prober.probe_once()
    assert aggregator.aggregate().as_dict() == {"cm": 100}

    for _ in range(10):
        await prober.probe_once()
    assert len(prober.window) == 10
    assert aggregator.aggregate().as_dict() == {"cm": 0}

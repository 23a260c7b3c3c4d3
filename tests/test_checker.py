from __future__ import annotations

import asyncio

import httpx
import pytest

from vpswatch.services.checker import ReachabilityChecker, classify_status_code


def _checker(handler, timeout: float = 5.0) -> ReachabilityChecker:
    return ReachabilityChecker(timeout=timeout, transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    ("code", "expected"),
    [(200, "UP"), (204, "UP"), (301, "UP"), (404, "UP"), (499, "UP"), (500, "DOWN"), (503, "DOWN")],
)
def test_classify_status_code(code: int, expected: str) -> None:
    assert classify_status_code(code) == expected


@pytest.mark.asyncio
async def test_head_request_ok() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.method)
        return httpx.Response(200)

    outcome = await _checker(handler).check("https://example.com")

    assert seen == ["HEAD"]
    assert outcome.status == "UP"
    assert outcome.status_code == 200
    assert outcome.response_time_ms is not None and outcome.response_time_ms >= 0


@pytest.mark.asyncio
async def test_client_error_counts_as_up() -> None:
    outcome = await _checker(lambda request: httpx.Response(404)).check("https://example.com/missing")
    assert outcome.status == "UP"
    assert outcome.status_code == 404


@pytest.mark.asyncio
async def test_server_error_is_down() -> None:
    outcome = await _checker(lambda request: httpx.Response(503)).check("https://example.com")
    assert outcome.status == "DOWN"
    assert outcome.status_code == 503


@pytest.mark.asyncio
async def test_redirects_are_followed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(500)

    outcome = await _checker(handler).check("https://example.com/old")

    assert outcome.status == "DOWN"
    assert outcome.status_code == 500


@pytest.mark.asyncio
async def test_connection_failure_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    outcome = await _checker(handler).check("https://unreachable.example.com")

    assert outcome.status == "ERROR"
    assert outcome.status_code is None


@pytest.mark.asyncio
async def test_transport_timeout_is_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    outcome = await _checker(handler).check("https://slow.example.com")

    assert outcome.status == "TIMEOUT"
    assert outcome.status_code is None


@pytest.mark.asyncio
async def test_overall_deadline_is_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200)

    outcome = await _checker(handler, timeout=0.05).check("https://slow.example.com")

    assert outcome.status == "TIMEOUT"
    assert outcome.response_time_ms < 1000

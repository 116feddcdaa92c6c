from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from utils.geo_gate import (
    MSG_FAILED,
    MSG_NOT_VERIFIED,
    MSG_OUTSIDE_AREA,
    MSG_PERMISSION_DENIED,
    MSG_REQUESTING,
    MSG_RETRYING,
    MSG_TIMEOUT,
    MSG_UNAVAILABLE,
    MSG_UNSUPPORTED,
    MSG_VERIFYING,
    GateState,
    GateStatus,
    GeoGate,
    Position,
    PositionError,
    PositionProvider,
)


class StaticProvider(PositionProvider):
    def __init__(self, lat: float, lng: float) -> None:
        self.calls = 0
        self.lat = lat
        self.lng = lng

    async def get_current_position(self, options):
        self.calls += 1
        assert options.enable_high_accuracy is True
        assert options.maximum_age_ms == 0
        return Position(latitude=self.lat, longitude=self.lng, accuracy=5)


class FailingProvider(PositionProvider):
    def __init__(self, code: int) -> None:
        self.code = code

    async def get_current_position(self, options):
        raise PositionError(self.code)


class HangingProvider(PositionProvider):
    async def get_current_position(self, options):
        await asyncio.sleep(60)


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


def _answer(allowed: bool, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append((request.url.raw_path.decode(), json.loads(request.content)))
        return httpx.Response(200, json={"allowed": allowed})

    return handler


@pytest.mark.asyncio
async def test_initial_state_is_loading():
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2))
        assert gate.state == GateState.loading(MSG_VERIFYING)
        assert not gate.state.can_retry


@pytest.mark.asyncio
async def test_permission_denied_needs_permission():
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, FailingProvider(PositionError.PERMISSION_DENIED))
        await gate.validate()
    assert gate.state == GateState.permission_needed(MSG_PERMISSION_DENIED)
    assert gate.state.can_retry


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,status,message",
    [
        (PositionError.POSITION_UNAVAILABLE, GateStatus.PERMISSION_NEEDED, MSG_UNAVAILABLE),
        (PositionError.TIMEOUT, GateStatus.PERMISSION_NEEDED, MSG_TIMEOUT),
        (99, GateStatus.DENIED, MSG_FAILED),
    ],
)
async def test_other_position_errors(code, status, message):
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, FailingProvider(code))
        await gate.validate()
    assert gate.state == GateState(status, message)


@pytest.mark.asyncio
async def test_missing_location_service():
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, None)
        await gate.validate()
    assert gate.state == GateState.permission_needed(MSG_UNSUPPORTED)


@pytest.mark.asyncio
async def test_position_timeout():
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, HangingProvider(), position_timeout_ms=10)
        await gate.validate()
    assert gate.state == GateState.permission_needed(MSG_TIMEOUT)


@pytest.mark.asyncio
async def test_outside_area_is_denied():
    seen: list = []
    changes: list = []
    async with _mock_client(_answer(False, seen)) as http:
        gate = GeoGate("q/1", http, StaticProvider(40.7, -74.0), on_change=changes.append)
        await gate.validate()

    assert gate.state == GateState.denied(MSG_OUTSIDE_AREA)
    assert seen == [("/qrs/q%2F1/geo-check", {"lat": 40.7, "lng": -74.0})]
    assert [c.message for c in changes] == [MSG_REQUESTING, MSG_VERIFYING, MSG_OUTSIDE_AREA]


@pytest.mark.asyncio
async def test_allowed_landing_reveals_content():
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2))
        await gate.validate()
    assert gate.state == GateState.allowed()
    assert gate.terminated
    assert gate.redirected_to is None


@pytest.mark.asyncio
async def test_allowed_redirect_navigates_without_allowed_state():
    visited: list = []
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2), redirect_url="https://example.com", navigate=visited.append)
        await gate.validate()

    assert visited == ["https://example.com"]
    assert gate.redirected_to == "https://example.com"
    assert gate.state.status is GateStatus.LOADING


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 404, 429, 500])
async def test_error_responses_cannot_verify(status_code):
    def handler(request):
        return httpx.Response(status_code, json={"error": "x", "message": "y"})

    async with _mock_client(handler) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2))
        await gate.validate()
    assert gate.state == GateState.denied(MSG_NOT_VERIFIED)


@pytest.mark.asyncio
async def test_transport_error_fails_closed():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async with _mock_client(handler) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2))
        await gate.validate()
    assert gate.state == GateState.denied(MSG_FAILED)


@pytest.mark.asyncio
async def test_non_json_response_fails_closed():
    async with _mock_client(lambda request: httpx.Response(200, text="<html>")) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2))
        await gate.validate()
    assert gate.state == GateState.denied(MSG_FAILED)


@pytest.mark.asyncio
async def test_retry_runs_a_fresh_attempt():
    answers = iter([False, True])
    changes: list = []

    async with _mock_client(lambda request: httpx.Response(200, json={"allowed": next(answers)})) as http:
        provider = StaticProvider(1, 2)
        gate = GeoGate("abc", http, provider, on_change=changes.append)
        await gate.validate()
        assert gate.state.status is GateStatus.DENIED

        await gate.retry()

    assert provider.calls == 2
    assert gate.state == GateState.allowed()
    assert MSG_RETRYING in [c.message for c in changes]


@pytest.mark.asyncio
async def test_close_suppresses_late_updates():
    release = asyncio.Event()

    class BlockingProvider(PositionProvider):
        async def get_current_position(self, options):
            await release.wait()
            return Position(1, 2)

    visited: list = []
    async with _mock_client(_answer(True)) as http:
        gate = GeoGate("abc", http, BlockingProvider(), redirect_url="https://x.example", navigate=visited.append)
        task = asyncio.create_task(gate.validate())
        await asyncio.sleep(0)
        gate.close()
        release.set()
        await task

    assert gate.closed
    assert gate.state == GateState.loading(MSG_REQUESTING)
    assert visited == []


@pytest.mark.asyncio
async def test_against_real_validator(client, seed_qr):
    qr_id = seed_qr("text", "hidden", meta={"geoLock": {"lat": 48.8566, "lng": 2.3522, "radiusMeters": 200}})

    inside = GeoGate(qr_id, client, StaticProvider(48.8566, 2.3522))
    await inside.validate()
    assert inside.state == GateState.allowed()
    assert "hidden" in inside.content_html

    outside = GeoGate(qr_id, client, StaticProvider(51.5074, -0.1278))
    await outside.validate()
    assert outside.state == GateState.denied(MSG_OUTSIDE_AREA)
    assert outside.content_html is None


@pytest.mark.asyncio
async def test_released_redirect_target_is_followed():
    def handler(request):
        return httpx.Response(200, json={"allowed": True, "redirectUrl": "https://example.com/door"})

    visited: list = []
    async with _mock_client(handler) as http:
        gate = GeoGate("abc", http, StaticProvider(1, 2), navigate=visited.append)
        await gate.validate()

    assert visited == ["https://example.com/door"]
    assert gate.redirected_to == "https://example.com/door"


@pytest.mark.asyncio
async def test_locked_redirect_against_real_validator(client, seed_qr):
    qr_id = seed_qr(
        "url", "https://example.com/secret", meta={"geoLock": {"lat": 48.8566, "lng": 2.3522, "radiusMeters": 200}}
    )
    visited: list = []

    outside = GeoGate(qr_id, client, StaticProvider(51.5074, -0.1278), navigate=visited.append)
    await outside.validate()
    assert outside.redirected_to is None

    inside = GeoGate(qr_id, client, StaticProvider(48.8566, 2.3522), navigate=visited.append)
    await inside.validate()
    assert visited == ["https://example.com/secret"]

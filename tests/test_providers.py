from __future__ import annotations

import base64
from typing import Any

import pytest
from fakes import ScriptedTransport, SleepRecorder

from fleetpairs.config import FleetPairsConfig, SamsaraConfig, SkybitzConfig
from fleetpairs.exceptions import ProviderApiError, ProviderPayloadError, TransportError
from fleetpairs.providers import SamsaraTruckProvider, SkybitzTrailerProvider, raise_for_soft_error


def _samsara_page(*vehicles: dict[str, Any], cursor: str | None = None) -> dict[str, Any]:
    return {
        "data": list(vehicles),
        "pagination": {"endCursor": cursor or "", "hasNextPage": cursor is not None},
    }


def _vehicle(vehicle_id: str, lat: float, lon: float, name: str = "") -> dict[str, Any]:
    return {
        "id": vehicle_id,
        "name": name,
        "location": {"latitude": lat, "longitude": lon, "time": "2026-10-19T08:00:00Z"},
    }


_SKYBITZ_OK = {
    "error": 0,
    "positions": [
        {"assetid": "XTRA 5321", "lastlatitude": "41.50", "lastlongitude": "-88.10", "lastreporttime": 1771000000},
        {"assetid": "XTRA 812", "latitude": 41.6, "longitude": -88.0},
    ],
}


@pytest.mark.asyncio
async def test_retry_two_failures_then_success(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(
        TransportError("boom", endpoint="x"),
        TransportError("HTTP 503", status_code=503, endpoint="x"),
        _samsara_page(_vehicle("281474977", 41.51, -88.11)),
    )
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    assert [p.asset_id for p in positions] == ["281474977"]
    assert len(transport.calls) == 3
    assert sleep.delays == [0.5, 1.0]
    assert sleep.delays[0] < sleep.delays[1]


@pytest.mark.asyncio
async def test_soft_error_is_retried(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(
        {"error": {"errorcode": 97, "message": "busy"}},
        _SKYBITZ_OK,
    )
    provider = SkybitzTrailerProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    assert sorted(p.asset_id for p in positions) == ["5321", "812"]
    assert len(transport.calls) == 2
    assert sleep.delays == [0.5]


@pytest.mark.asyncio
async def test_all_attempts_failing_returns_empty(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(*(TransportError("down", endpoint="x") for _ in range(3)))
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    assert await provider.fetch_positions() == []
    assert len(transport.calls) == 3
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_malformed_payload_is_not_retried(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(ProviderPayloadError("not json", endpoint="x"))
    provider = SkybitzTrailerProvider(config, transport, sleep=sleep)

    assert await provider.fetch_positions() == []
    assert len(transport.calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_unexpected_shape_returns_empty(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport({"unexpected": True})
    provider = SkybitzTrailerProvider(config, transport, sleep=sleep)

    assert await provider.fetch_positions() == []


@pytest.mark.asyncio
async def test_unexpected_exception_is_absorbed(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(RuntimeError("bug"))
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    assert await provider.fetch_positions() == []


@pytest.mark.asyncio
async def test_missing_credentials_skip_network(sleep: SleepRecorder) -> None:
    transport = ScriptedTransport()
    config = FleetPairsConfig(samsara=SamsaraConfig(token=None), skybitz=SkybitzConfig(username="u", password=None))

    assert await SamsaraTruckProvider(config, transport, sleep=sleep).fetch_positions() == []
    assert await SkybitzTrailerProvider(config, transport, sleep=sleep).fetch_positions() == []
    assert transport.calls == []


@pytest.mark.asyncio
async def test_samsara_request_and_normalization(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(
        _samsara_page(
            _vehicle("1", 41.51, -88.11, name="Truck 0417"),
            {"id": "2", "name": "Truck 0500"},
            {"vehicleId": "3", "gps": {"latitude": 40.0, "longitude": -90.0, "time": 1771000000000}},
        )
    )
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    call = transport.calls[0]
    assert call["url"] == "https://samsara.test/fleet/vehicles/locations"
    assert call["headers"]["authorization"] == "Bearer samsara-token"
    assert [p.asset_id for p in positions] == ["1", "3"]
    assert positions[1].observed_at is not None
    assert positions[1].observed_at.timestamp() == 1771000000


@pytest.mark.asyncio
async def test_samsara_follows_pagination(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(
        _samsara_page(_vehicle("1", 41.0, -88.0), cursor="c-1"),
        _samsara_page(_vehicle("2", 42.0, -88.0)),
    )
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    assert [p.asset_id for p in positions] == ["1", "2"]
    assert transport.calls[0]["params"] == {}
    assert transport.calls[1]["params"] == {"after": "c-1"}


@pytest.mark.asyncio
async def test_samsara_failed_later_page_fails_whole_poll(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(
        _samsara_page(_vehicle("1", 41.0, -88.0), cursor="c-1"),
        *(TransportError("down", endpoint="x") for _ in range(3)),
    )
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    assert await provider.fetch_positions() == []


@pytest.mark.asyncio
async def test_samsara_page_limit(sleep: SleepRecorder) -> None:
    config = FleetPairsConfig(samsara=SamsaraConfig(token="t", max_pages=2))
    transport = ScriptedTransport(
        _samsara_page(_vehicle("1", 41.0, -88.0), cursor="c-1"),
        _samsara_page(_vehicle("2", 42.0, -88.0), cursor="c-2"),
    )
    provider = SamsaraTruckProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    assert len(positions) == 2
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_skybitz_request_and_short_ids(config: FleetPairsConfig, sleep: SleepRecorder) -> None:
    transport = ScriptedTransport(_SKYBITZ_OK)
    provider = SkybitzTrailerProvider(config, transport, sleep=sleep)

    positions = await provider.fetch_positions()

    call = transport.calls[0]
    assert call["url"] == "https://skybitz.test/QueryPositions"
    assert call["params"] == {"version": "2.76", "assetid": "ALL", "getJson": "1"}
    scheme, _, token = call["headers"]["authorization"].partition(" ")
    assert scheme == "Basic"
    assert base64.b64decode(token) == b"sky-user:sky-pass"
    by_id = {p.asset_id: p for p in positions}
    assert by_id["5321"].coordinate is not None
    assert by_id["5321"].coordinate.lat == 41.5
    assert by_id["812"].coordinate is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"PositionList": [{"AssetID": "TR-1001", "Latitude": 41.0, "Longitude": -88.0}]},
        {"skybitz": {"error": 0, "gls": [{"assetid": "TR-1001", "latitude": 41.0, "longitude": -88.0}]}},
        {"skybitz": {"gls": {"asset": {"assetid": "TR-1001"}, "latitude": 41.0, "longitude": -88.0}}},
        [{"assetid": "TR-1001", "lat": 41.0, "lon": -88.0}],
    ],
)
async def test_skybitz_payload_shapes(
    config: FleetPairsConfig,
    sleep: SleepRecorder,
    payload: Any,
) -> None:
    provider = SkybitzTrailerProvider(config, ScriptedTransport(payload), sleep=sleep)

    positions = await provider.fetch_positions()

    assert [p.asset_id for p in positions] == ["1001"]


def test_soft_error_detection() -> None:
    raise_for_soft_error({"error": 0, "data": []}, endpoint="x")
    raise_for_soft_error({"errorCode": "0"}, endpoint="x")
    raise_for_soft_error({"error": {}}, endpoint="x")
    raise_for_soft_error([{"error": 5}], endpoint="x")
    raise_for_soft_error({"error": 0.0}, endpoint="x")
    raise_for_soft_error({"errorcode": "0.0"}, endpoint="x")
    raise_for_soft_error({"error": False}, endpoint="x")

    with pytest.raises(ProviderApiError) as exc_info:
        raise_for_soft_error({"error": {"errorcode": "97"}}, endpoint="x")
    assert exc_info.value.code == "97"

    with pytest.raises(ProviderApiError):
        raise_for_soft_error({"error": "Unauthorized"}, endpoint="x")
    with pytest.raises(ProviderApiError):
        raise_for_soft_error({"skybitz": {"error": 12}}, endpoint="x")
    with pytest.raises(ProviderApiError) as exc_info:
        raise_for_soft_error({"error": 0.5}, endpoint="x")
    assert exc_info.value.code == "0.5"


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_time", [1e20, "0001-01-01T00:00:00+01:00", 10**400])
async def test_skybitz_bad_timestamp_keeps_rest_of_poll(
    config: FleetPairsConfig,
    sleep: SleepRecorder,
    bad_time: Any,
) -> None:
    payload = {
        "error": 0,
        "positions": [
            {"assetid": "XTRA 5321", "latitude": 41.5, "longitude": -88.1, "lastreporttime": 1771000000},
            {"assetid": "XTRA 5322", "latitude": 41.6, "longitude": -88.0, "lastreporttime": bad_time},
        ],
    }
    provider = SkybitzTrailerProvider(config, ScriptedTransport(payload), sleep=sleep)

    positions = await provider.fetch_positions()

    assert [p.asset_id for p in positions] == ["5321", "5322"]
    assert positions[1].observed_at is None

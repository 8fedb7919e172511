from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from fleetpairs import FleetPairsConfig, RefreshOrchestrator, RetryPolicy, SamsaraConfig, SkybitzConfig
from fleetpairs.exceptions import TransportError
from fleetpairs.models.assignment import AssignmentStatus


@dataclass
class FakeFleetBackend:
    calls: dict[str, int] = field(default_factory=dict)
    samsara_failures: int = 0
    skybitz_empty: bool = False

    def _record_call(self, endpoint: str) -> None:
        self.calls[endpoint] = self.calls.get(endpoint, 0) + 1

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        self._record_call(url)

        if url.endswith("/fleet/vehicles/locations"):
            if self.samsara_failures:
                self.samsara_failures -= 1
                raise TransportError("HTTP 502", status_code=502, endpoint=url)
            return {
                "data": [
                    {"id": "281474977", "name": "Truck 0417", "location": {"latitude": 41.51, "longitude": -88.11}},
                    {"id": "281474978", "name": "Truck 0418", "location": {"latitude": 41.60, "longitude": -88.00}},
                ],
                "pagination": {"endCursor": "", "hasNextPage": False},
            }

        if url.endswith("/QueryPositions"):
            if self.skybitz_empty:
                return {"error": 0, "positions": []}
            return {
                "error": 0,
                "positions": [
                    {"assetid": "XTRA 5321", "lastlatitude": 41.50, "lastlongitude": -88.10},
                    {"assetid": "XTRA 5322", "lastlatitude": 41.4306, "lastlongitude": -88.1965},
                    {"assetid": "XTRA 5323", "lastlatitude": "", "lastlongitude": ""},
                    {"assetid": "XTRA 5324", "lastlatitude": 41.7},
                ],
            }

        raise AssertionError(f"Unhandled endpoint in fake backend: {url}")


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeFleetBackend:
    fake = FakeFleetBackend()

    async def fake_get_json(_self: Any, url: str, **kwargs: Any) -> Any:
        return await fake.get_json(url, **kwargs)

    monkeypatch.setattr("fleetpairs._transport.HttpTransport.get_json", fake_get_json)
    return fake


@pytest.fixture
def e2e_config() -> FleetPairsConfig:
    return FleetPairsConfig(
        samsara=SamsaraConfig(token="tok", base_url="https://samsara.test"),
        skybitz=SkybitzConfig(username="u", password="p", base_url="https://skybitz.test"),
        retry=RetryPolicy(attempts=3, backoff_seconds=0.0),
    )


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_refresh_end_to_end(backend: FakeFleetBackend, e2e_config: FleetPairsConfig) -> None:
    async with RefreshOrchestrator(e2e_config) as orchestrator:
        result = await orchestrator.refresh()

    by_trailer = {pair.trailer_id: pair for pair in result.pairs}
    assert set(by_trailer) == {"5321", "5322", "5324"}
    assert by_trailer["5321"].status == AssignmentStatus.PAIRED
    assert by_trailer["5321"].truck_id == "281474977"
    assert by_trailer["5322"].status == AssignmentStatus.YARD_SOLO
    assert by_trailer["5324"].status == AssignmentStatus.UNKNOWN_TRAILER_POSITION

    payload = result.to_payload()
    assert {"pairs", "updatedAt"} <= set(payload)
    assert payload["pairs"][0]["trailer"]["assetId"] == "5321"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_truck_feed_recovers_within_retry_budget(backend: FakeFleetBackend, e2e_config: FleetPairsConfig) -> None:
    backend.samsara_failures = 2

    async with RefreshOrchestrator(e2e_config) as orchestrator:
        result = await orchestrator.refresh()

    assert backend.calls["https://samsara.test/fleet/vehicles/locations"] == 3
    assert result.by_status(AssignmentStatus.PAIRED)[0].truck_id == "281474977"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_outage_masks_with_previous_snapshot(backend: FakeFleetBackend, e2e_config: FleetPairsConfig) -> None:
    async with RefreshOrchestrator(e2e_config) as orchestrator:
        first = await orchestrator.refresh()

        backend.samsara_failures = 3
        backend.skybitz_empty = True
        second = await orchestrator.refresh()

    assert [p.trailer_id for p in second.pairs] == [p.trailer_id for p in first.pairs]
    assert [p.truck_id for p in second.pairs] == [p.truck_id for p in first.pairs]
    assert second.updated_at >= first.updated_at

"""Samsara truck feed.

Endpoint: ``GET /fleet/vehicles/locations`` (bearer token), paginated via
``pagination.endCursor`` / ``pagination.hasNextPage``.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from fleetpairs._constants import SAMSARA_LOCATIONS_ENDPOINT
from fleetpairs.exceptions import ProviderPayloadError
from fleetpairs.ingestion.normalize import FieldRule, first_list, rules, safe_str
from fleetpairs.ingestion.positions import PositionFieldRules
from fleetpairs.models.position import AssetClass
from fleetpairs.providers._base import PositionProvider

_logger = logging.getLogger(__name__)

SAMSARA_FIELD_RULES = PositionFieldRules(
    asset_id=rules(
        "id",
        "vehicleId",
        ("externalIds", "samsara.vin"),
        ("externalIds", "vin"),
        "name",
    ),
    latitude=rules(("location", "latitude"), ("gps", "latitude"), "latitude", "lat"),
    longitude=rules(("location", "longitude"), ("gps", "longitude"), "longitude", "lon"),
    observed_at=rules(("location", "time"), ("gps", "time"), "time"),
    short_tag=rules("name", ("externalIds", "samsara.serial"), "id"),
)

_RECORD_LIST_RULES: tuple[FieldRule, ...] = rules("data")


class SamsaraTruckProvider(PositionProvider):
    """Current truck locations from Samsara."""

    name: ClassVar[str] = "samsara"
    asset_class: ClassVar[AssetClass] = AssetClass.TRUCKS
    field_rules: ClassVar[PositionFieldRules] = SAMSARA_FIELD_RULES

    @property
    def has_credentials(self) -> bool:
        return self._config.samsara.has_credentials

    @property
    def short_ids(self) -> bool:
        return self._config.samsara.short_ids

    async def _fetch_records(self) -> list[Any]:
        settings = self._config.samsara
        url = f"{settings.base_url.rstrip('/')}{SAMSARA_LOCATIONS_ENDPOINT}"
        headers = {"authorization": f"Bearer {settings.token}"}

        records: list[Any] = []
        cursor: str | None = None
        for page in range(1, settings.max_pages + 1):
            params = {"after": cursor} if cursor else None
            payload = await self._get_with_retry(url, headers=headers, params=params)
            records.extend(_page_records(payload, endpoint=url))

            cursor = _next_cursor(payload)
            if cursor is None:
                break
            if page == settings.max_pages:
                _logger.warning("samsara: stopped after %d pages with more data pending", page)
        return records


def _page_records(payload: Any, *, endpoint: str) -> list[Any]:
    if isinstance(payload, list):
        return payload
    records = first_list(payload, _RECORD_LIST_RULES)
    if records is None:
        raise ProviderPayloadError(f"No vehicle list in response from {endpoint}", endpoint=endpoint)
    return records


def _next_cursor(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    pagination = payload.get("pagination")
    if not isinstance(pagination, dict) or not pagination.get("hasNextPage"):
        return None
    return safe_str(pagination.get("endCursor"))

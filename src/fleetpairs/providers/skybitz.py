"""SkyBitz trailer feed.

Legacy XML API queried with ``getJson=1``. The JSON layout differs between
API versions and tenants, so the record list is looked up under several
candidate keys.
"""

from __future__ import annotations

import base64
from typing import Any, ClassVar

from fleetpairs._constants import SKYBITZ_POSITIONS_ENDPOINT
from fleetpairs.exceptions import ProviderPayloadError
from fleetpairs.ingestion.normalize import FieldRule, first_list, rules
from fleetpairs.ingestion.positions import PositionFieldRules
from fleetpairs.models.position import AssetClass
from fleetpairs.providers._base import PositionProvider

SKYBITZ_FIELD_RULES = PositionFieldRules(
    asset_id=rules("assetid", "AssetID", ("asset", "assetid"), "id"),
    latitude=rules("lastlatitude", "latitude", "Latitude", "lat"),
    longitude=rules("lastlongitude", "longitude", "Longitude", "lon"),
    observed_at=rules("lastreporttime", "time", "timestamp", "TimeStamp"),
    short_tag=rules(
        "assetid",
        "AssetID",
        ("asset", "assetid"),
        "assetname",
        ("asset", "assetname"),
        "name",
        "id",
    ),
)

_RECORD_LIST_RULES: tuple[FieldRule, ...] = rules(
    "positions",
    "PositionList",
    ("skybitz", "gls"),
    "gls",
)


class SkybitzTrailerProvider(PositionProvider):
    """Latest trailer positions from SkyBitz."""

    name: ClassVar[str] = "skybitz"
    asset_class: ClassVar[AssetClass] = AssetClass.TRAILERS
    field_rules: ClassVar[PositionFieldRules] = SKYBITZ_FIELD_RULES

    @property
    def has_credentials(self) -> bool:
        return self._config.skybitz.has_credentials

    @property
    def short_ids(self) -> bool:
        return self._config.skybitz.short_ids

    async def _fetch_records(self) -> list[Any]:
        settings = self._config.skybitz
        url = f"{settings.base_url.rstrip('/')}{SKYBITZ_POSITIONS_ENDPOINT}"
        headers = {"authorization": _basic_auth(settings.username or "", settings.password or "")}
        params = {"version": settings.version, "assetid": "ALL", "getJson": "1"}

        payload = await self._get_with_retry(url, headers=headers, params=params)
        return _extract_records(payload, endpoint=url)


def _basic_auth(username: str, password: str) -> str:
    credentials = f"{username}:{password}".encode()
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def _extract_records(payload: Any, *, endpoint: str) -> list[Any]:
    if isinstance(payload, list):
        return payload
    records = first_list(payload, _RECORD_LIST_RULES)
    if records is not None:
        return records
    # A single-asset response carries one mapping instead of a list.
    for rule in _RECORD_LIST_RULES:
        value = rule.extract(payload)
        if isinstance(value, dict):
            return [value]
    raise ProviderPayloadError(f"No position list in response from {endpoint}", endpoint=endpoint)

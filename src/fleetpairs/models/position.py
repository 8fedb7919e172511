"""Position report models."""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import Field, field_validator

from fleetpairs.models._base import FleetBaseModel, UtcDatetime


class AssetClass(StrEnum):
    TRUCKS = "trucks"
    TRAILERS = "trailers"


class Coordinate(FleetBaseModel):
    """A latitude/longitude pair in decimal degrees.

    Only finiteness is validated; there is no range check.
    """

    lat: float
    lon: float

    @field_validator("lat", "lon")
    @classmethod
    def _require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate components must be finite")
        return value


class PositionReport(FleetBaseModel):
    """Normalized position of one asset as reported by a provider.

    Parameters
    ----------
    asset_id : str
        Stable public identifier, unique within one asset class per poll.
    coordinate : Coordinate or None
        ``None`` means the position is currently unknown.
    observed_at : datetime or None
        When the provider observed the position (UTC).
    """

    asset_id: str
    coordinate: Coordinate | None = None
    observed_at: UtcDatetime | None = None

    @field_validator("asset_id")
    @classmethod
    def _normalize_asset_id(cls, value: str) -> str:
        asset_id = value.strip()
        if not asset_id:
            raise ValueError("asset_id must be non-empty")
        return asset_id

    @property
    def has_position(self) -> bool:
        return self.coordinate is not None


class YardZone(FleetBaseModel):
    """Circular geofence where trailers are considered parked."""

    center: Coordinate
    radius_miles: float = Field(..., ge=0)

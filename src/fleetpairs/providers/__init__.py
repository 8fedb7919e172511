"""Provider adapters for the truck and trailer telemetry feeds."""

from fleetpairs.providers._base import PositionProvider, raise_for_soft_error
from fleetpairs.providers.samsara import SamsaraTruckProvider
from fleetpairs.providers.skybitz import SkybitzTrailerProvider

__all__ = [
    "PositionProvider",
    "SamsaraTruckProvider",
    "SkybitzTrailerProvider",
    "raise_for_soft_error",
]

"""fleetpairs - Nearest-truck assignment for trailers from live telemetry feeds."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fleetpairs")
except PackageNotFoundError:
    __version__ = "0+local"
from fleetpairs.config import FleetPairsConfig, RetryPolicy, SamsaraConfig, SkybitzConfig
from fleetpairs.exceptions import (
    FleetPairsConfigError,
    FleetPairsError,
    ProviderApiError,
    ProviderPayloadError,
    TransportError,
)
from fleetpairs.geo import haversine_miles
from fleetpairs.matching import match_trailers, merge_snapshot, reconcile
from fleetpairs.models import (
    AssetClass,
    AssignmentRecord,
    AssignmentSet,
    AssignmentStatus,
    Coordinate,
    PositionReport,
    YardZone,
)
from fleetpairs.orchestrator import RefreshOrchestrator
from fleetpairs.providers import SamsaraTruckProvider, SkybitzTrailerProvider
from fleetpairs.state import JsonFileKeyValueStore, MemoryKeyValueStore, SnapshotStore

__all__ = [
    "__version__",
    "AssetClass",
    "AssignmentRecord",
    "AssignmentSet",
    "AssignmentStatus",
    "Coordinate",
    "FleetPairsConfig",
    "FleetPairsConfigError",
    "FleetPairsError",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "PositionReport",
    "ProviderApiError",
    "ProviderPayloadError",
    "RefreshOrchestrator",
    "RetryPolicy",
    "SamsaraConfig",
    "SamsaraTruckProvider",
    "SkybitzConfig",
    "SkybitzTrailerProvider",
    "SnapshotStore",
    "TransportError",
    "YardZone",
    "haversine_miles",
    "match_trailers",
    "merge_snapshot",
    "reconcile",
]

"""Data models for positions and assignments."""

from fleetpairs.models._base import FleetBaseModel
from fleetpairs.models.assignment import AssignmentRecord, AssignmentSet, AssignmentStatus
from fleetpairs.models.position import AssetClass, Coordinate, PositionReport, YardZone

__all__ = [
    "AssetClass",
    "AssignmentRecord",
    "AssignmentSet",
    "AssignmentStatus",
    "Coordinate",
    "FleetBaseModel",
    "PositionReport",
    "YardZone",
]

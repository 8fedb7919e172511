"""Reconciliation engine: snapshot merge, yard classification and matching.

Matching is "nearest truck", not an exclusive assignment. Several trailers
may legitimately share the same nearest truck.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fleetpairs.geo import haversine_miles
from fleetpairs.models.assignment import AssignmentRecord, AssignmentStatus
from fleetpairs.models.position import Coordinate, PositionReport, YardZone

_logger = logging.getLogger(__name__)

#: ``round()`` is Python's built-in (half-to-even on the binary value).
DISTANCE_DECIMALS = 2


def merge_snapshot(current: Sequence[PositionReport], last: Sequence[PositionReport]) -> list[PositionReport]:
    """Pick the position set to reconcile against.

    An empty poll keeps the last snapshot unchanged; any non-empty poll
    replaces it completely. There is no per-asset merging.
    """
    if not current:
        return list(last)
    return list(current)


def in_yard(coordinate: Coordinate, yard: YardZone) -> bool:
    return haversine_miles(coordinate, yard.center) <= yard.radius_miles


def find_nearest_truck(
    coordinate: Coordinate,
    trucks: Sequence[PositionReport],
) -> tuple[PositionReport, float] | None:
    """Nearest truck with a known position, first one wins on ties."""
    best: PositionReport | None = None
    best_distance = float("inf")
    for truck in trucks:
        if truck.coordinate is None:
            continue
        distance = haversine_miles(coordinate, truck.coordinate)
        if distance < best_distance:
            best = truck
            best_distance = distance
    if best is None:
        return None
    return best, best_distance


def assign_trailer(trailer: PositionReport, trucks: Sequence[PositionReport], yard: YardZone) -> AssignmentRecord:
    if trailer.coordinate is None:
        return AssignmentRecord(
            trailer_id=trailer.asset_id,
            status=AssignmentStatus.UNKNOWN_TRAILER_POSITION,
            trailer=trailer,
        )

    if in_yard(trailer.coordinate, yard):
        return AssignmentRecord(
            trailer_id=trailer.asset_id,
            distance_miles=0.0,
            status=AssignmentStatus.YARD_SOLO,
            trailer=trailer,
        )

    nearest = find_nearest_truck(trailer.coordinate, trucks)
    if nearest is None:
        return AssignmentRecord(
            trailer_id=trailer.asset_id,
            status=AssignmentStatus.NO_TRUCK_AVAILABLE,
            trailer=trailer,
        )

    truck, distance = nearest
    return AssignmentRecord(
        trailer_id=trailer.asset_id,
        truck_id=truck.asset_id,
        distance_miles=round(distance, DISTANCE_DECIMALS),
        status=AssignmentStatus.PAIRED,
        trailer=trailer,
        truck=truck,
    )


def match_trailers(
    trucks: Sequence[PositionReport],
    trailers: Sequence[PositionReport],
    yard: YardZone,
) -> list[AssignmentRecord]:
    """One assignment record per trailer, in trailer order."""
    return [assign_trailer(trailer, trucks, yard) for trailer in trailers]


def reconcile(
    *,
    current_trucks: Sequence[PositionReport],
    current_trailers: Sequence[PositionReport],
    last_trucks: Sequence[PositionReport],
    last_trailers: Sequence[PositionReport],
    yard: YardZone,
) -> list[AssignmentRecord]:
    """Merge each asset class with its last snapshot, then match."""
    trucks = merge_snapshot(current_trucks, last_trucks)
    trailers = merge_snapshot(current_trailers, last_trailers)
    if not current_trucks and last_trucks:
        _logger.info("Truck poll empty, reusing %d cached trucks", len(last_trucks))
    if not current_trailers and last_trailers:
        _logger.info("Trailer poll empty, reusing %d cached trailers", len(last_trailers))
    return match_trailers(trucks, trailers, yard)

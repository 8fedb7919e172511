"""Assignment models produced by a reconciliation pass."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import Field, model_validator

from fleetpairs.models._base import FleetBaseModel, UtcDatetime
from fleetpairs.models.position import PositionReport


class AssignmentStatus(StrEnum):
    PAIRED = "paired"
    YARD_SOLO = "yard_solo"
    NO_TRUCK_AVAILABLE = "no_truck_available"
    UNKNOWN_TRAILER_POSITION = "unknown_trailer_position"


_STATUSES_WITH_DISTANCE = frozenset({AssignmentStatus.PAIRED, AssignmentStatus.YARD_SOLO})


class AssignmentRecord(FleetBaseModel):
    """Outcome for a single trailer.

    ``trailer`` and ``truck`` are denormalized copies of the matched
    position reports so consumers can render without a second lookup.
    """

    trailer_id: str
    truck_id: str | None = None
    distance_miles: float | None = None
    status: AssignmentStatus
    trailer: PositionReport
    truck: PositionReport | None = None

    @model_validator(mode="after")
    def _check_status_consistency(self) -> AssignmentRecord:
        has_distance = self.distance_miles is not None
        if has_distance != (self.status in _STATUSES_WITH_DISTANCE):
            raise ValueError(f"distance_miles presence does not match status {self.status}")
        paired = self.status == AssignmentStatus.PAIRED
        if (self.truck_id is not None) != paired or (self.truck is not None) != paired:
            raise ValueError(f"truck reference does not match status {self.status}")
        if self.truck is not None and self.truck.asset_id != self.truck_id:
            raise ValueError("truck_id must match the embedded truck record")
        if self.trailer.asset_id != self.trailer_id:
            raise ValueError("trailer_id must match the embedded trailer record")
        return self


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AssignmentSet(FleetBaseModel):
    """All assignment records of one pass; persisted and served as a unit."""

    pairs: tuple[AssignmentRecord, ...] = ()
    updated_at: UtcDatetime = Field(default_factory=_utcnow)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AssignmentSet:
        return cls.model_validate(payload)

    def by_status(self, status: AssignmentStatus) -> list[AssignmentRecord]:
        return [pair for pair in self.pairs if pair.status == status]

    def age_seconds(self, now: datetime | None = None) -> float:
        current = now or _utcnow()
        return (current - self.updated_at).total_seconds()

"""Base model shared by the fleetpairs data models.

Every model inherits from :class:`FleetBaseModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialize to the
  camelCase shape consumed by the map front-end (``assetId``,
  ``distanceMiles``, ``updatedAt``).
* ``populate_by_name`` so either spelling is accepted on input.
* Frozen instances; records are never mutated after creation.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def ensure_utc(value: Any) -> Any:
    """Attach UTC to naive datetimes; other values pass through for pydantic."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, BeforeValidator(ensure_utc)]
"""Datetime that is always timezone-aware."""


class FleetBaseModel(BaseModel):
    """Base for all fleetpairs models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON-compatible dict using the public camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)

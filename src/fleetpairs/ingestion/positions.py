"""Turn raw vendor records into :class:`PositionReport` objects."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from fleetpairs._constants import UNKNOWN_ASSET_ID
from fleetpairs.ingestion.normalize import (
    FieldRule,
    extract_short_tag,
    first_match,
    parse_timestamp,
    safe_float,
    safe_str,
)
from fleetpairs.models.position import Coordinate, PositionReport

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionFieldRules:
    """Priority-ordered extraction rules for one provider's record shape."""

    asset_id: tuple[FieldRule, ...]
    latitude: tuple[FieldRule, ...]
    longitude: tuple[FieldRule, ...]
    observed_at: tuple[FieldRule, ...]
    short_tag: tuple[FieldRule, ...] = ()


def _resolve_asset_id(record: Any, field_rules: PositionFieldRules, short_ids: bool) -> str:
    if short_ids:
        return extract_short_tag(record, field_rules.short_tag)
    return first_match(record, field_rules.asset_id, safe_str) or UNKNOWN_ASSET_ID


def normalize_record(record: Any, field_rules: PositionFieldRules, *, short_ids: bool = False) -> PositionReport | None:
    """Normalize one vendor record.

    Returns ``None`` when the record has neither latitude nor longitude.
    A record with only one usable component is kept with an unknown
    coordinate.
    """
    if not isinstance(record, dict):
        return None

    lat = first_match(record, field_rules.latitude, safe_float)
    lon = first_match(record, field_rules.longitude, safe_float)
    if lat is None and lon is None:
        return None

    coordinate = Coordinate(lat=lat, lon=lon) if lat is not None and lon is not None else None
    return PositionReport(
        asset_id=_resolve_asset_id(record, field_rules, short_ids),
        coordinate=coordinate,
        observed_at=first_match(record, field_rules.observed_at, parse_timestamp),
    )


def normalize_records(
    records: Iterable[Any],
    field_rules: PositionFieldRules,
    *,
    short_ids: bool = False,
) -> list[PositionReport]:
    """Normalize a poll's records, keyed by asset id (last write wins)."""
    by_id: dict[str, PositionReport] = {}
    dropped = 0
    for record in records:
        try:
            report = normalize_record(record, field_rules, short_ids=short_ids)
        except ValidationError as exc:
            _logger.debug("Dropped invalid record: %s", exc)
            report = None
        if report is None:
            dropped += 1
            continue
        by_id[report.asset_id] = report
    if dropped:
        _logger.debug("Dropped %d records without a usable position", dropped)
    return list(by_id.values())

"""Last-known-good snapshot store.

Holds the most recent successful position set per asset class and the
latest assignment set. Every write replaces the stored value wholesale;
overlapping passes simply supersede each other.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from fleetpairs._constants import LATEST_KEY_PREFIX, PAIRS_KEY
from fleetpairs.models.assignment import AssignmentSet
from fleetpairs.models.position import AssetClass, PositionReport
from fleetpairs.state.kv import Key, KeyValueStore, MemoryKeyValueStore

_logger = logging.getLogger(__name__)

_REPORTS = TypeAdapter(list[PositionReport])


def _latest_key(asset_class: AssetClass) -> Key:
    return (LATEST_KEY_PREFIX, AssetClass(asset_class).value)


class SnapshotStore:
    """Typed view over a :class:`KeyValueStore`."""

    def __init__(self, kv: KeyValueStore | None = None) -> None:
        self._kv: KeyValueStore = kv if kv is not None else MemoryKeyValueStore()

    def get_last(self, asset_class: AssetClass) -> list[PositionReport]:
        """Last stored reports for *asset_class*; empty if never set."""
        raw = self._kv.get(_latest_key(asset_class))
        if raw is None:
            return []
        try:
            return _REPORTS.validate_python(raw)
        except ValidationError:
            _logger.warning("Discarding unreadable %s snapshot", asset_class, exc_info=True)
            return []

    def set_last(self, asset_class: AssetClass, records: Iterable[PositionReport]) -> None:
        """Replace the stored snapshot for *asset_class*."""
        payload = [record.to_payload() for record in records]
        self._kv.set(_latest_key(asset_class), payload)

    def get_assignments(self) -> AssignmentSet | None:
        raw = self._kv.get(PAIRS_KEY)
        if raw is None:
            return None
        try:
            return AssignmentSet.from_payload(raw)
        except ValidationError:
            _logger.warning("Discarding unreadable assignment set", exc_info=True)
            return None

    def set_assignments(self, assignment_set: AssignmentSet) -> None:
        self._kv.set(PAIRS_KEY, assignment_set.to_payload())

    def has_assignments(self) -> bool:
        """Whether an assignment set has been persisted, without decoding it."""
        return self._kv.get(PAIRS_KEY) is not None

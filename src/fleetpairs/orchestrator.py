"""Refresh orchestrator: one poll, merge, match and persist pass."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import aiohttp

from fleetpairs._transport import HttpTransport
from fleetpairs.config import FleetPairsConfig
from fleetpairs.exceptions import FleetPairsError
from fleetpairs.matching import reconcile
from fleetpairs.models.assignment import AssignmentSet
from fleetpairs.models.position import AssetClass, PositionReport
from fleetpairs.providers._base import PositionProvider
from fleetpairs.providers.samsara import SamsaraTruckProvider
from fleetpairs.providers.skybitz import SkybitzTrailerProvider
from fleetpairs.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RefreshOrchestrator:
    """Drives both provider adapters and the reconciliation engine.

    Usage::

        async with RefreshOrchestrator(FleetPairsConfig.from_env()) as orchestrator:
            assignments = await orchestrator.refresh()

    Passes are not serialized. Each write is an atomic replace, so when a
    demand-triggered pass races a scheduled one the later write wins.
    """

    def __init__(
        self,
        config: FleetPairsConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        store: SnapshotStore | None = None,
        truck_provider: PositionProvider | None = None,
        trailer_provider: PositionProvider | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._store = store if store is not None else SnapshotStore()
        self._truck_provider = truck_provider
        self._trailer_provider = trailer_provider
        self._clock = clock

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RefreshOrchestrator:
        if self._truck_provider is None or self._trailer_provider is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
            if self._truck_provider is None:
                self._truck_provider = SamsaraTruckProvider(self._config, transport)
            if self._trailer_provider is None:
                self._trailer_provider = SkybitzTrailerProvider(self._config, transport)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    @property
    def store(self) -> SnapshotStore:
        return self._store

    def _require_providers(self) -> tuple[PositionProvider, PositionProvider]:
        if self._truck_provider is None or self._trailer_provider is None:
            raise FleetPairsError("Orchestrator not initialized. Use 'async with RefreshOrchestrator(...) as o:'")
        return self._truck_provider, self._trailer_provider

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def refresh(self) -> AssignmentSet:
        """Run one pass and return the persisted assignment set.

        Never raises. On an unexpected fault the previously persisted set is
        served, or an empty set stamped now if nothing was ever persisted.
        """
        try:
            return await self._run_pass()
        except Exception:
            _logger.error("Refresh pass failed, serving last persisted assignments", exc_info=True)
            return self._fallback()

    async def _run_pass(self) -> AssignmentSet:
        truck_provider, trailer_provider = self._require_providers()

        current_trucks, current_trailers = await asyncio.gather(
            truck_provider.fetch_positions(),
            trailer_provider.fetch_positions(),
        )

        last_trucks = self._store.get_last(AssetClass.TRUCKS)
        last_trailers = self._store.get_last(AssetClass.TRAILERS)

        pairs = reconcile(
            current_trucks=current_trucks,
            current_trailers=current_trailers,
            last_trucks=last_trucks,
            last_trailers=last_trailers,
            yard=self._config.yard,
        )

        self._write_snapshot(AssetClass.TRUCKS, current_trucks)
        self._write_snapshot(AssetClass.TRAILERS, current_trailers)

        assignment_set = AssignmentSet(pairs=tuple(pairs), updated_at=self._clock())
        self._store.set_assignments(assignment_set)
        _logger.info(
            "Refresh complete: %d trailers, %d trucks polled, %d trailers polled",
            len(assignment_set.pairs),
            len(current_trucks),
            len(current_trailers),
        )
        return assignment_set

    def _write_snapshot(self, asset_class: AssetClass, records: list[PositionReport]) -> None:
        if records:
            self._store.set_last(asset_class, records)

    def _fallback(self) -> AssignmentSet:
        try:
            previous = self._store.get_assignments()
        except Exception:
            _logger.error("Could not read persisted assignments", exc_info=True)
            previous = None
        if previous is not None:
            return previous
        return AssignmentSet(pairs=(), updated_at=self._clock())

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def get_assignments(self, *, max_age: timedelta | None = None) -> AssignmentSet:
        """Serve the persisted set, refreshing first when missing or stale."""
        try:
            current = self._store.get_assignments()
        except Exception:
            _logger.error("Could not read persisted assignments", exc_info=True)
            current = None
        if current is None:
            return await self.refresh()
        if max_age is not None and current.age_seconds(self._clock()) > max_age.total_seconds():
            _logger.debug("Assignments are %.0fs old, refreshing", current.age_seconds(self._clock()))
            return await self.refresh()
        return current

    def health(self) -> dict[str, Any]:
        """Liveness report; a failing store reads as no pairs."""
        try:
            have_pairs = self._store.has_assignments()
        except Exception:
            _logger.error("Could not read persisted assignments", exc_info=True)
            have_pairs = False
        return {"ok": True, "havePairs": have_pairs}

"""Shared provider adapter machinery.

Every adapter exposes a single total operation, :meth:`fetch_positions`.
Whatever goes wrong upstream is absorbed and surfaced as an empty list, so
a feed outage degrades to "nothing new this cycle".
"""

from __future__ import annotations

import abc
import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ClassVar

from fleetpairs._redact import redact_for_log
from fleetpairs._transport import Transport
from fleetpairs.config import FleetPairsConfig
from fleetpairs.exceptions import ProviderApiError, ProviderPayloadError, TransportError
from fleetpairs.ingestion.normalize import FieldRule, rules, safe_float, safe_str
from fleetpairs.ingestion.positions import PositionFieldRules, normalize_records
from fleetpairs.models.position import AssetClass, PositionReport

_logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

#: Where providers embed an error code in a 200 response, highest priority first.
SOFT_ERROR_RULES: tuple[FieldRule, ...] = rules(
    ("error", "errorcode"),
    ("error", "code"),
    ("skybitz", "error"),
    "errorcode",
    "errorCode",
    "error_code",
    "error",
)


def _is_success_code(code: str) -> bool:
    if code == "":
        return True
    # Numeric codes compare as numbers, so 0, 0.0 and "0.0" all mean success.
    return safe_float(code) == 0


def raise_for_soft_error(payload: Any, *, endpoint: str) -> None:
    """Raise :class:`ProviderApiError` if *payload* carries an error code.

    The first rule that resolves to a non-``None`` value decides. Zero in
    any numeric spelling (``0``, ``0.0``, ``"0"``), ``""``, ``False`` and an
    empty mapping mean success.
    """
    if not isinstance(payload, Mapping):
        return
    for rule in SOFT_ERROR_RULES:
        value = rule.extract(payload)
        if value is None:
            continue
        if isinstance(value, Mapping):
            if not value:
                return
            message = safe_str(value.get("message") or value.get("errormessage")) or ""
            raise ProviderApiError(f"{endpoint} returned error: {message}", endpoint=endpoint)
        if isinstance(value, bool):
            if value:
                raise ProviderApiError(f"{endpoint} returned error flag", endpoint=endpoint)
            return
        code = safe_str(value) or ""
        if _is_success_code(code):
            return
        raise ProviderApiError(f"{endpoint} returned error code={code}", code=code, endpoint=endpoint)


class PositionProvider(abc.ABC):
    """Base class for a polled telemetry feed.

    Subclasses declare their record shape through :attr:`field_rules` and
    implement :meth:`_fetch_records`, using :meth:`_get_with_retry` for every
    upstream request.
    """

    name: ClassVar[str]
    asset_class: ClassVar[AssetClass]
    field_rules: ClassVar[PositionFieldRules]

    def __init__(
        self,
        config: FleetPairsConfig,
        transport: Transport,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep = sleep

    @property
    @abc.abstractmethod
    def has_credentials(self) -> bool:
        ...

    @property
    def short_ids(self) -> bool:
        return False

    @abc.abstractmethod
    async def _fetch_records(self) -> list[Any]:
        """Return the raw vendor records for one poll."""

    async def fetch_positions(self) -> list[PositionReport]:
        """Poll the provider once. Never raises."""
        if not self.has_credentials:
            _logger.debug("%s: no credentials configured, skipping poll", self.name)
            return []

        try:
            records = await self._fetch_records()
            positions = normalize_records(records, self.field_rules, short_ids=self.short_ids)
        except (TransportError, ProviderApiError) as exc:
            _logger.warning("%s: poll failed after retries: %s", self.name, exc)
            return []
        except ProviderPayloadError as exc:
            _logger.warning("%s: unusable payload: %s", self.name, exc)
            return []
        except Exception:
            _logger.error("%s: unexpected failure while polling", self.name, exc_info=True)
            return []

        _logger.debug("%s: %d of %d records normalized", self.name, len(positions), len(records))
        return positions

    async def _get_with_retry(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """GET with bounded retries and linear backoff.

        Transport failures and embedded error codes are retried; the last
        one is re-raised once attempts are exhausted. Payload errors are
        raised immediately.
        """
        policy = self._config.retry
        last_exc: TransportError | ProviderApiError | None = None

        for attempt in range(1, policy.attempts + 1):
            try:
                payload = await self._transport.get_json(url, headers=headers, params=params)
                raise_for_soft_error(payload, endpoint=url)
            except (TransportError, ProviderApiError) as exc:
                last_exc = exc
                if attempt < policy.attempts:
                    delay = policy.delay_after(attempt)
                    _logger.warning(
                        "%s: request failed (attempt %d/%d), retrying in %.1fs: %s",
                        self.name,
                        attempt,
                        policy.attempts,
                        delay,
                        exc,
                    )
                    await self._sleep(delay)
                continue
            _logger.debug("%s: payload %s", self.name, redact_for_log(payload))
            return payload

        # All retries exhausted – re-raise the last failure
        assert last_exc is not None  # noqa: S101
        raise last_exc

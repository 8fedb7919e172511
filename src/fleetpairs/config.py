"""Process configuration for fleetpairs.

Loaded once at startup and passed by reference into the orchestrator and
the provider adapters.
"""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from fleetpairs._constants import (
    DEFAULT_YARD_LAT,
    DEFAULT_YARD_LON,
    DEFAULT_YARD_RADIUS_MI,
    SAMSARA_BASE_URL,
    SKYBITZ_API_VERSION,
    SKYBITZ_BASE_URL,
)
from fleetpairs.exceptions import FleetPairsConfigError
from fleetpairs.models.position import Coordinate, YardZone


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise FleetPairsConfigError(f"{key} must be numeric, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise FleetPairsConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _default_yard() -> YardZone:
    return YardZone(
        center=Coordinate(lat=DEFAULT_YARD_LAT, lon=DEFAULT_YARD_LON),
        radius_miles=DEFAULT_YARD_RADIUS_MI,
    )


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry schedule shared by both adapters.

    Attempt *n* (1-based) that fails transiently is followed by a sleep of
    ``backoff_seconds * n`` before attempt *n + 1*.
    """

    attempts: int = 3
    backoff_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise FleetPairsConfigError("retry attempts must be >= 1")
        if self.backoff_seconds < 0:
            raise FleetPairsConfigError("retry backoff must be >= 0")

    def delay_after(self, attempt: int) -> float:
        return self.backoff_seconds * attempt


@dataclasses.dataclass(frozen=True)
class SamsaraConfig:
    """Truck feed settings.

    Parameters
    ----------
    token : str or None
        Samsara API bearer token. Without it the adapter stays idle.
    base_url : str
        API base URL.
    short_ids : bool
        Derive a 3/4 digit public tag instead of the raw vehicle id.
    max_pages : int
        Upper bound on followed pagination cursors per poll.
    """

    token: str | None = None
    base_url: str = SAMSARA_BASE_URL
    short_ids: bool = False
    max_pages: int = 10

    @property
    def has_credentials(self) -> bool:
        return bool(self.token)


@dataclasses.dataclass(frozen=True)
class SkybitzConfig:
    """Trailer feed settings (SkyBitz legacy XML API, JSON output)."""

    username: str | None = None
    password: str | None = None
    base_url: str = SKYBITZ_BASE_URL
    version: str = SKYBITZ_API_VERSION
    short_ids: bool = True

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)


@dataclasses.dataclass(frozen=True)
class FleetPairsConfig:
    """Top-level configuration.

    Parameters
    ----------
    yard : YardZone
        Geofence inside which trailers are never matched.
    samsara : SamsaraConfig
        Truck provider settings.
    skybitz : SkybitzConfig
        Trailer provider settings.
    retry : RetryPolicy
        Attempt bound and linear backoff for both adapters.
    request_timeout : float
        Total per-request timeout in seconds.
    """

    yard: YardZone = dataclasses.field(default_factory=_default_yard)
    samsara: SamsaraConfig = dataclasses.field(default_factory=SamsaraConfig)
    skybitz: SkybitzConfig = dataclasses.field(default_factory=SkybitzConfig)
    retry: RetryPolicy = dataclasses.field(default_factory=RetryPolicy)
    request_timeout: float = 20.0

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetPairsConfig:
        """Create configuration from environment variables.

        Reads ``YARD_LAT``/``YARD_LON``/``YARD_RADIUS_MI``, ``SAMSARA_*``,
        ``SKYBITZ_*`` and ``FLEETPAIRS_*`` variables. Explicit keyword
        arguments override environment values.

        Raises
        ------
        FleetPairsConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}

        if "yard" not in overrides:
            try:
                config_kwargs["yard"] = YardZone(
                    center=Coordinate(
                        lat=_env_float(env, "YARD_LAT", DEFAULT_YARD_LAT),
                        lon=_env_float(env, "YARD_LON", DEFAULT_YARD_LON),
                    ),
                    radius_miles=_env_float(env, "YARD_RADIUS_MI", DEFAULT_YARD_RADIUS_MI),
                )
            except ValueError as exc:
                raise FleetPairsConfigError(f"Invalid yard configuration: {exc}") from exc

        if "samsara" not in overrides:
            config_kwargs["samsara"] = SamsaraConfig(
                token=env.get("SAMSARA_TOKEN") or None,
                base_url=env.get("SAMSARA_BASE_URL", SAMSARA_BASE_URL),
                short_ids=_env_bool(env.get("SAMSARA_SHORT_IDS"), False),
                max_pages=_env_int(env, "SAMSARA_MAX_PAGES", 10),
            )

        if "skybitz" not in overrides:
            config_kwargs["skybitz"] = SkybitzConfig(
                username=env.get("SKYBITZ_USERNAME") or None,
                password=env.get("SKYBITZ_PASSWORD") or None,
                base_url=env.get("SKYBITZ_BASE_URL", SKYBITZ_BASE_URL),
                short_ids=_env_bool(env.get("SKYBITZ_SHORT_IDS"), True),
            )

        if "retry" not in overrides:
            config_kwargs["retry"] = RetryPolicy(
                attempts=_env_int(env, "FLEETPAIRS_RETRY_ATTEMPTS", 3),
                backoff_seconds=_env_float(env, "FLEETPAIRS_RETRY_BACKOFF", 1.0),
            )

        if "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float(env, "FLEETPAIRS_REQUEST_TIMEOUT", 20.0)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

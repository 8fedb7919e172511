"""Custom exception hierarchy for fleetpairs.

None of these cross the provider boundary: adapters absorb them into an
empty poll result.
"""

from __future__ import annotations


class FleetPairsError(Exception):
    """Base exception for all fleetpairs errors."""


class FleetPairsConfigError(FleetPairsError):
    """Invalid or missing configuration."""


class TransportError(FleetPairsError):
    """HTTP-level failure (network, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ProviderApiError(FleetPairsError):
    """Provider returned an error code inside an otherwise successful response.

    Treated as transient: the adapter retries with backoff.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class ProviderPayloadError(FleetPairsError):
    """Response body was not JSON or did not have a usable shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)

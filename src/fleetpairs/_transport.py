"""HTTP transport for provider polling."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from fleetpairs._constants import USER_AGENT
from fleetpairs._redact import redact_for_log
from fleetpairs.exceptions import ProviderPayloadError, TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by provider adapters.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed GET-and-decode transport."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 20.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """GET *url* and decode the JSON body.

        Raises
        ------
        TransportError
            Network failure, timeout or non-2xx status.
        ProviderPayloadError
            The body is not JSON.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s params=%s headers=%s", url, params, redact_for_log(request_headers))

        try:
            async with self._http.get(
                url,
                headers=request_headers,
                params=dict(params) if params else None,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except TransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(
                f"Request to {url} failed: {exc!r}",
                endpoint=url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProviderPayloadError(
                f"Invalid JSON from {url}: {text[:200]}",
                endpoint=url,
            ) from exc

"""HTTP transport with bearer auth, JSON decoding and event-stream access."""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from typing import Any, Protocol

import aiohttp

from pybustrack._constants import USER_AGENT
from pybustrack._redact import redact_params
from pybustrack.config import BusTrackConfig
from pybustrack.exceptions import BusTrackTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        base_url: str | None = None,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        form: aiohttp.FormData | None = None,
    ) -> Any:
        ...


class StreamTransport(Protocol):
    """Opens a long-lived event stream and yields its raw lines."""

    def open_stream(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
    ) -> contextlib.AbstractAsyncContextManager[AsyncIterable[bytes]]:
        ...


class HttpTransport:
    """aiohttp-backed transport for the bus-tracking backend."""

    def __init__(
        self,
        config: BusTrackConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {"accept": accept, "user-agent": USER_AGENT}
        if self._config.token:
            headers["authorization"] = f"Bearer {self._config.token}"
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        *,
        base_url: str | None = None,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        form: aiohttp.FormData | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for an empty body. Non-2xx statuses, network
        failures, timeouts and undecodable bodies all raise
        :class:`BusTrackTransportError`.
        """
        url = f"{base_url or self._config.base_url}{endpoint}"
        _logger.debug("%s %s params=%s", method, url, redact_params(params))

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                data=form,
                headers=self._headers("application/json"),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise BusTrackTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except BusTrackTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise BusTrackTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise BusTrackTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

    @contextlib.asynccontextmanager
    async def open_stream(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
    ) -> AsyncIterator[AsyncIterable[bytes]]:
        """Open a ``text/event-stream`` response and yield its line iterator.

        Only the connect phase is bounded by ``request_timeout``; the
        stream itself stays open until the server or the caller closes it.
        """
        url = f"{self._config.base_url}{endpoint}"
        _logger.debug("STREAM %s params=%s", url, redact_params(params))
        headers = {
            "accept": "text/event-stream",
            "cache-control": "no-cache",
            "user-agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._config.request_timeout)

        try:
            resp = await self._http.get(url, params=params, headers=headers, timeout=timeout)
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise BusTrackTransportError(
                f"Stream connection to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        try:
            if resp.status != 200:
                text = await resp.text()
                raise BusTrackTransportError(
                    f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                    status_code=resp.status,
                    endpoint=endpoint,
                )
            yield _iter_lines(resp, endpoint)
        finally:
            resp.close()


async def _iter_lines(resp: aiohttp.ClientResponse, endpoint: str) -> AsyncIterator[bytes]:
    try:
        async for line in resp.content:
            yield line
    except (aiohttp.ClientError, TimeoutError) as exc:
        raise BusTrackTransportError(
            f"Stream from {endpoint} interrupted: {exc!r}",
            endpoint=endpoint,
        ) from exc

"""Transport capability and the default aiohttp implementation."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import aiohttp

from pylds.exceptions import LdsTransportError
from pylds.models.result import LoadResult

_logger = logging.getLogger(__name__)

ResultCallback = Callable[[LoadResult | Mapping[str, Any]], None]


class Transport(Protocol):
    """Structural transport interface used by the provider.

    Implementations must always invoke *callback* exactly once, with an
    ``{items, total}`` envelope; failures are reported as an envelope with
    ``error`` set rather than raised.
    """

    def get(self, url: str, query_string: str, body: Mapping[str, Any], callback: ResultCallback) -> None: ...

    def post(self, url: str, query_string: str, body: Mapping[str, Any], callback: ResultCallback) -> None: ...


class HttpTransport:
    """aiohttp transport: each call runs as a task on the running loop.

    GET appends the query string to the URL; POST sends the filters as a
    JSON body. When *result_key* is set, the envelope is read from that
    key of the response (``{"Data": {"items": ..., "total": ...}}``).

    Usage::

        async with HttpTransport() as transport:
            provider = DataSourceProvider(transport=transport)
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        result_key: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._external_session = session is not None
        self._http_session = session
        self._result_key = result_key
        self._headers = dict(headers or {})
        self._tasks: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> HttpTransport:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
        self._http_session = None

    @property
    def pending(self) -> int:
        """Number of requests still in flight."""
        return len(self._tasks)

    def get(self, url: str, query_string: str, body: Mapping[str, Any], callback: ResultCallback) -> None:
        full_url = f"{url}?{query_string}" if query_string else url
        self._spawn(self._request("GET", full_url, None), callback)

    def post(self, url: str, query_string: str, body: Mapping[str, Any], callback: ResultCallback) -> None:
        self._spawn(self._request("POST", url, dict(body)), callback)

    def _spawn(self, request: Any, callback: ResultCallback) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            request.close()
            raise
        task = loop.create_task(self._deliver(request, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, request: Any, callback: ResultCallback) -> None:
        try:
            payload = await request
        except LdsTransportError as exc:
            _logger.warning("Transport request failed: %s", exc)
            callback(LoadResult.empty(error=str(exc)))
            return
        except Exception as exc:
            _logger.warning("Transport request failed unexpectedly: %s", exc, exc_info=True)
            callback(LoadResult.empty(error=str(exc) or type(exc).__name__))
            return
        callback(LoadResult.from_payload(payload))

    async def _request(self, method: str, url: str, body: dict[str, Any] | None) -> Any:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()

        headers = {"accept": "application/json", **self._headers}
        data: str | None = None
        if body is not None:
            headers["content-type"] = "application/json; charset=UTF-8"
            data = json.dumps(body, default=str, separators=(",", ":"))
        _logger.debug("%s %s", method, url)

        try:
            async with self._http_session.request(method, url, data=data, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise LdsTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except LdsTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise LdsTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LdsTransportError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc

        if self._result_key is not None:
            if not isinstance(payload, dict) or self._result_key not in payload:
                raise LdsTransportError(f"Missing {self._result_key!r} field from {url}", url=url)
            payload = payload[self._result_key]
        return payload

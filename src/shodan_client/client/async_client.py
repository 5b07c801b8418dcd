"""Asynchronous Shodan client -- mirrors :class:`~shodan_client.client.sync_client.Client` API.

This module provides :class:`AsyncClient`, the non-blocking counterpart to
:class:`~shodan_client.client.sync_client.Client`.  It wraps
:class:`httpx.AsyncClient` and offers the same feature set -- token
injection, error mapping, decoding and streaming -- but uses ``await`` so
it can be used inside an event loop.  Stream bodies are consumed by an
:class:`asyncio.Task` and delivered through an
:class:`~shodan_client.streaming.AsyncChannel`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from shodan_client.client.base import (
    API_INFO_PATH,
    BANNERS_PATH,
    PROFILE_PATH,
    BaseClient,
    body_kwargs,
    decode_response,
    raise_for_status,
    stream_setup_error,
    transport_error,
)
from shodan_client.exceptions import APIError, InvalidURLError, TransportError
from shodan_client.models import APIInfo, BaseURLs, Profile, RequestConfig
from shodan_client.streaming import AsyncChannel, aiter_lines
from shodan_client.urls import ParamsLike, redact_url, validate_url

logger = logging.getLogger(__name__)


class AsyncClient(BaseClient):
    """Non-blocking client for the Shodan REST, exploits and streaming APIs.

    Args:
        token: Shodan API key.
        http_client: Optional custom transport.  When ``None`` the client
            builds and owns an :class:`httpx.AsyncClient`.
        base_urls: Root addresses; production defaults when ``None``.
        request: Timeout / TLS settings for a self-built transport.

    Example::

        async with AsyncClient("MY_API_KEY") as client:
            profile = await client.get_account_profile()
    """

    def __init__(
        self,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        base_urls: Optional[BaseURLs] = None,
        request: Optional[RequestConfig] = None,
    ) -> None:
        super().__init__(token, base_urls, request)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(**self._transport_kwargs())
        self._streams: dict[asyncio.Task[None], tuple[httpx.Response, AsyncChannel]] = {}

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The underlying transport."""
        return self._client

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel running streams and close the transport if this client built it."""
        streams = list(self._streams.items())
        for task, _ in streams:
            task.cancel()
        if streams:
            await asyncio.gather(*(task for task, _ in streams), return_exceptions=True)
        # A task cancelled before its first step never ran its own cleanup.
        for _, (response, channel) in streams:
            channel.close()
            await response.aclose()
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Request executor
    # ------------------------------------------------------------------ #

    async def send_request(self, method: str, url: str, body: Any = None) -> httpx.Response:
        """Perform one HTTP exchange without interpreting the status code.

        Behaves identically to
        :meth:`~shodan_client.client.sync_client.Client.send_request`.
        """
        validate_url(url)
        logger.debug("%s %s", method, redact_url(url))
        try:
            response = await self._client.request(method, url, **body_kwargs(body))
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"Invalid URL {redact_url(url)!r}: {exc}", url=url) from exc
        except httpx.TransportError as exc:
            raise transport_error(method, url, exc) from exc
        logger.debug("%s %s -> %d", method, redact_url(url), response.status_code)
        return response

    async def execute_request(
        self,
        method: str,
        url: str,
        destination: Any = None,
        body: Any = None,
    ) -> Any:
        """Perform an HTTP exchange and decode the JSON result.

        Behaves identically to
        :meth:`~shodan_client.client.sync_client.Client.execute_request`.
        """
        response = await self.send_request(method, url, body)
        try:
            raise_for_status(response)
            return decode_response(response, destination)
        finally:
            await response.aclose()

    # ------------------------------------------------------------------ #
    # Stream executor
    # ------------------------------------------------------------------ #

    async def execute_stream_request(
        self,
        method: str,
        url: str,
        channel: AsyncChannel,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        """Open a streaming response and forward its lines to *channel*.

        Returns once the server has answered with a success status.  A
        background task then sends each line, in order, and closes
        *channel* when the connection ends, a read fails, *cancel* is set,
        or :meth:`aclose` is called.

        Raises:
            InvalidURLError: If *url* cannot be parsed.
            StreamSetupError: If the connection failed or the server
                answered with an error status.  *channel* is left untouched.
        """
        response = await self._open_stream(method, url)
        task = asyncio.create_task(self._consume_stream(response, channel, cancel))
        self._streams[task] = (response, channel)

        def finished(task: asyncio.Task[None]) -> None:
            self._streams.pop(task, None)
            channel.close()

        task.add_done_callback(finished)

    async def _open_stream(self, method: str, url: str) -> httpx.Response:
        validate_url(url)
        logger.debug("Opening stream %s %s", method, redact_url(url))
        try:
            request = self._client.build_request(method, url, timeout=self._stream_timeout())
            try:
                response = await self._client.send(request, stream=True)
            except httpx.TransportError as exc:
                raise transport_error(method, url, exc) from exc
            if response.status_code >= 400:
                try:
                    await response.aread()
                    raise_for_status(response)
                finally:
                    await response.aclose()
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"Invalid URL {redact_url(url)!r}: {exc}", url=url) from exc
        except (TransportError, APIError) as exc:
            raise stream_setup_error(method, url, exc) from exc
        return response

    async def _consume_stream(
        self,
        response: httpx.Response,
        channel: AsyncChannel,
        cancel: Optional[asyncio.Event],
    ) -> None:
        url = redact_url(str(response.request.url))
        watcher: Optional[asyncio.Task[None]] = None
        if cancel is not None:
            watcher = asyncio.create_task(_cancel_on(cancel, asyncio.current_task()))
        delivered = 0
        try:
            async for line in aiter_lines(response.aiter_bytes()):
                if not await channel.send(line):
                    break
                delivered += 1
        except asyncio.CancelledError:
            logger.debug("Stream %s cancelled", url)
            raise
        except Exception as exc:  # background task: nowhere to raise to
            logger.warning("Stream %s ended with read error: %s", url, exc)
        finally:
            if watcher is not None:
                watcher.cancel()
            try:
                await response.aclose()
            finally:
                channel.close()
            logger.debug("Stream %s closed after %d chunks", url, delivered)

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    async def get_account_profile(self) -> Profile:
        """Return information about the account linked to the API key."""
        url = self.build_base_url(PROFILE_PATH)
        return await self.execute_request("GET", url, Profile)

    async def get_api_info(self) -> APIInfo:
        """Return the plan and remaining credits of the API key."""
        url = self.build_base_url(API_INFO_PATH)
        return await self.execute_request("GET", url, APIInfo)

    async def stream_banners(
        self,
        channel: AsyncChannel,
        params: ParamsLike = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        """Stream every banner Shodan collects (firehose access required)."""
        url = self.build_stream_base_url(BANNERS_PATH, params)
        await self.execute_stream_request("GET", url, channel, cancel)


async def _cancel_on(event: asyncio.Event, task: Optional[asyncio.Task[Any]]) -> None:
    await event.wait()
    if task is not None:
        task.cancel()

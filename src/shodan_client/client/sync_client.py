"""Synchronous Shodan client.

This module provides :class:`Client`, the blocking client.  It wraps
:class:`httpx.Client` and layers on:

- **Token injection** -- every URL is built with the ``key`` parameter
  (see :mod:`shodan_client.urls`).
- **Error mapping** -- transport failures and HTTP statuses >= 400 become
  typed :mod:`shodan_client.exceptions`, nothing is retried.
- **Decoding** -- successful JSON bodies are validated into the caller's
  pydantic type.
- **Streaming** -- long-lived responses are read on a daemon thread and
  delivered line by line through a :class:`~shodan_client.streaming.Channel`.

See Also:
    :class:`~shodan_client.client.async_client.AsyncClient` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import logging
import threading
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
from shodan_client.streaming import Channel, iter_lines
from shodan_client.urls import ParamsLike, redact_url, validate_url

logger = logging.getLogger(__name__)

#: Seconds between checks of a caller-supplied cancel event.
CANCEL_POLL_INTERVAL = 0.05

#: Seconds close() waits for each stream watcher to finish.
CLOSE_JOIN_TIMEOUT = 5.0


class _Stream:
    """Bookkeeping for one running stream.

    *stop* ends the stream; :meth:`release` closes the channel and the
    response once, whichever thread gets there first.
    """

    def __init__(self, response: httpx.Response, channel: Channel) -> None:
        self.response = response
        self.channel = channel
        self.stop = threading.Event()
        self.watcher: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._released = False

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        try:
            self.channel.close()
        finally:
            self.response.close()


class Client(BaseClient):
    """Blocking client for the Shodan REST, exploits and streaming APIs.

    Args:
        token: Shodan API key.
        http_client: Optional custom transport.  When ``None`` the client
            builds and owns an :class:`httpx.Client` configured from
            *request*; a supplied client is never closed by this one.
        base_urls: Root addresses; production defaults when ``None``.
        request: Timeout / TLS settings for a self-built transport.

    Example::

        with Client("MY_API_KEY") as client:
            profile = client.get_account_profile()
    """

    def __init__(
        self,
        token: str,
        http_client: Optional[httpx.Client] = None,
        *,
        base_urls: Optional[BaseURLs] = None,
        request: Optional[RequestConfig] = None,
    ) -> None:
        super().__init__(token, base_urls, request)
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(**self._transport_kwargs())
        self._streams: set[_Stream] = set()
        self._streams_lock = threading.Lock()

    @property
    def http_client(self) -> httpx.Client:
        """The underlying transport."""
        return self._client

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Cancel running streams and close the transport if this client built it."""
        with self._streams_lock:
            streams = list(self._streams)
        # Each watcher closes its own response and channel.
        for stream in streams:
            stream.stop.set()
        for stream in streams:
            if stream.watcher is not None:
                stream.watcher.join(CLOSE_JOIN_TIMEOUT)
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Request executor
    # ------------------------------------------------------------------ #

    def send_request(self, method: str, url: str, body: Any = None) -> httpx.Response:
        """Perform one HTTP exchange without interpreting the status code.

        The body is read in full before returning, so the connection has
        already been released.

        Raises:
            InvalidURLError: If *url* cannot be parsed.
            TransportError: On DNS, connection, TLS or timeout failures.
        """
        validate_url(url)
        logger.debug("%s %s", method, redact_url(url))
        try:
            response = self._client.request(method, url, **body_kwargs(body))
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"Invalid URL {redact_url(url)!r}: {exc}", url=url) from exc
        except httpx.TransportError as exc:
            raise transport_error(method, url, exc) from exc
        logger.debug("%s %s -> %d", method, redact_url(url), response.status_code)
        return response

    def execute_request(
        self,
        method: str,
        url: str,
        destination: Any = None,
        body: Any = None,
    ) -> Any:
        """Perform an HTTP exchange and decode the JSON result.

        Args:
            method: HTTP method.
            url: Fully built URL, usually from one of the ``build_*`` methods.
            destination: Type to validate the JSON body into, or ``None``
                for the raw JSON value.
            body: Optional request body, see
                :func:`~shodan_client.client.base.body_kwargs`.

        Returns:
            The decoded value.

        Raises:
            InvalidURLError: If *url* cannot be parsed.
            TransportError: If the exchange failed below HTTP.
            APIError: On HTTP status >= 400; the body is not decoded.
            DecodeError: If a successful body does not fit *destination*.
        """
        response = self.send_request(method, url, body)
        try:
            raise_for_status(response)
            return decode_response(response, destination)
        finally:
            response.close()

    # ------------------------------------------------------------------ #
    # Stream executor
    # ------------------------------------------------------------------ #

    def execute_stream_request(
        self,
        method: str,
        url: str,
        channel: Channel,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Open a streaming response and forward its lines to *channel*.

        Returns as soon as the server has answered with a success status.
        A daemon thread then sends each line, in order, and closes
        *channel* when the connection ends or a read fails.  A second
        thread watches *cancel* and :meth:`close`; either one closes
        *channel* and the response without waiting for the next line.

        Raises:
            InvalidURLError: If *url* cannot be parsed.
            StreamSetupError: If the connection failed or the server
                answered with an error status.  *channel* is left untouched.
        """
        response = self._open_stream(method, url)
        stream = _Stream(response, channel)
        name = f"shodan-stream-{redact_url(url)}"
        worker = threading.Thread(
            target=self._consume_stream, args=(stream,), name=name, daemon=True
        )
        stream.watcher = threading.Thread(
            target=self._watch_stream, args=(stream, cancel), name=f"{name}-watch", daemon=True
        )
        with self._streams_lock:
            self._streams.add(stream)
        worker.start()
        stream.watcher.start()

    def _open_stream(self, method: str, url: str) -> httpx.Response:
        validate_url(url)
        logger.debug("Opening stream %s %s", method, redact_url(url))
        try:
            request = self._client.build_request(method, url, timeout=self._stream_timeout())
            try:
                response = self._client.send(request, stream=True)
            except httpx.TransportError as exc:
                raise transport_error(method, url, exc) from exc
            if response.status_code >= 400:
                try:
                    response.read()
                    raise_for_status(response)
                finally:
                    response.close()
        except httpx.InvalidURL as exc:
            raise InvalidURLError(f"Invalid URL {redact_url(url)!r}: {exc}", url=url) from exc
        except (TransportError, APIError) as exc:
            raise stream_setup_error(method, url, exc) from exc
        return response

    def _consume_stream(self, stream: _Stream) -> None:
        url = redact_url(str(stream.response.request.url))
        delivered = 0
        try:
            for line in iter_lines(stream.response.iter_bytes()):
                if stream.stop.is_set() or not stream.channel.send(line):
                    break
                delivered += 1
        except Exception as exc:  # worker thread: nowhere to raise to
            if not stream.stop.is_set():
                logger.warning("Stream %s ended with read error: %s", url, exc)
        finally:
            stream.stop.set()
            with self._streams_lock:
                self._streams.discard(stream)
            stream.release()
            logger.debug("Stream %s closed after %d chunks", url, delivered)

    def _watch_stream(self, stream: _Stream, cancel: Optional[threading.Event]) -> None:
        # stop is set by the worker when it ends and by close().
        poll = None if cancel is None else CANCEL_POLL_INTERVAL
        while not stream.stop.wait(poll):
            if cancel is not None and cancel.is_set():
                logger.debug("Stream %s cancelled", redact_url(str(stream.response.request.url)))
                stream.stop.set()
                break
        stream.release()

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def get_account_profile(self) -> Profile:
        """Return information about the account linked to the API key."""
        url = self.build_base_url(PROFILE_PATH)
        return self.execute_request("GET", url, Profile)

    def get_api_info(self) -> APIInfo:
        """Return the plan and remaining credits of the API key."""
        url = self.build_base_url(API_INFO_PATH)
        return self.execute_request("GET", url, APIInfo)

    def stream_banners(
        self,
        channel: Channel,
        params: ParamsLike = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Stream every banner Shodan collects (firehose access required).

        Each chunk sent on *channel* is one JSON-encoded banner.
        """
        url = self.build_stream_base_url(BANNERS_PATH, params)
        self.execute_stream_request("GET", url, channel, cancel)

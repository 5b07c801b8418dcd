"""Behaviour shared by :class:`~shodan_client.client.Client` and
:class:`~shodan_client.client.AsyncClient`.

Everything here is free of I/O: token and base-address bookkeeping, URL
building, request-body preparation and the mapping from an
:class:`httpx.Response` to either a decoded value or an exception.  The
two concrete clients only differ in how they perform the exchange.
"""

from __future__ import annotations

import threading
from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from shodan_client.config import load_settings
from shodan_client.exceptions import (
    APIError,
    DecodeError,
    ShodanError,
    StreamSetupError,
    TransportError,
    api_error_for_status,
)
from shodan_client.models import BaseURLs, RequestConfig
from shodan_client.urls import ParamsLike, build_url, redact_url

PROFILE_PATH = "/account/profile"
API_INFO_PATH = "/api-info"
BANNERS_PATH = "/shodan/banners"

USER_AGENT = "shodan-client/0.1.0"

ClientT = TypeVar("ClientT", bound="BaseClient")


class BaseClient:
    """Token, base addresses and response classification.

    Base addresses are kept in an immutable :class:`~shodan_client.models.BaseURLs`
    snapshot.  The ``*_base_url`` setters swap the whole snapshot under a
    lock, and every URL builder reads the current snapshot at call time,
    so reconfiguring a client that has calls in flight is safe and takes
    effect for the next call.

    Args:
        token: Shodan API key, sent as the ``key`` query parameter.
        base_urls: Root addresses; production defaults when ``None``.
        request: Timeout / TLS settings for a self-built transport.
    """

    def __init__(
        self,
        token: str,
        base_urls: Optional[BaseURLs] = None,
        request: Optional[RequestConfig] = None,
    ) -> None:
        self._token = token
        self._base_urls = base_urls or BaseURLs()
        self._request_config = request or RequestConfig()
        self._config_lock = threading.Lock()

    @classmethod
    def from_env(cls: type[ClientT], **kwargs: Any) -> ClientT:
        """Construct a client from :func:`~shodan_client.config.load_settings`.

        Keyword arguments are forwarded to ``load_settings``.
        """
        settings = load_settings(**kwargs)
        return cls(settings.token, base_urls=settings.base_urls, request=settings.request)

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def token(self) -> str:
        """The API key in use."""
        return self._token

    @property
    def base_urls(self) -> BaseURLs:
        """The current base-address snapshot."""
        return self._base_urls

    @property
    def base_url(self) -> str:
        return self._base_urls.base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._replace_base_urls(base_url=value)

    @property
    def exploit_base_url(self) -> str:
        return self._base_urls.exploit_base_url

    @exploit_base_url.setter
    def exploit_base_url(self, value: str) -> None:
        self._replace_base_urls(exploit_base_url=value)

    @property
    def stream_base_url(self) -> str:
        return self._base_urls.stream_base_url

    @stream_base_url.setter
    def stream_base_url(self, value: str) -> None:
        self._replace_base_urls(stream_base_url=value)

    def _replace_base_urls(self, **changes: str) -> None:
        with self._config_lock:
            self._base_urls = self._base_urls.model_copy(update=changes)

    # ------------------------------------------------------------------ #
    # URL building
    # ------------------------------------------------------------------ #

    def build_url(self, base: str, path: str, params: ParamsLike = None) -> str:
        """Build ``base + path`` with the token and *params* in the query string."""
        return build_url(base, path, self._token, params)

    def build_base_url(self, path: str, params: ParamsLike = None) -> str:
        """Build a URL against the standard API root."""
        return self.build_url(self.base_url, path, params)

    def build_exploit_base_url(self, path: str, params: ParamsLike = None) -> str:
        """Build a URL against the exploits API root."""
        return self.build_url(self.exploit_base_url, path, params)

    def build_stream_base_url(self, path: str, params: ParamsLike = None) -> str:
        """Build a URL against the streaming API root."""
        return self.build_url(self.stream_base_url, path, params)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _transport_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for a self-built httpx client."""
        return {
            "timeout": self._request_config.timeout,
            "verify": self._request_config.verify_ssl,
            "follow_redirects": True,
            "headers": {"User-Agent": USER_AGENT},
        }

    def _stream_timeout(self) -> httpx.Timeout:
        """Connect timeout as configured, no read timeout for long-lived streams."""
        return httpx.Timeout(self._request_config.timeout, read=None)


def body_kwargs(body: Any) -> dict[str, Any]:
    """Map a request body to httpx keyword arguments.

    ``bytes`` and ``str`` are sent as-is; any other value is sent as JSON.
    """
    if body is None:
        return {}
    if isinstance(body, (bytes, str)):
        return {"content": body}
    return {"json": body}


def transport_error(method: str, url: str, exc: httpx.TransportError) -> TransportError:
    return TransportError(f"{method} {redact_url(url)} failed: {exc}")


def raise_for_status(response: httpx.Response) -> None:
    """Raise the :class:`~shodan_client.exceptions.APIError` for a >= 400 response.

    The response body must already have been read.
    """
    if response.status_code >= 400:
        raise api_error_for_status(response.status_code, response.text)


def decode_response(response: httpx.Response, destination: Any = None) -> Any:
    """Decode a successful response body.

    Args:
        response: A response whose body has been read.
        destination: ``None`` to return the raw JSON value, or any type
            pydantic can validate against (a model class, ``list[Model]``,
            ``dict[str, int]`` ...).

    Returns:
        The decoded value; ``None`` for an empty body when no
        destination was requested.

    Raises:
        DecodeError: If the body is not JSON or does not fit *destination*.
    """
    if not response.content:
        if destination is None:
            return None
        raise DecodeError(f"HTTP {response.status_code}: empty response body")
    try:
        data = response.json()
    except ValueError as exc:
        raise DecodeError(f"HTTP {response.status_code}: response is not valid JSON: {exc}") from exc
    if destination is None:
        return data
    try:
        return TypeAdapter(destination).validate_python(data)
    except ValidationError as exc:
        raise DecodeError(
            f"HTTP {response.status_code}: response does not match {_type_name(destination)}: {exc}"
        ) from exc


def stream_setup_error(method: str, url: str, exc: ShodanError) -> StreamSetupError:
    """Wrap a transport / remote failure that prevented a stream from starting."""
    if isinstance(exc, APIError):
        return StreamSetupError(
            f"Stream {method} {redact_url(url)} rejected: {exc}",
            status_code=exc.status_code,
            body=exc.body,
        )
    return StreamSetupError(f"Stream {method} {redact_url(url)} could not connect: {exc}")


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)

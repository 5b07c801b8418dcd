"""URL assembly with embedded token authentication.

Shodan authenticates every call through a ``key`` query parameter, so URL
building and authentication are the same step here.  :func:`build_url`
always emits ``key`` first, followed by the endpoint's own parameters in
the order the endpoint declared them::

    >>> build_url("https://api.shodan.io", "/account/profile", "TOKEN")
    'https://api.shodan.io/account/profile?key=TOKEN'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from shodan_client.exceptions import InvalidURLError
from shodan_client.models import TOKEN_PARAM, QueryParams, format_param_value

ParamsLike = Union[QueryParams, Mapping[str, Any], Iterable[tuple[str, Any]], None]


def encode_params(params: ParamsLike) -> list[tuple[str, str]]:
    """Normalise *params* into ordered ``(name, value)`` string pairs.

    Accepts a :class:`~shodan_client.models.QueryParams` instance, a
    mapping (insertion order), an iterable of pairs, or ``None``.  ``None``
    values are dropped.

    Raises:
        ValueError: If a parameter tries to set the reserved ``key`` name.
    """
    if params is None:
        return []
    if isinstance(params, QueryParams):
        pairs = params.to_query()
    else:
        items = params.items() if isinstance(params, Mapping) else params
        pairs = [
            (str(name), format_param_value(value))
            for name, value in items
            if value is not None
        ]
    for name, _ in pairs:
        if name == TOKEN_PARAM:
            raise ValueError(f"query parameter '{TOKEN_PARAM}' is reserved for the API token")
    return pairs


def validate_url(url: str) -> httpx.URL:
    """Parse *url* and make sure it is absolute.

    Raises:
        InvalidURLError: If the URL cannot be parsed or has no scheme / host.
    """
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURLError(f"Invalid URL {redact_url(url)!r}: {exc}", url=url) from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURLError(
            f"Invalid URL {redact_url(url)!r}: an http(s) scheme and host are required",
            url=url,
        )
    return parsed


def build_url(base: str, path: str, token: str, params: ParamsLike = None) -> str:
    """Compose ``base + path + "?key=" + token [+ "&" + params]``.

    Args:
        base: Root address, e.g. ``https://api.shodan.io``.
        path: Endpoint path, e.g. ``/account/profile``.
        token: API token sent as the ``key`` parameter.
        params: Optional endpoint parameters, see :func:`encode_params`.

    Returns:
        The fully qualified URL.

    Raises:
        InvalidURLError: If ``base + path`` is not a usable URL.
    """
    target = f"{base}{path}"
    validate_url(target)
    query = urlencode([(TOKEN_PARAM, token), *encode_params(params)])
    separator = "&" if "?" in path else "?"
    return f"{target}{separator}{query}"


def redact_url(url: str) -> str:
    """Return *url* with the ``key`` parameter masked, for log output."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    pairs = [
        (name, "***" if name == TOKEN_PARAM else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(pairs, safe="*")))

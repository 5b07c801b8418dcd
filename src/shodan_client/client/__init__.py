"""Shodan API clients.

Provides synchronous and asynchronous clients that wrap :mod:`httpx`
with token injection, typed error mapping, JSON decoding into pydantic
models, and line-by-line consumption of the streaming API.

Classes:
    :class:`Client` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Both clients are usable as context managers and accept the same core
parameters: the API token, an optional custom httpx client, and optional
:class:`~shodan_client.models.BaseURLs` / :class:`~shodan_client.models.RequestConfig`.

Example::

    from shodan_client.client import Client

    with Client(token) as client:
        profile = client.get_account_profile()
"""

from shodan_client.client.async_client import AsyncClient
from shodan_client.client.sync_client import Client

__all__ = ["Client", "AsyncClient"]

"""shodan_client -- typed client for the Shodan REST, exploits and streaming APIs.

The core of the package is its request engine: URLs are built with the API
token as the ``key`` query parameter, JSON responses are decoded into
pydantic models, HTTP and network failures are raised as typed
exceptions, and the streaming API is delivered line by line through a
channel.

Typical usage::

    from shodan_client import Client

    with Client("MY_API_KEY") as client:
        print(client.get_account_profile().credits)

Modules:
    client: Sync and async clients, including the endpoint wrappers.
    urls: URL assembly with token injection.
    streaming: Channels and newline framing for streaming responses.
    models: Pydantic models for configuration, parameters and payloads.
    config: Environment-driven settings and credential resolution.
    exceptions: Exception hierarchy.
    log: Opt-in Rich logging to stderr.
"""

from shodan_client.client import AsyncClient, Client
from shodan_client.exceptions import (
    APIError,
    AuthError,
    ConfigError,
    DecodeError,
    InvalidURLError,
    NotFoundError,
    RateLimitError,
    ServerError,
    ShodanError,
    StreamSetupError,
    TransportError,
)
from shodan_client.models import APIInfo, BaseURLs, Profile, QueryParams, RequestConfig
from shodan_client.streaming import AsyncChannel, Channel

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "APIInfo",
    "AsyncChannel",
    "AsyncClient",
    "AuthError",
    "BaseURLs",
    "Channel",
    "Client",
    "ConfigError",
    "DecodeError",
    "InvalidURLError",
    "NotFoundError",
    "Profile",
    "QueryParams",
    "RateLimitError",
    "RequestConfig",
    "ServerError",
    "ShodanError",
    "StreamSetupError",
    "TransportError",
]

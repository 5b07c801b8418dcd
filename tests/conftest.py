"""Shared test fixtures for shodan_client.

Provides a fixed test token, helpers for building clients on top of
:class:`httpx.MockTransport`, and isolation of the environment variables
and logging state the package reads.
"""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from shodan_client.client import AsyncClient, Client
from shodan_client.log import reset_logging

TEST_TOKEN = "TEST_TOKEN"
TEST_BASE = "http://shodan.test"

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging_between_tests() -> None:
    """Drop any Rich handler a test installed on the package logger."""
    yield
    reset_logging()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear every SHODAN_* variable so tests never see the developer's key."""
    for var in [
        "SHODAN_API_KEY",
        "SHODAN_BASE_URL",
        "SHODAN_EXPLOIT_BASE_URL",
        "SHODAN_STREAM_BASE_URL",
        "SHODAN_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


# ---------------------------------------------------------------------------
# Client factories
# ---------------------------------------------------------------------------


def _point_at_test_server(client: Client | AsyncClient) -> None:
    client.base_url = TEST_BASE
    client.exploit_base_url = TEST_BASE
    client.stream_base_url = TEST_BASE


@pytest.fixture
def mock_client() -> Callable[[Handler], Client]:
    """Return a factory building a :class:`Client` served by *handler*.

    All three base addresses point at ``TEST_BASE``.
    """
    created: list[Client] = []

    def factory(handler: Handler) -> Client:
        client = Client(TEST_TOKEN, httpx.Client(transport=httpx.MockTransport(handler)))
        _point_at_test_server(client)
        created.append(client)
        return client

    yield factory
    for client in created:
        client.close()
        client.http_client.close()


@pytest.fixture
def mock_async_client() -> Callable[[Handler], AsyncClient]:
    """Return a factory building an :class:`AsyncClient` served by *handler*.

    The caller is responsible for closing the client inside its event loop.
    """

    def factory(handler: Handler) -> AsyncClient:
        client = AsyncClient(
            TEST_TOKEN, httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        _point_at_test_server(client)
        return client

    return factory

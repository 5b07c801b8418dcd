"""Tests for diagnostic logging."""

from __future__ import annotations

import logging
from typing import Callable

import httpx
import pytest
from rich.logging import RichHandler

from shodan_client.client import Client
from shodan_client.log import LOGGER_NAME, configure_logging, reset_logging


def _rich_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger(LOGGER_NAME).handlers if isinstance(h, RichHandler)]


class TestConfigureLogging:
    def test_installs_single_handler(self) -> None:
        configure_logging()
        configure_logging(verbose=True)

        assert len(_rich_handlers()) == 1
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG

    def test_quiet_by_default(self) -> None:
        logger = configure_logging()
        assert logger.level == logging.WARNING

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        configure_logging()
        assert _rich_handlers()[0].console.no_color is True

    def test_reset(self) -> None:
        configure_logging()
        reset_logging()
        assert _rich_handlers() == []


class TestRequestLogging:
    def test_token_never_logged(
        self,
        mock_client: Callable[..., Client],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        client = mock_client(lambda request: httpx.Response(200, json={}))

        with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
            client.execute_request("GET", client.build_base_url("/account/profile"))

        messages = [record.getMessage() for record in caplog.records]
        assert any("/account/profile" in message for message in messages)
        assert all(client.token not in message for message in messages)

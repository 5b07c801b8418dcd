"""Diagnostic logging for shodan_client.

Library modules log through :func:`logging.getLogger` under the
``shodan_client`` namespace and never configure handlers themselves.  An
application that wants to see the request / stream lifecycle on stderr
calls :func:`configure_logging` once at startup::

    from shodan_client.log import configure_logging

    configure_logging(verbose=True)

Output goes to stderr through :class:`rich.logging.RichHandler`, and
colour is disabled when ``NO_COLOR`` is set or ``TERM=dumb``.  Tokens are
never logged; URLs pass through :func:`~shodan_client.urls.redact_url`
first.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "shodan_client"

_handler: Optional[RichHandler] = None


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def configure_logging(verbose: bool = False, no_color: bool = False) -> logging.Logger:
    """Attach a stderr :class:`~rich.logging.RichHandler` to the package logger.

    Calling it again replaces the previous handler instead of stacking a
    second one.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        no_color: Disable colour regardless of the environment.

    Returns:
        The configured ``shodan_client`` logger.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)

    console = Console(stderr=True, no_color=no_color or _should_disable_color())
    _handler = RichHandler(console=console, show_path=False, rich_tracebacks=False)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging`.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)

"""Exception hierarchy for shodan_client.

All exceptions inherit from :class:`ShodanError`, so callers that do not
care about the failure category can catch a single type.  Nothing in this
package retries or suppresses an error; every failure is raised to the
immediate caller.

Subclass hierarchy::

    ShodanError
    +-- InvalidURLError      (URL could not be parsed before dispatch)
    +-- TransportError       (DNS, connect, read, timeout)
    +-- APIError             (HTTP status >= 400)
    |   +-- AuthError        (401 / 403)
    |   +-- NotFoundError    (404)
    |   +-- RateLimitError   (429)
    |   +-- ServerError      (5xx)
    +-- DecodeError          (success body does not fit the destination)
    +-- StreamSetupError     (stream could not be started)
    +-- ConfigError          (missing token, bad environment value)
"""

from __future__ import annotations

import json
from typing import Optional


class ShodanError(Exception):
    """Base exception for all shodan_client errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidURLError(ShodanError):
    """Raised when a URL cannot be parsed or lacks a scheme / host."""

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class TransportError(ShodanError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""


class APIError(ShodanError):
    """Raised when the API answers with an HTTP status of 400 or above.

    The body is kept as raw text.  Shodan returns both JSON error documents
    (``{"error": "..."}``) and plain-text / HTML pages, so no schema is
    forced on it.

    Args:
        status_code: The HTTP status code of the response.
        body: The raw response body text.
        message: Optional override for the generated message.
    """

    def __init__(self, status_code: int, body: str = "", message: Optional[str] = None):
        if message is None:
            detail = _error_detail(body)
            message = f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthError(APIError):
    """Raised on 401 / 403, typically an invalid or unprivileged API key."""


class NotFoundError(APIError):
    """Raised when the API returns HTTP 404."""


class RateLimitError(APIError):
    """Raised when the API returns HTTP 429."""


class ServerError(APIError):
    """Raised when the API returns an HTTP 5xx server error."""


class DecodeError(ShodanError):
    """Raised when a successful response body is not valid for the requested shape."""


class StreamSetupError(ShodanError):
    """Raised when a streaming connection could not be established.

    The underlying :class:`TransportError` or :class:`APIError` is chained
    as ``__cause__``.  When the server did answer, its status and body are
    copied here as well.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigError(ShodanError):
    """Raised for configuration problems (missing token, invalid environment values)."""


def api_error_for_status(status_code: int, body: str) -> APIError:
    """Build the :class:`APIError` subclass matching *status_code*."""
    if status_code in (401, 403):
        return AuthError(status_code, body)
    if status_code == 404:
        return NotFoundError(status_code, body)
    if status_code == 429:
        return RateLimitError(status_code, body)
    if status_code >= 500:
        return ServerError(status_code, body)
    return APIError(status_code, body)


def _error_detail(body: str) -> str:
    """Extract a short message from an error body, JSON or not."""
    if not body:
        return ""
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()[:200]
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or body.strip()[:200])
    return body.strip()[:200]
